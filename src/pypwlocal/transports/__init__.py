"""Transport layer for pypwlocal.

Usage:
    from pypwlocal.transports import HTTPTransport, TransportConfig

    config = TransportConfig(secret="ABCDEFGHIJ", remote="192.168.91.1:443")
    config.validate()

    async with HTTPTransport(config) as transport:
        din = await transport.request("/tedapi/din")
"""

from __future__ import annotations

from .config import TransportConfig
from .http import HTTPTransport, create_ssl_context

__all__ = [
    "HTTPTransport",
    "TransportConfig",
    "create_ssl_context",
]
