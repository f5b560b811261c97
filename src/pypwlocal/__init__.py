"""Python client library for a battery gateway's local TEDAPI protocol.

Usage:
    Raw queries:
        from pypwlocal import PowerwallClient, Query

        query = Query(query=query_text, signature=signature)
        async with PowerwallClient(secret) as client:
            status_json = await client.query(query)
            config_json = await client.config("config.json")

    Summaries:
        from pypwlocal import PowerwallClient
        from pypwlocal.status import get_simple_status

        async with PowerwallClient(secret) as client:
            status = await get_simple_status(client, status_query)
            print(status.battery_energy, status.power_solar)
"""

from __future__ import annotations

from .client import PowerwallClient
from .exceptions import (
    CodecError,
    ConnectivityError,
    HTTPStatusError,
    MalformedResponseError,
    MissingPayloadError,
    PowerwallError,
)
from .models import Query
from .protocol import Participant, TargetMode
from .transports import TransportConfig

__version__ = "0.1.0"
__all__ = [
    "PowerwallClient",
    "Query",
    "TransportConfig",
    # Addressing
    "Participant",
    "TargetMode",
    # Exceptions
    "PowerwallError",
    "ConnectivityError",
    "HTTPStatusError",
    "MalformedResponseError",
    "CodecError",
    "MissingPayloadError",
]
