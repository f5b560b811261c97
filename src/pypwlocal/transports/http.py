"""HTTPS transport to the gateway.

This module provides the HTTPTransport class, which carries protocol
frames to the gateway and returns raw response bodies.

IMPORTANT: Certificate Verification Is Disabled
-----------------------------------------------
The gateway serves a self-signed certificate whose name never matches the
address it is reached on. This transport therefore does not verify the
certificate or the hostname, and allows legacy renegotiation. Only point
it at a gateway on a trusted local network.

Rate Limiting
-------------
The gateway answers 429 or 503 when it is being polled too often. Those
surface as :class:`~pypwlocal.exceptions.HTTPStatusError` like any other
non-200 status; the transport never retries.
"""

from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Any

import aiohttp
from aiohttp import ClientTimeout

from pypwlocal.constants import PROTOBUF_CONTENT_TYPE, RATE_LIMIT_STATUSES, SERVICE_ACCOUNT
from pypwlocal.exceptions import ConnectivityError, HTTPStatusError

from .config import TransportConfig

_LOGGER = logging.getLogger(__name__)


def create_ssl_context() -> ssl.SSLContext:
    """Create the TLS context used for the gateway.

    Hostname checks and certificate verification are off, and legacy
    renegotiation is allowed. See the module docstring.
    """
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    context.options |= ssl.OP_LEGACY_SERVER_CONNECT
    return context


class HTTPTransport:
    """Basic-Auth HTTPS transport for a single gateway.

    Example:
        ```python
        config = TransportConfig(secret="ABCDEFGHIJ")
        async with HTTPTransport(config) as transport:
            din = await transport.request("/tedapi/din")
        ```

    Note:
        An injected ``aiohttp.ClientSession`` is used as-is and never closed
        by the transport. Its connector must carry the TLS settings, e.g.
        ``aiohttp.TCPConnector(ssl=create_ssl_context())``.
    """

    def __init__(
        self,
        config: TransportConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the HTTPS transport.

        Args:
            config: Gateway connection settings
            session: Optional aiohttp ClientSession for session injection
        """
        self._base_url = config.base_url
        self._auth = aiohttp.BasicAuth(SERVICE_ACCOUNT, config.secret)
        self._timeout = ClientTimeout(total=config.timeout)
        self._ssl_context = create_ssl_context()

        self._session: aiohttp.ClientSession | None = session
        self._owns_session: bool = session is None

    @property
    def base_url(self) -> str:
        """Base URL requests are sent to."""
        return self._base_url

    async def __aenter__(self) -> HTTPTransport:
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session.

        Returns:
            aiohttp.ClientSession: The session to use for requests.
        """
        if self._session is not None and not self._owns_session:
            return self._session

        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(ssl=self._ssl_context)
            self._session = aiohttp.ClientSession(connector=connector, timeout=self._timeout)
            self._owns_session = True

        return self._session

    async def close(self) -> None:
        """Close the session if we own it.

        Only closes the session if it was created by this transport,
        not if it was injected.
        """
        if self._session and not self._session.closed and self._owns_session:
            await self._session.close()

    async def request(self, path: str, body: bytes | None = None) -> bytes:
        """Send a request to the gateway and return the raw body.

        Args:
            path: Request path, starting with "/"
            body: Frame to POST. When None a GET is issued instead.

        Returns:
            bytes: Response body of a 200 response

        Raises:
            HTTPStatusError: If the gateway answers with any status but 200
            ConnectivityError: If the gateway cannot be reached or times out
        """
        method = "GET" if body is None else "POST"
        url = f"{self._base_url}{path}"
        headers = None if body is None else {"Content-Type": PROTOBUF_CONTENT_TYPE}

        session = await self._get_session()
        _LOGGER.debug("%s %s (%d bytes)", method, url, len(body or b""))

        try:
            async with session.request(
                method,
                url,
                data=body,
                headers=headers,
                auth=self._auth,
                timeout=self._timeout,
            ) as response:
                if response.status != 200:
                    if response.status in RATE_LIMIT_STATUSES:
                        _LOGGER.warning(
                            "Gateway is rate limiting (HTTP %d) on %s", response.status, path
                        )
                    raise HTTPStatusError(response.status, response.reason)

                data = await response.read()
                _LOGGER.debug("%s %s -> %d bytes", method, path, len(data))
                return data

        except aiohttp.ClientError as err:
            raise ConnectivityError(f"Connection error: {err}") from err

        except asyncio.TimeoutError as err:
            raise ConnectivityError(f"Request to {path} timed out") from err


__all__ = ["HTTPTransport", "create_ssl_context"]
