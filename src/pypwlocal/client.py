"""Local gateway API client.

This module provides an async client for the battery gateway's local
TEDAPI protocol: protobuf frames carried over HTTPS on the gateway's own
network, with no cloud dependency.

Key Features:
- Async/await support with aiohttp
- Leader DIN fetched once and cached, or supplied up front
- Queries to the leader or routed through it to a specific device
- Config file retrieval
- Support for injected aiohttp.ClientSession
- Typed errors; nothing is retried internally
"""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from .constants import DEFAULT_REMOTE, DEFAULT_TIMEOUT
from .exceptions import MalformedResponseError, MissingPayloadError
from .identity import DINResolver
from .models import Query
from .protocol import ConfigRecv, Envelope, QueryRecv, decode_envelope, encode_envelope
from .router import QueryRouter, RoutedRequest
from .transports import HTTPTransport, TransportConfig

_LOGGER = logging.getLogger(__name__)


class PowerwallClient:
    """Local gateway API client.

    One client per gateway, reused across calls. It is safe to share
    between concurrent tasks.

    Example:
        ```python
        async with PowerwallClient(secret) as client:
            status_json = await client.query(status_query)
            device_json = await client.query_device(components_query, din)
            config_json = await client.config("config.json")
        ```
    """

    def __init__(
        self,
        secret: str,
        *,
        remote: str | None = None,
        din: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            secret: Gateway password, typically printed on the unit
            remote: ``host:port`` of the gateway (default 192.168.91.1:443)
            din: Leader DIN. Fetched from the gateway on first use if omitted.
            timeout: Total request timeout in seconds (default 10)
            session: Optional aiohttp ClientSession for session injection

        Raises:
            ValueError: If the settings are invalid
        """
        self._config = TransportConfig(
            secret=secret,
            remote=remote or DEFAULT_REMOTE,
            din=din or None,
            timeout=timeout,
        )
        self._config.validate()

        self._transport = HTTPTransport(self._config, session=session)
        self._resolver = DINResolver(self._transport, din=self._config.din)
        self._router = QueryRouter(self._resolver)

    @classmethod
    def from_config(
        cls,
        config: TransportConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> PowerwallClient:
        """Create a client from a stored TransportConfig."""
        return cls(
            config.secret,
            remote=config.remote,
            din=config.din,
            timeout=config.timeout,
            session=session,
        )

    async def __aenter__(self) -> PowerwallClient:
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

    async def close(self) -> None:
        """Close the HTTP session if the client created it."""
        await self._transport.close()

    @property
    def remote(self) -> str:
        """Gateway address this client talks to."""
        return self._config.remote

    @property
    def cached_din(self) -> str | None:
        """Leader DIN if already known, without any network access."""
        return self._resolver.cached_din

    async def get_din(self) -> str:
        """Return the leader DIN, fetching and caching it on first use.

        Raises:
            MalformedResponseError: If the gateway returns an implausible DIN
            ConnectivityError: If the gateway cannot be reached
            HTTPStatusError: If the gateway answers with a non-200 status
        """
        return await self._resolver.resolve()

    async def _exchange(self, routed: RoutedRequest) -> Envelope:
        """Post an envelope and decode the reply."""
        body = await self._transport.request(routed.path, encode_envelope(routed.envelope))
        if not body:
            raise MalformedResponseError(f"Empty response body from {routed.path}")
        return decode_envelope(body)

    async def query(self, query: Query) -> bytes:
        """Run a query on the leader.

        Args:
            query: Signed query to run

        Returns:
            bytes: Raw JSON answer, for decoding by the caller
        """
        return await self.query_device(query, None)

    async def query_device(self, query: Query, target_din: str | None) -> bytes:
        """Run a query, optionally routed through the leader to another device.

        Args:
            query: Signed query to run
            target_din: DIN of the device to query; None or "" queries the leader

        Returns:
            bytes: Raw JSON answer, for decoding by the caller

        Raises:
            MissingPayloadError: If the reply carries no query answer, or an
                empty one
            CodecError: If the reply frame cannot be decoded
            MalformedResponseError: If the reply body is empty
            ConnectivityError: If the gateway cannot be reached
            HTTPStatusError: If the gateway answers with a non-200 status
        """
        routed = await self._router.build_query(query, target_din)
        _LOGGER.debug("Query via %s (%s)", routed.path, routed.mode.name)

        response = await self._exchange(routed)
        if not isinstance(response.payload, QueryRecv):
            raise MissingPayloadError("Response has no query result")
        if not response.payload.text:
            raise MissingPayloadError("Response has an empty query result")
        return response.payload.text.encode("utf-8")

    async def config(self, file: str) -> bytes:
        """Read a file from the leader's config store.

        Args:
            file: File name; "config.json" is the one known file

        Returns:
            bytes: Raw file contents

        Raises:
            MissingPayloadError: If the reply carries no file
            CodecError: If the reply frame cannot be decoded
            MalformedResponseError: If the reply body is empty
            ConnectivityError: If the gateway cannot be reached
            HTTPStatusError: If the gateway answers with a non-200 status
        """
        routed = await self._router.build_config(file)
        _LOGGER.debug("Config %s via %s", file, routed.path)

        response = await self._exchange(routed)
        payload = response.payload
        if not isinstance(payload, ConfigRecv) or payload.file_text is None:
            raise MissingPayloadError(f"Response has no file for {file!r}")
        return payload.file_text.encode("utf-8")


__all__ = ["PowerwallClient"]
