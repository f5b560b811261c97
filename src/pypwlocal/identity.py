"""Leader DIN resolution.

Every addressed request needs the leader's DIN. It is either given by the
caller, or fetched from the gateway once and cached for the lifetime of the
resolver.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .constants import DIN_PATH, MIN_DIN_LENGTH
from .exceptions import MalformedResponseError

if TYPE_CHECKING:
    from .transports.http import HTTPTransport

_LOGGER = logging.getLogger(__name__)


class DINResolver:
    """Resolve-once cache for the leader DIN.

    A caller-supplied DIN always wins and never touches the network.
    Otherwise the first :meth:`resolve` fetches the DIN while holding a lock,
    so any number of concurrent callers cause exactly one request and all
    see the same value. A failed fetch leaves the cache empty and the next
    call tries again.
    """

    def __init__(self, transport: HTTPTransport, din: str | None = None) -> None:
        """Initialize the resolver.

        Args:
            transport: Transport used for the one-off DIN lookup
            din: Caller-supplied leader DIN; skips the lookup entirely
        """
        self._transport = transport
        self._supplied_din = din or None
        self._cached_din: str | None = None
        self._lock = asyncio.Lock()

    @property
    def cached_din(self) -> str | None:
        """The DIN if already known, without any network access."""
        return self._supplied_din or self._cached_din

    async def resolve(self) -> str:
        """Return the leader DIN, fetching it on first use.

        Returns:
            str: The leader DIN

        Raises:
            MalformedResponseError: If the gateway returns something too short
                or undecodable to be a DIN
            ConnectivityError: If the gateway cannot be reached
            HTTPStatusError: If the gateway answers with a non-200 status
        """
        if self._supplied_din:
            return self._supplied_din

        async with self._lock:
            if self._cached_din is not None:
                return self._cached_din

            _LOGGER.debug("Fetching DIN from gateway")
            body = await self._transport.request(DIN_PATH)

            # Length is measured on the raw body, before whitespace is stripped
            if len(body) < MIN_DIN_LENGTH:
                raise MalformedResponseError(f"Bad DIN from gateway: {body!r}")

            try:
                din = body.decode("utf-8").strip()
            except UnicodeDecodeError as err:
                raise MalformedResponseError(f"Bad DIN from gateway: {body!r}") from err

            if not din:
                raise MalformedResponseError(f"Bad DIN from gateway: {body!r}")

            self._cached_din = din
            _LOGGER.info("Got DIN from leader: %s", din)
            return din


__all__ = ["DINResolver"]
