"""Envelope construction and path selection.

Two request shapes exist:

- Leader: sender is the local client, recipient is the leader DIN, posted
  to ``/tedapi/v1`` with tail 1.
- Device: the request is routed through the leader, so the sender is the
  leader DIN and the recipient is the target DIN. It is posted to
  ``/tedapi/device/{din}/v1`` with tail 2.

Config requests are always leader requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import quote

from .constants import DEVICE_QUERY_PATH, LEADER_QUERY_PATH
from .protocol.envelope import ConfigSend, Envelope, Participant, Payload, QuerySend, TargetMode

if TYPE_CHECKING:
    from .identity import DINResolver
    from .models import Query


@dataclass(frozen=True)
class RoutedRequest:
    """An envelope and the path it must be posted to."""

    envelope: Envelope
    path: str

    @property
    def mode(self) -> TargetMode:
        return self.envelope.mode


def target_mode(target_din: str | None) -> TargetMode:
    """Addressing mode for an optional target DIN (empty means none)."""
    return TargetMode.DEVICE if target_din else TargetMode.LEADER


def build_envelope(
    mode: TargetMode,
    payload: Payload,
    leader_din: str,
    target_din: str | None = None,
) -> Envelope:
    """Build an addressed envelope for the given mode.

    Args:
        mode: Leader (single-hop) or device (two-hop via leader)
        payload: Query or config payload
        leader_din: Resolved leader DIN
        target_din: Device DIN; required for DEVICE mode, rejected otherwise

    Raises:
        ValueError: If target_din does not match the mode
    """
    if mode is TargetMode.DEVICE:
        if not target_din:
            raise ValueError("Device requests need a target DIN")
        return Envelope(
            sender=Participant.device(leader_din),
            recipient=Participant.device(target_din),
            payload=payload,
            mode=mode,
        )

    if target_din:
        raise ValueError("Leader requests cannot carry a target DIN")
    return Envelope(
        sender=Participant.local_client(),
        recipient=Participant.device(leader_din),
        payload=payload,
        mode=mode,
    )


def request_path(mode: TargetMode, target_din: str | None = None) -> str:
    """Request path for the given mode."""
    if mode is TargetMode.DEVICE:
        return DEVICE_QUERY_PATH.format(din=quote(target_din or "", safe=""))
    return LEADER_QUERY_PATH


class QueryRouter:
    """Build correctly addressed requests, resolving the leader DIN as needed.

    Resolver failures propagate unchanged.
    """

    def __init__(self, resolver: DINResolver) -> None:
        self._resolver = resolver

    async def build_query(self, query: Query, target_din: str | None = None) -> RoutedRequest:
        """Build a query request for the leader or a specific device.

        Args:
            query: Query to send
            target_din: Device to target; None or "" targets the leader

        Returns:
            RoutedRequest: Envelope and request path
        """
        # Encode first so bad variables fail before any network access
        payload = QuerySend(
            text=query.query,
            code=query.signature,
            variables=query.encoded_variables(),
        )
        mode = target_mode(target_din)
        leader_din = await self._resolver.resolve()
        device_din = target_din if mode is TargetMode.DEVICE else None

        return RoutedRequest(
            envelope=build_envelope(mode, payload, leader_din, device_din),
            path=request_path(mode, device_din),
        )

    async def build_config(self, file: str) -> RoutedRequest:
        """Build a config file request; always addressed to the leader.

        Args:
            file: Name of the file in the gateway's config store
        """
        leader_din = await self._resolver.resolve()
        return RoutedRequest(
            envelope=build_envelope(TargetMode.LEADER, ConfigSend(file=file), leader_din),
            path=request_path(TargetMode.LEADER),
        )


__all__ = [
    "QueryRouter",
    "RoutedRequest",
    "build_envelope",
    "request_path",
    "target_mode",
]
