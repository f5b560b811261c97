"""Addressed message envelope exchanged with the gateway.

These are plain immutable values; :mod:`pypwlocal.protocol.codec` turns
them into wire bytes and back.

Addressing comes in two shapes:

- ``TargetMode.LEADER``: the caller ("local") talks to the leader directly.
  Tail value 1.
- ``TargetMode.DEVICE``: the request is routed through the leader to reach a
  specific device, so the sender is the leader's DIN. Tail value 2.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from pypwlocal.constants import (
    CONFIG_SEND_NUM,
    DELIVERY_CHANNEL,
    EMPTY_VARIABLES,
    LOCAL_PARTICIPANT,
    QUERY_PAYLOAD_VALUE,
    QUERY_SEND_NUM,
)


class TargetMode(int, Enum):
    """Single-hop or two-hop addressing.

    The enum value is the tail marker written after the envelope.
    """

    LEADER = 1
    DEVICE = 2

    @property
    def tail(self) -> int:
        """Tail marker for this mode."""
        return int(self.value)

    @classmethod
    def from_tail(cls, value: int) -> TargetMode:
        """Map a decoded tail marker back to a mode.

        Raises:
            ValueError: If the value is not a known tail marker
        """
        return cls(value)


@dataclass(frozen=True)
class Participant:
    """Sender or recipient of an envelope.

    Exactly one of ``local`` or ``din`` is set. Use :meth:`local_client`
    and :meth:`device` rather than the constructor.
    """

    local: int | None = None
    din: str | None = None

    def __post_init__(self) -> None:
        if (self.local is None) == (self.din is None):
            raise ValueError("Participant needs exactly one of local or din")
        if self.din is not None and not self.din:
            raise ValueError("Participant din must not be empty")

    @classmethod
    def local_client(cls, local: int = LOCAL_PARTICIPANT) -> Participant:
        """The caller itself."""
        return cls(local=local)

    @classmethod
    def device(cls, din: str) -> Participant:
        """A named device on the gateway's mesh."""
        return cls(din=din)

    @property
    def is_local(self) -> bool:
        return self.local is not None

    def __str__(self) -> str:
        if self.din is not None:
            return f"din:{self.din}"
        return f"local:{self.local}"


@dataclass(frozen=True)
class QuerySend:
    """Outbound query with its pre-computed signature."""

    text: str
    code: bytes
    variables: str = EMPTY_VARIABLES
    num: int = QUERY_SEND_NUM
    value: int = QUERY_PAYLOAD_VALUE


@dataclass(frozen=True)
class QueryRecv:
    """Query answer; ``text`` is the JSON document produced by the gateway."""

    text: str


@dataclass(frozen=True)
class ConfigSend:
    """Request for a named file from the gateway's config store."""

    file: str
    num: int = CONFIG_SEND_NUM


@dataclass(frozen=True)
class ConfigRecv:
    """Config store answer. ``file_text`` is None when no file came back."""

    file_text: str | None = None
    name: str | None = None


Payload = Union[QuerySend, QueryRecv, ConfigSend, ConfigRecv]


@dataclass(frozen=True)
class Envelope:
    """One addressed protocol message.

    Attributes:
        sender: Who the message is from; None on a reply that names no sender
        recipient: Who the message is for; None on a reply that names no
            recipient
        payload: Query or config payload; None for an empty response
        mode: Addressing mode, written to the wire as the tail marker
        delivery_channel: Constant for every known query
    """

    sender: Participant | None
    recipient: Participant | None
    payload: Payload | None
    mode: TargetMode = TargetMode.LEADER
    delivery_channel: int = DELIVERY_CHANNEL

    @property
    def tail(self) -> int:
        """Tail marker for this envelope's addressing mode."""
        return self.mode.tail


__all__ = [
    "ConfigRecv",
    "ConfigSend",
    "Envelope",
    "Participant",
    "Payload",
    "QueryRecv",
    "QuerySend",
    "TargetMode",
]
