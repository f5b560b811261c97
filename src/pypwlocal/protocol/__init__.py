"""Message envelope model and binary frame codec.

Usage:
    from pypwlocal.protocol import (
        Envelope,
        Participant,
        QuerySend,
        TargetMode,
        decode_envelope,
        encode_envelope,
    )

    envelope = Envelope(
        sender=Participant.local_client(),
        recipient=Participant.device(leader_din),
        payload=QuerySend(text=query_text, code=signature),
        mode=TargetMode.LEADER,
    )
    frame = encode_envelope(envelope)
    assert decode_envelope(frame) == envelope
"""

from __future__ import annotations

from .codec import decode_envelope, encode_envelope
from .envelope import (
    ConfigRecv,
    ConfigSend,
    Envelope,
    Participant,
    Payload,
    QueryRecv,
    QuerySend,
    TargetMode,
)

__all__ = [
    # Codec
    "encode_envelope",
    "decode_envelope",
    # Envelope model
    "Envelope",
    "Participant",
    "TargetMode",
    "Payload",
    "QuerySend",
    "QueryRecv",
    "ConfigSend",
    "ConfigRecv",
]
