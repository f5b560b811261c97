"""Encode and decode envelopes to the gateway's binary frame.

The frame is a protobuf ``tedapi.Message``: the addressed envelope followed
by a tail marker. Only bytes that protobuf cannot parse, or an unknown tail
marker, raise :class:`~pypwlocal.exceptions.CodecError`. A frame that parses
but carries no envelope or no addressing decodes to an
:class:`~pypwlocal.protocol.envelope.Envelope` with those parts set to None;
deciding whether the reply is usable is left to the client.
"""

from __future__ import annotations

import logging
from typing import Any

from google.protobuf.message import DecodeError

from pypwlocal.exceptions import CodecError

from . import schema
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

_LOGGER = logging.getLogger(__name__)


def _write_participant(target: Any, participant: Participant | None, role: str) -> None:
    if participant is None:
        raise CodecError(f"Envelope {role} is required for encoding")
    if participant.din is not None:
        target.din = participant.din
    else:
        target.local = participant.local


def _read_participant(source: Any, role: str) -> Participant | None:
    which = source.WhichOneof("id")
    if which == "din" and source.din:
        return Participant.device(source.din)
    if which == "local":
        return Participant.local_client(source.local)
    _LOGGER.debug("Envelope %s has no identity", role)
    return None


def _write_payload(envelope_pb: Any, payload: Payload | None) -> None:
    if payload is None:
        return

    if isinstance(payload, QuerySend):
        send = envelope_pb.payload.send
        send.num = payload.num
        send.payload.value = payload.value
        send.payload.text = payload.text
        send.code = payload.code
        send.b.value = payload.variables
    elif isinstance(payload, QueryRecv):
        envelope_pb.payload.recv.SetInParent()
        envelope_pb.payload.recv.text = payload.text
    elif isinstance(payload, ConfigSend):
        envelope_pb.config.send.num = payload.num
        envelope_pb.config.send.file = payload.file
    elif isinstance(payload, ConfigRecv):
        recv = envelope_pb.config.recv
        recv.SetInParent()
        if payload.file_text is not None:
            recv.file.SetInParent()
            recv.file.text = payload.file_text
            if payload.name is not None:
                recv.file.name = payload.name
    else:
        raise CodecError(f"Unsupported payload type: {type(payload).__name__}")


def _read_payload(envelope_pb: Any) -> Payload | None:
    body = envelope_pb.WhichOneof("body")

    if body == "payload":
        query = envelope_pb.payload
        kind = query.WhichOneof("id")
        if kind == "send":
            send = query.send
            return QuerySend(
                text=send.payload.text,
                code=bytes(send.code),
                variables=send.b.value,
                num=send.num,
                value=send.payload.value,
            )
        if kind == "recv":
            return QueryRecv(text=query.recv.text)
        return None

    if body == "config":
        config = envelope_pb.config
        kind = config.WhichOneof("config")
        if kind == "send":
            return ConfigSend(file=config.send.file, num=config.send.num)
        if kind == "recv":
            recv = config.recv
            if not recv.HasField("file"):
                return ConfigRecv()
            return ConfigRecv(file_text=recv.file.text, name=recv.file.name or None)
        return None

    return None


def encode_envelope(envelope: Envelope) -> bytes:
    """Serialize an envelope and its tail marker to wire bytes.

    Args:
        envelope: The envelope to serialize

    Returns:
        The protobuf-encoded ``tedapi.Message`` frame

    Raises:
        CodecError: If the sender or recipient is missing
    """
    message = schema.Message()
    envelope_pb = message.message
    envelope_pb.deliveryChannel = envelope.delivery_channel
    _write_participant(envelope_pb.sender, envelope.sender, "sender")
    _write_participant(envelope_pb.recipient, envelope.recipient, "recipient")
    _write_payload(envelope_pb, envelope.payload)
    message.tail.value = envelope.tail

    data: bytes = message.SerializeToString()
    _LOGGER.debug(
        "Encoded %s -> %s frame (%d bytes, tail=%d)",
        envelope.sender,
        envelope.recipient,
        len(data),
        envelope.tail,
    )
    return data


def decode_envelope(data: bytes) -> Envelope:
    """Parse wire bytes back into an envelope.

    Args:
        data: Raw frame as received from the gateway

    Returns:
        The decoded envelope. ``payload`` is None when the frame carries
        neither a query nor a config branch; ``sender`` and ``recipient``
        are None when the frame does not address them.

    Raises:
        CodecError: If the bytes are not a protobuf frame or the tail
            marker is unknown
    """
    message = schema.Message()
    try:
        message.ParseFromString(data)
    except DecodeError as err:
        raise CodecError(f"Could not decode message frame: {err}") from err

    if not message.HasField("message"):
        _LOGGER.debug("Message frame has no envelope (%d bytes)", len(data))

    envelope_pb = message.message
    sender = _read_participant(envelope_pb.sender, "sender")
    recipient = _read_participant(envelope_pb.recipient, "recipient")

    mode = TargetMode.LEADER
    if message.HasField("tail"):
        try:
            mode = TargetMode.from_tail(message.tail.value)
        except ValueError as err:
            raise CodecError(f"Unknown tail value: {message.tail.value}") from err

    return Envelope(
        sender=sender,
        recipient=recipient,
        payload=_read_payload(envelope_pb),
        mode=mode,
        delivery_channel=envelope_pb.deliveryChannel,
    )


__all__ = ["decode_envelope", "encode_envelope"]
