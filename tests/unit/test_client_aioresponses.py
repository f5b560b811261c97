"""Unit tests for PowerwallClient using aioresponses for HTTP mocking."""

from __future__ import annotations

import asyncio

import aiohttp
import pytest
from aioresponses import aioresponses
from conftest import (
    DIN_URL,
    FOLLOWER_DIN,
    FOLLOWER_URL,
    LEADER_DIN,
    LEADER_URL,
    SECRET,
    recorded_calls,
    reply_frame,
)

from pypwlocal import PowerwallClient, TransportConfig
from pypwlocal.exceptions import (
    CodecError,
    ConnectivityError,
    HTTPStatusError,
    MalformedResponseError,
    MissingPayloadError,
)
from pypwlocal.models import Query
from pypwlocal.protocol import (
    ConfigRecv,
    Participant,
    QueryRecv,
    TargetMode,
    decode_envelope,
    schema,
)


def _tail_only_frame() -> bytes:
    message = schema.Message()
    message.tail.value = TargetMode.LEADER.tail
    return message.SerializeToString()


class TestConstruction:
    """Test client construction and configuration."""

    def test_defaults(self) -> None:
        client = PowerwallClient(SECRET)

        assert client.remote == "192.168.91.1:443"
        assert client.cached_din is None

    def test_supplied_din(self) -> None:
        client = PowerwallClient(SECRET, din=LEADER_DIN)

        assert client.cached_din == LEADER_DIN

    def test_missing_secret(self) -> None:
        with pytest.raises(ValueError, match="secret"):
            PowerwallClient("")

    def test_from_config(self) -> None:
        config = TransportConfig(secret=SECRET, remote="10.0.0.5:443", din=LEADER_DIN)

        client = PowerwallClient.from_config(config)

        assert client.remote == "10.0.0.5:443"
        assert client.cached_din == LEADER_DIN


class TestQuery:
    """Test leader and device queries."""

    @pytest.mark.asyncio
    async def test_query_resolves_din_then_posts(
        self, mocked_api: aioresponses, signed_query: Query
    ) -> None:
        """Test a leader query fetches the DIN and returns the answer."""
        mocked_api.get(DIN_URL, body=LEADER_DIN.encode())
        mocked_api.post(LEADER_URL, body=reply_frame(QueryRecv(text='{"control": {}}')))

        async with PowerwallClient(SECRET) as client:
            result = await client.query(signed_query)

        assert result == b'{"control": {}}'

        sent = decode_envelope(recorded_calls(mocked_api, "POST", "/tedapi/v1")[0].kwargs["data"])
        assert sent.sender == Participant.local_client()
        assert sent.recipient == Participant.device(LEADER_DIN)
        assert sent.mode is TargetMode.LEADER

    @pytest.mark.asyncio
    async def test_supplied_din_never_fetched(
        self, mocked_api: aioresponses, signed_query: Query
    ) -> None:
        """Test no identifier request is made when the DIN is supplied."""
        mocked_api.post(LEADER_URL, body=reply_frame(QueryRecv(text="{}")))

        async with PowerwallClient(SECRET, din=LEADER_DIN) as client:
            assert await client.query(signed_query) == b"{}"

        assert recorded_calls(mocked_api, "GET", "/tedapi/din") == []

    @pytest.mark.asyncio
    async def test_din_cached_across_queries(
        self, mocked_api: aioresponses, signed_query: Query
    ) -> None:
        """Test the DIN is fetched once for several queries."""
        mocked_api.get(DIN_URL, body=LEADER_DIN.encode())
        mocked_api.post(LEADER_URL, body=reply_frame(QueryRecv(text="{}")), repeat=True)

        async with PowerwallClient(SECRET) as client:
            for _ in range(3):
                await client.query(signed_query)

        assert len(recorded_calls(mocked_api, "GET", "/tedapi/din")) == 1
        assert len(recorded_calls(mocked_api, "POST", "/tedapi/v1")) == 3

    @pytest.mark.asyncio
    async def test_concurrent_queries_fetch_din_once(
        self, mocked_api: aioresponses, signed_query: Query
    ) -> None:
        """Test concurrent first queries share one DIN lookup."""
        mocked_api.get(DIN_URL, body=LEADER_DIN.encode(), repeat=True)
        mocked_api.post(LEADER_URL, body=reply_frame(QueryRecv(text="{}")), repeat=True)

        async with PowerwallClient(SECRET) as client:
            results = await asyncio.gather(*(client.query(signed_query) for _ in range(5)))

        assert results == [b"{}"] * 5
        assert len(recorded_calls(mocked_api, "GET", "/tedapi/din")) == 1

    @pytest.mark.asyncio
    async def test_query_device(self, mocked_api: aioresponses, signed_query: Query) -> None:
        """Test a device query is routed through the leader."""
        mocked_api.get(DIN_URL, body=LEADER_DIN.encode())
        mocked_api.post(
            FOLLOWER_URL,
            body=reply_frame(QueryRecv(text='{"components": {}}'), sender=FOLLOWER_DIN),
        )

        async with PowerwallClient(SECRET) as client:
            result = await client.query_device(signed_query, FOLLOWER_DIN)

        assert result == b'{"components": {}}'

        call = recorded_calls(mocked_api, "POST", f"/tedapi/device/{FOLLOWER_DIN}/v1")[0]
        sent = decode_envelope(call.kwargs["data"])
        assert sent.sender == Participant.device(LEADER_DIN)
        assert sent.recipient == Participant.device(FOLLOWER_DIN)
        assert sent.tail == 2

    @pytest.mark.asyncio
    async def test_query_device_empty_target(
        self, mocked_api: aioresponses, signed_query: Query
    ) -> None:
        """Test an empty target DIN queries the leader."""
        mocked_api.post(LEADER_URL, body=reply_frame(QueryRecv(text="{}")))

        async with PowerwallClient(SECRET, din=LEADER_DIN) as client:
            assert await client.query_device(signed_query, "") == b"{}"

        sent = decode_envelope(recorded_calls(mocked_api, "POST", "/tedapi/v1")[0].kwargs["data"])
        assert sent.sender.is_local
        assert sent.tail == 1

    @pytest.mark.asyncio
    async def test_missing_query_result(
        self, mocked_api: aioresponses, signed_query: Query
    ) -> None:
        """Test a reply without an answer raises MissingPayloadError."""
        mocked_api.post(LEADER_URL, body=reply_frame(None))

        async with PowerwallClient(SECRET, din=LEADER_DIN) as client:
            with pytest.raises(MissingPayloadError, match="no query result"):
                await client.query(signed_query)

    @pytest.mark.asyncio
    async def test_empty_query_result(
        self, mocked_api: aioresponses, signed_query: Query
    ) -> None:
        """Test an answer with empty text raises MissingPayloadError."""
        mocked_api.post(LEADER_URL, body=reply_frame(QueryRecv(text="")))

        async with PowerwallClient(SECRET, din=LEADER_DIN) as client:
            with pytest.raises(MissingPayloadError, match="empty query result"):
                await client.query(signed_query)

    @pytest.mark.asyncio
    async def test_tail_only_reply(self, mocked_api: aioresponses, signed_query: Query) -> None:
        """Test a frame with no envelope raises MissingPayloadError."""
        mocked_api.post(LEADER_URL, body=_tail_only_frame())

        async with PowerwallClient(SECRET, din=LEADER_DIN) as client:
            with pytest.raises(MissingPayloadError, match="no query result"):
                await client.query(signed_query)

    @pytest.mark.asyncio
    async def test_reply_without_participants(
        self, mocked_api: aioresponses, signed_query: Query
    ) -> None:
        """Test an answer is returned even when the reply names no participants."""
        message = schema.Message()
        message.message.payload.recv.text = "{}"
        mocked_api.post(LEADER_URL, body=message.SerializeToString())

        async with PowerwallClient(SECRET, din=LEADER_DIN) as client:
            assert await client.query(signed_query) == b"{}"

    @pytest.mark.asyncio
    async def test_garbled_reply(self, mocked_api: aioresponses, signed_query: Query) -> None:
        """Test an undecodable reply raises CodecError."""
        mocked_api.post(LEADER_URL, body=b"\xff\xff\xff\xff")

        async with PowerwallClient(SECRET, din=LEADER_DIN) as client:
            with pytest.raises(CodecError):
                await client.query(signed_query)

    @pytest.mark.asyncio
    async def test_empty_reply(self, mocked_api: aioresponses, signed_query: Query) -> None:
        """Test an empty body raises MalformedResponseError."""
        mocked_api.post(LEADER_URL, body=b"")

        async with PowerwallClient(SECRET, din=LEADER_DIN) as client:
            with pytest.raises(MalformedResponseError, match="Empty response"):
                await client.query(signed_query)


class TestErrors:
    """Test failure handling around DIN resolution."""

    @pytest.mark.asyncio
    async def test_short_din(self, mocked_api: aioresponses, signed_query: Query) -> None:
        """Test an implausible DIN fails the call and is not cached."""
        mocked_api.get(DIN_URL, body=b"Unauthorized")

        async with PowerwallClient(SECRET) as client:
            with pytest.raises(MalformedResponseError):
                await client.query(signed_query)
            assert client.cached_din is None

        assert recorded_calls(mocked_api, "POST", "/tedapi/v1") == []

    @pytest.mark.asyncio
    async def test_rate_limited_keeps_cached_din(
        self, mocked_api: aioresponses, signed_query: Query
    ) -> None:
        """Test a 503 fails the query but leaves the cached DIN alone."""
        mocked_api.get(DIN_URL, body=LEADER_DIN.encode())
        mocked_api.post(LEADER_URL, status=503)
        mocked_api.post(LEADER_URL, body=reply_frame(QueryRecv(text="{}")))

        async with PowerwallClient(SECRET) as client:
            assert await client.get_din() == LEADER_DIN

            with pytest.raises(HTTPStatusError) as exc_info:
                await client.query(signed_query)
            assert exc_info.value.is_rate_limited is True
            assert client.cached_din == LEADER_DIN

            assert await client.query(signed_query) == b"{}"

        assert len(recorded_calls(mocked_api, "GET", "/tedapi/din")) == 1

    @pytest.mark.asyncio
    async def test_din_lookup_retried_after_failure(
        self, mocked_api: aioresponses, signed_query: Query
    ) -> None:
        """Test a failed DIN lookup is retried on the next call."""
        mocked_api.get(DIN_URL, exception=aiohttp.ClientConnectionError("refused"))
        mocked_api.get(DIN_URL, body=LEADER_DIN.encode())

        async with PowerwallClient(SECRET) as client:
            with pytest.raises(ConnectivityError, match="refused"):
                await client.get_din()
            assert await client.get_din() == LEADER_DIN


class TestConfig:
    """Test config file retrieval."""

    @pytest.mark.asyncio
    async def test_config(self, mocked_api: aioresponses) -> None:
        """Test config.json is fetched from the leader."""
        mocked_api.post(
            LEADER_URL,
            body=reply_frame(
                ConfigRecv(file_text='{"vin": "1232100-00-E--TG"}', name="config.json")
            ),
        )

        async with PowerwallClient(SECRET, din=LEADER_DIN) as client:
            result = await client.config("config.json")

        assert result == b'{"vin": "1232100-00-E--TG"}'

        sent = decode_envelope(recorded_calls(mocked_api, "POST", "/tedapi/v1")[0].kwargs["data"])
        assert sent.sender.is_local
        assert sent.recipient == Participant.device(LEADER_DIN)
        assert sent.tail == 1

    @pytest.mark.asyncio
    async def test_config_without_config_branch(self, mocked_api: aioresponses) -> None:
        """Test a reply without a config branch raises MissingPayloadError."""
        mocked_api.post(LEADER_URL, body=reply_frame(QueryRecv(text="{}")))

        async with PowerwallClient(SECRET, din=LEADER_DIN) as client:
            with pytest.raises(MissingPayloadError, match="no file"):
                await client.config("config.json")

    @pytest.mark.asyncio
    async def test_config_tail_only_reply(self, mocked_api: aioresponses) -> None:
        """Test a frame with no envelope raises MissingPayloadError."""
        mocked_api.post(LEADER_URL, body=_tail_only_frame())

        async with PowerwallClient(SECRET, din=LEADER_DIN) as client:
            with pytest.raises(MissingPayloadError, match="no file"):
                await client.config("config.json")

    @pytest.mark.asyncio
    async def test_config_without_participants(self, mocked_api: aioresponses) -> None:
        """Test file contents are returned when the reply names no participants."""
        message = schema.Message()
        message.message.config.recv.file.text = '{"vin": "x"}'
        message.tail.value = TargetMode.LEADER.tail
        mocked_api.post(LEADER_URL, body=message.SerializeToString())

        async with PowerwallClient(SECRET, din=LEADER_DIN) as client:
            assert await client.config("config.json") == b'{"vin": "x"}'

    @pytest.mark.asyncio
    async def test_config_without_file(self, mocked_api: aioresponses) -> None:
        """Test a config reply without file contents raises MissingPayloadError."""
        mocked_api.post(LEADER_URL, body=reply_frame(ConfigRecv()))

        async with PowerwallClient(SECRET, din=LEADER_DIN) as client:
            with pytest.raises(MissingPayloadError):
                await client.config("config.json")
