"""Tests for the WebSocket subscription executor."""

import logging
import uuid
from unittest.mock import AsyncMock
from unittest.mock import MagicMock
from unittest.mock import patch

import pytest
from websockets.exceptions import ConnectionClosedError
from websockets.exceptions import InvalidURI
from websockets.extensions.permessage_deflate import ClientPerMessageDeflateFactory

from conftest import FakeWebSocket
from conftest import ack
from conftest import complete
from conftest import next_message
from graphql_cli_tools.config import WebSocketSettings
from graphql_cli_tools.errors import ConnectionFailureError
from graphql_cli_tools.errors import ConnectionInitError
from graphql_cli_tools.errors import MalformedResponseError
from graphql_cli_tools.errors import SinkError
from graphql_cli_tools.models import TransportKind
from graphql_cli_tools.websocket import SubscriptionState
from graphql_cli_tools.websocket import WebSocketExecutor


class TestHandshake:
    """Test connection and connection_init handshake."""

    @pytest.mark.asyncio
    async def test_connect_arguments(self, ws_request, collecting_sink):
        """Test subprotocol, headers and compression are negotiated."""
        fake = FakeWebSocket([ack(), complete()])

        with patch("websockets.connect", AsyncMock(return_value=fake)) as mock_connect:
            await WebSocketExecutor().execute(ws_request, collecting_sink)

        args, kwargs = mock_connect.call_args
        assert args == ("ws://localhost:8000/api/graphql",)
        assert kwargs["subprotocols"] == ["graphql-transport-ws"]
        assert kwargs["additional_headers"] == [("Authorization", "Bearer token")]

        extensions = kwargs["extensions"]
        assert len(extensions) == 1
        assert isinstance(extensions[0], ClientPerMessageDeflateFactory)
        assert ("client_max_window_bits", None) in extensions[0].get_request_params()
        assert kwargs["max_size"] == 64 * 1024 * 1024

    @pytest.mark.asyncio
    async def test_compression_disabled(self, ws_request, collecting_sink):
        """Test no extension is offered when compression is off."""
        fake = FakeWebSocket([ack(), complete()])
        executor = WebSocketExecutor(WebSocketSettings(compression=False))

        with patch("websockets.connect", AsyncMock(return_value=fake)) as mock_connect:
            await executor.execute(ws_request, collecting_sink)

        assert mock_connect.call_args[1]["extensions"] is None

    @pytest.mark.asyncio
    async def test_message_sequence(self, ws_request, collecting_sink):
        """Test connection_init then subscribe with the operation."""
        fake = FakeWebSocket([ack(), complete()])

        with patch("websockets.connect", AsyncMock(return_value=fake)):
            executor = WebSocketExecutor()
            await executor.execute(ws_request, collecting_sink)

        assert fake.sent[0] == {"type": "connection_init", "payload": {}}
        subscribe = fake.sent[1]
        assert subscribe["type"] == "subscribe"
        assert subscribe["id"] == executor.subscription_id
        assert uuid.UUID(subscribe["id"]).version == 4
        assert subscribe["payload"] == {
            "operationName": "OnTick",
            "query": "subscription OnTick { tick }",
            "variables": {},
        }
        assert executor.state == SubscriptionState.DONE
        assert fake.closed

    @pytest.mark.asyncio
    async def test_connect_failure(self, ws_request, collecting_sink):
        """Test connection errors become ConnectionFailureError."""
        with patch("websockets.connect", AsyncMock(side_effect=OSError("Connection refused"))):
            with pytest.raises(ConnectionFailureError) as exc_info:
                await WebSocketExecutor().execute(ws_request, collecting_sink)

        assert exc_info.value.details["state"] == "connecting"
        assert exc_info.value.endpoint == "ws://localhost:8000/api/graphql"

    @pytest.mark.asyncio
    async def test_invalid_uri(self, ws_request, collecting_sink):
        """Test websockets handshake errors are connection failures."""
        error = InvalidURI("ws://", "bad uri")

        with patch("websockets.connect", AsyncMock(side_effect=error)):
            with pytest.raises(ConnectionFailureError):
                await WebSocketExecutor().execute(ws_request, collecting_sink)

    @pytest.mark.asyncio
    async def test_closed_before_ack(self, ws_request, collecting_sink):
        """Test closure before the acknowledgment is a ConnectionInitError."""
        fake = FakeWebSocket([])

        with patch("websockets.connect", AsyncMock(return_value=fake)):
            with pytest.raises(ConnectionInitError):
                await WebSocketExecutor().execute(ws_request, collecting_sink)

        assert fake.closed
        assert fake.sent_of_type("subscribe") == []

    @pytest.mark.asyncio
    async def test_ack_content_not_validated(self, ws_request, collecting_sink):
        """Test any first message counts as acknowledgment by default."""
        fake = FakeWebSocket([{"type": "ka"}, next_message(1), complete()])

        with patch("websockets.connect", AsyncMock(return_value=fake)):
            await WebSocketExecutor().execute(ws_request, collecting_sink)

        assert [response.data for response in collecting_sink.responses] == [1]

    @pytest.mark.asyncio
    async def test_strict_ack_rejects_other_message(self, ws_request, collecting_sink):
        """Test strict mode requires connection_ack."""
        fake = FakeWebSocket([{"type": "ka"}, complete()])
        executor = WebSocketExecutor(WebSocketSettings(strict_ack=True))

        with patch("websockets.connect", AsyncMock(return_value=fake)):
            with pytest.raises(ConnectionInitError):
                await executor.execute(ws_request, collecting_sink)

        assert fake.closed

    @pytest.mark.asyncio
    async def test_strict_ack_accepts_connection_ack(self, ws_request, collecting_sink):
        """Test strict mode proceeds on connection_ack."""
        fake = FakeWebSocket([ack(), complete()])
        executor = WebSocketExecutor(WebSocketSettings(strict_ack=True))

        with patch("websockets.connect", AsyncMock(return_value=fake)):
            await executor.execute(ws_request, collecting_sink)

        assert len(fake.sent_of_type("subscribe")) == 1


class TestStreaming:
    """Test the subscription read loop."""

    @pytest.mark.asyncio
    async def test_two_responses_then_complete(self, ws_request, collecting_sink):
        """Test each next message reaches the sink in order."""
        fake = FakeWebSocket([
            ack(),
            next_message({"tick": 1}),
            next_message({"tick": 2}),
            complete(),
            next_message({"tick": 3}),
        ])

        with patch("websockets.connect", AsyncMock(return_value=fake)):
            await WebSocketExecutor().execute(ws_request, collecting_sink)

        assert [response.data for response in collecting_sink.responses] == [{"tick": 1}, {"tick": 2}]
        assert fake.closed

    @pytest.mark.asyncio
    async def test_server_close_ends_attempt(self, ws_request, collecting_sink):
        """Test a normal close without complete ends successfully."""
        fake = FakeWebSocket([ack(), next_message("only")])

        with patch("websockets.connect", AsyncMock(return_value=fake)):
            await WebSocketExecutor().execute(ws_request, collecting_sink)

        assert len(collecting_sink.responses) == 1

    @pytest.mark.asyncio
    async def test_connection_lost(self, ws_request, collecting_sink):
        """Test an abnormal close fails the attempt."""
        fake = FakeWebSocket([ack(), next_message(1), ConnectionClosedError(None, None)])

        with patch("websockets.connect", AsyncMock(return_value=fake)):
            with pytest.raises(ConnectionFailureError) as exc_info:
                await WebSocketExecutor().execute(ws_request, collecting_sink)

        assert exc_info.value.details["state"] == "streaming"
        assert len(collecting_sink.responses) == 1
        assert fake.closed

    @pytest.mark.asyncio
    async def test_undecodable_frame_skipped(self, ws_request, collecting_sink, caplog):
        """Test binary frames that are not UTF-8 are skipped."""
        fake = FakeWebSocket([ack(), b"\xff\xfe\xfd", next_message(1), complete()])

        with caplog.at_level(logging.WARNING, logger="graphql_cli_tools.websocket"):
            with patch("websockets.connect", AsyncMock(return_value=fake)):
                await WebSocketExecutor().execute(ws_request, collecting_sink)

        assert [response.data for response in collecting_sink.responses] == [1]
        assert "Invalid message received from websocket" in caplog.text

    @pytest.mark.asyncio
    async def test_utf8_binary_frame_accepted(self, ws_request, collecting_sink):
        """Test binary frames holding UTF-8 JSON are decoded."""
        fake = FakeWebSocket([ack(), b'{"id": "s", "type": "next", "payload": {"data": 7}}', complete()])

        with patch("websockets.connect", AsyncMock(return_value=fake)):
            await WebSocketExecutor().execute(ws_request, collecting_sink)

        assert collecting_sink.responses[0].data == 7

    @pytest.mark.asyncio
    async def test_malformed_message(self, ws_request, collecting_sink):
        """Test a text frame that is not a protocol message fails the attempt."""
        fake = FakeWebSocket([ack(), "not json", complete()])

        with patch("websockets.connect", AsyncMock(return_value=fake)):
            with pytest.raises(MalformedResponseError):
                await WebSocketExecutor().execute(ws_request, collecting_sink)

        assert fake.closed

    @pytest.mark.asyncio
    async def test_sink_failure_aborts_attempt(self, ws_request):
        """Test a sink error stops the stream and closes the connection."""
        fake = FakeWebSocket([ack(), next_message(1), next_message(2), complete()])
        sink = MagicMock()
        sink.accept.side_effect = RuntimeError("disk full")

        with patch("websockets.connect", AsyncMock(return_value=fake)):
            with pytest.raises(SinkError):
                await WebSocketExecutor().execute(ws_request, sink)

        sink.accept.assert_called_once()
        assert fake.closed

    @pytest.mark.asyncio
    async def test_control_error_without_payload_is_logged(self, ws_request, collecting_sink, caplog):
        """Test bare error frames are logged and the stream continues."""
        fake = FakeWebSocket([ack(), {"id": "s", "type": "error"}, next_message(1), complete()])

        with caplog.at_level(logging.INFO, logger="graphql_cli_tools.websocket"):
            with patch("websockets.connect", AsyncMock(return_value=fake)):
                await WebSocketExecutor().execute(ws_request, collecting_sink)

        assert len(collecting_sink.responses) == 1
        assert "Control message received" in caplog.text

    @pytest.mark.asyncio
    async def test_error_payload_delivered_and_terminates(self, ws_request, collecting_sink):
        """Test error frames with GraphQL errors reach the sink and end the attempt."""
        fake = FakeWebSocket([
            ack(),
            {"id": "s", "type": "error", "payload": [{"message": "Unknown field"}]},
            next_message("never"),
        ])

        with patch("websockets.connect", AsyncMock(return_value=fake)):
            await WebSocketExecutor().execute(ws_request, collecting_sink)

        assert len(collecting_sink.responses) == 1
        assert collecting_sink.responses[0].errors == [{"message": "Unknown field"}]

    @pytest.mark.asyncio
    async def test_ping_answered_with_pong(self, ws_request, collecting_sink):
        """Test server pings are answered."""
        fake = FakeWebSocket([ack(), {"type": "ping"}, complete()])

        with patch("websockets.connect", AsyncMock(return_value=fake)):
            await WebSocketExecutor().execute(ws_request, collecting_sink)

        assert fake.sent[-1] == {"type": "pong"}

    @pytest.mark.asyncio
    async def test_responses_with_errors_still_delivered(self, ws_request, collecting_sink):
        """Test GraphQL errors in next payloads do not stop the stream."""
        fake = FakeWebSocket([
            ack(),
            {"id": "s", "type": "next", "payload": {"data": None, "errors": [{"message": "x"}]}},
            next_message(2),
            complete(),
        ])

        with patch("websockets.connect", AsyncMock(return_value=fake)):
            await WebSocketExecutor().execute(ws_request, collecting_sink)

        assert len(collecting_sink.responses) == 2


class TestSubscriptionIds:
    """Test subscription id generation."""

    def test_kind(self):
        """Test executor transport kind."""
        assert WebSocketExecutor().kind == TransportKind.WEBSOCKET

    @pytest.mark.asyncio
    async def test_fresh_id_per_attempt(self, ws_request, collecting_sink):
        """Test consecutive attempts never reuse an id."""
        first = FakeWebSocket([ack(), ConnectionClosedError(None, None)])
        second = FakeWebSocket([ack(), complete()])
        executor = WebSocketExecutor()

        with patch("websockets.connect", AsyncMock(side_effect=[first, second])):
            with pytest.raises(ConnectionFailureError):
                await executor.execute(ws_request, collecting_sink)
            await executor.execute(ws_request, collecting_sink)

        first_id = first.sent_of_type("subscribe")[0]["id"]
        second_id = second.sent_of_type("subscribe")[0]["id"]
        assert first_id != second_id
        assert first.closed and second.closed

    @pytest.mark.asyncio
    async def test_custom_id_factory(self, ws_request, collecting_sink):
        """Test ids come from the configured factory."""
        ids = iter(["one", "two"])
        fake = FakeWebSocket([ack(), complete("one")])

        with patch("websockets.connect", AsyncMock(return_value=fake)):
            await WebSocketExecutor(id_factory=lambda: next(ids)).execute(ws_request, collecting_sink)

        assert fake.sent_of_type("subscribe")[0]["id"] == "one"
