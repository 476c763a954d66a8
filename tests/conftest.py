"""Test configuration and fixtures."""

import json
from typing import Any
from typing import List
from unittest.mock import AsyncMock
from unittest.mock import MagicMock

import httpx
import pytest
from websockets.exceptions import ConnectionClosedOK
from websockets.frames import Close

from graphql_cli_tools.config import ClientSettings
from graphql_cli_tools.config import HTTPSettings
from graphql_cli_tools.config import WebSocketSettings
from graphql_cli_tools.models import OperationRequest
from graphql_cli_tools.sink import CollectingSink


class FakeWebSocket:
    """Scripted stand-in for a websockets client connection.

    ``incoming`` items are returned by ``recv`` in order: dicts are sent as
    JSON text, str/bytes as-is, exceptions are raised. Once exhausted the
    server closes the connection normally.
    """

    def __init__(self, incoming: List[Any], subprotocol: str = "graphql-transport-ws"):
        self.incoming = list(incoming)
        self.sent: List[dict] = []
        self.closed = False
        self.subprotocol = subprotocol

    async def send(self, message: str) -> None:
        self.sent.append(json.loads(message))

    async def recv(self) -> Any:
        if not self.incoming:
            raise ConnectionClosedOK(Close(1000, ""), Close(1000, ""), True)
        item = self.incoming.pop(0)
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, dict):
            return json.dumps(item)
        return item

    async def close(self) -> None:
        self.closed = True

    def sent_of_type(self, message_type: str) -> List[dict]:
        return [message for message in self.sent if message.get("type") == message_type]


@pytest.fixture
def settings():
    """Client settings fixture."""
    return ClientSettings(
        http=HTTPSettings(timeout=10.0, user_agent="test-agent/1.0.0"),
        websocket=WebSocketSettings(),
    )


@pytest.fixture
def http_request():
    """HTTP operation request fixture."""
    return OperationRequest(
        endpoint="http://localhost:8000/api/graphql",
        query="query Hello { hello }",
        operation_name="Hello",
        variables={"limit": 10},
        headers=[("Authorization", "Bearer token"), ("X-Trace", "a"), ("X-Trace", "b")],
    )


@pytest.fixture
def ws_request():
    """WebSocket operation request fixture."""
    return OperationRequest(
        endpoint="ws://localhost:8000/api/graphql",
        query="subscription OnTick { tick }",
        operation_name="OnTick",
        variables={},
        headers=[("Authorization", "Bearer token")],
    )


@pytest.fixture
def collecting_sink():
    """Sink that keeps delivered responses."""
    return CollectingSink()


@pytest.fixture
def query_file(tmp_path):
    """Query document on disk."""
    path = tmp_path / "hello.graphql"
    path.write_text("query { hello }", encoding="utf-8")
    return path


@pytest.fixture
def mock_httpx_response():
    """Mock httpx response fixture."""
    response = MagicMock(spec=httpx.Response)
    response.status_code = 200
    response.headers = {}
    response.content = b'{"data": {"hello": "world"}}'
    return response


@pytest.fixture
def mock_httpx_client(mock_httpx_response):
    """Mock httpx client fixture."""
    client = AsyncMock(spec=httpx.AsyncClient)
    client.post.return_value = mock_httpx_response
    return client


def ack() -> dict:
    return {"type": "connection_ack"}


def next_message(data: Any, subscription_id: str = "sub") -> dict:
    return {"id": subscription_id, "type": "next", "payload": {"data": data}}


def complete(subscription_id: str = "sub") -> dict:
    return {"id": subscription_id, "type": "complete"}
