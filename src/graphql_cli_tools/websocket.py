"""GraphQL subscriptions over WebSocket (graphql-transport-ws)."""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from enum import Enum
from typing import Any
from typing import Callable
from typing import Dict
from typing import List
from typing import Optional
from typing import Union

import websockets
from websockets.exceptions import ConnectionClosed
from websockets.exceptions import ConnectionClosedOK
from websockets.exceptions import WebSocketException
from websockets.extensions.permessage_deflate import ClientPerMessageDeflateFactory

from graphql_cli_tools.config import WebSocketSettings
from graphql_cli_tools.errors import ConnectionFailureError
from graphql_cli_tools.errors import ConnectionInitError
from graphql_cli_tools.errors import MalformedResponseError
from graphql_cli_tools.models import GRAPHQL_TRANSPORT_WS_PROTOCOL
from graphql_cli_tools.models import MessageType
from graphql_cli_tools.models import OperationRequest
from graphql_cli_tools.models import TransportKind
from graphql_cli_tools.models import parse_envelope
from graphql_cli_tools.sink import ResponseSink
from graphql_cli_tools.sink import deliver

logger = logging.getLogger(__name__)


class SubscriptionState(str, Enum):
    """Progress of a single subscription attempt."""
    IDLE = "idle"
    CONNECTING = "connecting"
    AWAITING_ACK = "awaiting_ack"
    SUBSCRIBING = "subscribing"
    STREAMING = "streaming"
    DONE = "done"


def _new_subscription_id() -> str:
    return str(uuid.uuid4())


class WebSocketExecutor:
    """Run one operation as a graphql-transport-ws subscription.

    Each call to :meth:`execute` is one attempt: connect, ``connection_init``,
    wait for the acknowledgment, ``subscribe`` with a fresh id, then stream
    until ``complete`` or until the server closes the connection. The
    connection is closed on every exit path.
    """

    kind = TransportKind.WEBSOCKET

    def __init__(
        self,
        settings: Optional[WebSocketSettings] = None,
        id_factory: Callable[[], str] = _new_subscription_id,
    ) -> None:
        """Initialize WebSocket executor.

        Args:
            settings: WebSocket settings
            id_factory: Subscription id generator
        """
        self.settings = settings or WebSocketSettings()
        self._id_factory = id_factory
        self.state = SubscriptionState.IDLE
        self.subscription_id: Optional[str] = None

    async def execute(self, request: OperationRequest, sink: ResponseSink) -> None:
        """Run one subscription attempt.

        Args:
            request: Operation to execute
            sink: Response consumer, called once per data-bearing message

        Raises:
            ConnectionFailureError: Connect or send failed, or the connection dropped
            ConnectionInitError: Handshake was not acknowledged
            MalformedResponseError: Inbound message is not a protocol message
            SinkError: Sink rejected a response
        """
        self.subscription_id = None
        websocket = await self._connect(request)
        try:
            await self._initialize(websocket, request)

            self.state = SubscriptionState.SUBSCRIBING
            self.subscription_id = self._id_factory()
            await self._send(websocket, request, {
                "id": self.subscription_id,
                "type": MessageType.SUBSCRIBE.value,
                "payload": request.to_payload(),
            })

            self.state = SubscriptionState.STREAMING
            await self._stream(websocket, request, sink)
            self.state = SubscriptionState.DONE
        finally:
            await self._close(websocket)

    def _connect_kwargs(self) -> Dict[str, Any]:
        extensions: Optional[List[ClientPerMessageDeflateFactory]] = None
        if self.settings.compression:
            extensions = [ClientPerMessageDeflateFactory(client_max_window_bits=True)]

        return {
            "subprotocols": [GRAPHQL_TRANSPORT_WS_PROTOCOL],
            "compression": None,
            "extensions": extensions,
            "open_timeout": self.settings.open_timeout,
            "ping_interval": self.settings.ping_interval,
            "max_size": self.settings.max_message_size,
        }

    async def _connect(self, request: OperationRequest) -> Any:
        self.state = SubscriptionState.CONNECTING
        logger.info(f"Connecting to WebSocket: {request.endpoint}")
        try:
            websocket = await websockets.connect(
                request.endpoint,
                additional_headers=list(request.headers),
                **self._connect_kwargs(),
            )
        except (WebSocketException, OSError, asyncio.TimeoutError) as e:
            raise ConnectionFailureError(
                f"WebSocket connection failed: {e}",
                endpoint=request.endpoint,
                details={"state": self.state.value},
            ) from e

        logger.info(
            f"WebSocket connected (subprotocol: {getattr(websocket, 'subprotocol', None)})"
        )
        return websocket

    async def _initialize(self, websocket: Any, request: OperationRequest) -> None:
        """Send ``connection_init`` and wait for the acknowledgment."""
        await self._send(websocket, request, {
            "type": MessageType.CONNECTION_INIT.value,
            "payload": {},
        })

        self.state = SubscriptionState.AWAITING_ACK
        try:
            if self.settings.ack_timeout is None:
                message = await websocket.recv()
            else:
                message = await asyncio.wait_for(websocket.recv(), self.settings.ack_timeout)
        except WebSocketException as e:
            raise ConnectionInitError(
                f"Connection ended before acknowledgment: {e}",
                details={"state": self.state.value},
            ) from e
        except asyncio.TimeoutError:
            raise ConnectionInitError(
                f"No acknowledgment within {self.settings.ack_timeout}s",
                details={"state": self.state.value},
            ) from None

        if self.settings.strict_ack:
            self._check_ack(message)

        logger.debug("Connection acknowledged")

    def _check_ack(self, message: Union[str, bytes]) -> None:
        text = _as_text(message)
        message_type = None
        if text is not None:
            try:
                message_type = parse_envelope(text).type
            except MalformedResponseError:
                pass

        if message_type != MessageType.CONNECTION_ACK.value:
            raise ConnectionInitError(
                f"Expected {MessageType.CONNECTION_ACK.value}, got: {message!r}",
                details={"state": self.state.value},
            )

    async def _send(
        self,
        websocket: Any,
        request: OperationRequest,
        message: Dict[str, Any],
    ) -> None:
        """Send a protocol message.

        Raises:
            ConnectionFailureError: Connection error
        """
        try:
            await websocket.send(json.dumps(message))
            logger.debug(f"Sent message: {message.get('type', 'unknown')}")
        except WebSocketException as e:
            raise ConnectionFailureError(
                f"Send failed: {e}",
                endpoint=request.endpoint,
                details={"state": self.state.value},
            ) from e

    async def _stream(
        self,
        websocket: Any,
        request: OperationRequest,
        sink: ResponseSink,
    ) -> None:
        """Read messages until the subscription completes."""
        while True:
            try:
                message = await websocket.recv()
            except ConnectionClosedOK as e:
                logger.info(f"WebSocket closed by server: {e}")
                return
            except ConnectionClosed as e:
                raise ConnectionFailureError(
                    f"WebSocket connection lost: {e}",
                    endpoint=request.endpoint,
                    details={"state": self.state.value},
                ) from e
            except WebSocketException as e:
                logger.warning(f"WebSocket receive error: {e}")
                continue

            text = _as_text(message)
            if text is None:
                logger.warning("Invalid message received from websocket")
                continue

            envelope = parse_envelope(text)
            if envelope.id is not None and envelope.id != self.subscription_id:
                logger.debug(f"Message for unknown subscription {envelope.id}")

            if not envelope.is_control:
                await deliver(sink, envelope.payload)
                if envelope.type == MessageType.ERROR.value:
                    logger.info(f"Subscription {self.subscription_id} terminated by server error")
                    return
                continue

            logger.info(f"Control message received:\n{envelope.to_json()}")
            if envelope.type == MessageType.PING.value:
                await self._send(websocket, request, {"type": MessageType.PONG.value})
            elif envelope.type == MessageType.COMPLETE.value:
                return

    async def _close(self, websocket: Any) -> None:
        try:
            await websocket.close()
        except (WebSocketException, OSError) as e:
            logger.warning(f"Error closing WebSocket: {e}")


def _as_text(message: Union[str, bytes]) -> Optional[str]:
    """Return the frame as text, or None when it is not valid UTF-8."""
    if isinstance(message, str):
        return message
    try:
        return bytes(message).decode("utf-8")
    except UnicodeDecodeError:
        return None
