"""
Transport selection.

The endpoint scheme decides the transport once, before any network I/O:
``http://`` and ``https://`` run the operation as a single HTTP request,
``ws://`` and ``wss://`` run it as a graphql-transport-ws subscription.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Union

from .config import ClientSettings
from .errors import InvalidEndpointSchemeError
from .http import HTTPExecutor
from .models import OperationRequest, TransportKind
from .sink import ResponseSink
from .websocket import WebSocketExecutor

logger = logging.getLogger(__name__)

HTTP_SCHEMES = ("http://", "https://")
WEBSOCKET_SCHEMES = ("ws://", "wss://")


class Executor(Protocol):
    """One attempt at running an operation."""

    kind: TransportKind

    async def execute(self, request: OperationRequest, sink: ResponseSink) -> None:
        ...


AnyExecutor = Union[HTTPExecutor, WebSocketExecutor]


def classify_endpoint(endpoint: str) -> TransportKind:
    """Pick the transport for an endpoint from its scheme.

    Raises:
        InvalidEndpointSchemeError: Scheme is not http(s) or ws(s)
    """
    if endpoint.startswith(HTTP_SCHEMES):
        return TransportKind.HTTP
    if endpoint.startswith(WEBSOCKET_SCHEMES):
        return TransportKind.WEBSOCKET
    raise InvalidEndpointSchemeError(endpoint)


def create_executor(endpoint: str, settings: Optional[ClientSettings] = None) -> AnyExecutor:
    """Create the executor matching the endpoint scheme.

    Args:
        endpoint: Server endpoint
        settings: Client settings

    Returns:
        HTTP or WebSocket executor

    Raises:
        InvalidEndpointSchemeError: Scheme is not http(s) or ws(s)
    """
    settings = settings or ClientSettings()
    kind = classify_endpoint(endpoint)
    logger.debug(f"Using {kind.value} transport for {endpoint}")

    if kind == TransportKind.HTTP:
        return HTTPExecutor(settings.http)
    return WebSocketExecutor(settings.websocket)
