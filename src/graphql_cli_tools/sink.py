"""Response sinks: consumers of parsed GraphQL responses."""

from __future__ import annotations

import inspect
import logging
import sys
from typing import Any
from typing import Awaitable
from typing import Callable
from typing import List
from typing import Optional
from typing import Protocol
from typing import TextIO
from typing import Union
from typing import runtime_checkable

from graphql_cli_tools.errors import SinkError
from graphql_cli_tools.models import GraphQLResponse

logger = logging.getLogger(__name__)

ResponseHandler = Callable[[GraphQLResponse], None]
AsyncResponseHandler = Callable[[GraphQLResponse], Awaitable[None]]


@runtime_checkable
class ResponseSink(Protocol):
    """Consumer of every successfully parsed response.

    ``accept`` may be a plain method or a coroutine. It is called once per
    HTTP attempt and once per data-bearing WebSocket message, in arrival
    order, and never concurrently. Raising rejects the response and fails
    the current attempt.
    """

    def accept(self, response: GraphQLResponse) -> Any:
        ...


class CallbackSink:
    """Adapt a plain or async callable to the sink interface."""

    def __init__(self, handler: Union[ResponseHandler, AsyncResponseHandler]) -> None:
        self.handler = handler

    async def accept(self, response: GraphQLResponse) -> None:
        result = self.handler(response)
        if inspect.isawaitable(result):
            await result


class JSONPrintSink:
    """Write each response as pretty-printed JSON."""

    def __init__(self, stream: Optional[TextIO] = None, indent: int = 2) -> None:
        """Initialize print sink.

        Args:
            stream: Output stream (default: stdout at call time)
            indent: JSON indentation
        """
        self.stream = stream
        self.indent = indent

    def accept(self, response: GraphQLResponse) -> None:
        stream = self.stream or sys.stdout
        stream.write(response.to_json(indent=self.indent))
        stream.write("\n")
        stream.flush()


class CollectingSink:
    """Keep every response in memory."""

    def __init__(self) -> None:
        self.responses: List[GraphQLResponse] = []

    def accept(self, response: GraphQLResponse) -> None:
        self.responses.append(response)


async def deliver(sink: ResponseSink, response: GraphQLResponse) -> None:
    """Hand a response to the sink.

    Raises:
        SinkError: The sink raised while processing the response
    """
    try:
        result = sink.accept(response)
        if inspect.isawaitable(result):
            await result
    except SinkError:
        raise
    except Exception as e:
        logger.debug(f"Sink {type(sink).__name__} rejected response: {e}")
        raise SinkError(f"Response sink failed: {e}") from e
