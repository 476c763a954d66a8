"""Top-level entry points for executing a GraphQL operation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from typing import Dict
from typing import Iterable
from typing import Optional
from typing import Tuple
from typing import Union

from graphql_cli_tools.config import ClientSettings
from graphql_cli_tools.loaders import load_query
from graphql_cli_tools.models import OperationRequest
from graphql_cli_tools.models import ReconnectPolicy
from graphql_cli_tools.reconnect import ExecutionOutcome
from graphql_cli_tools.reconnect import ReconnectDriver
from graphql_cli_tools.reconnect import SleepFunc
from graphql_cli_tools.sink import AsyncResponseHandler
from graphql_cli_tools.sink import CallbackSink
from graphql_cli_tools.sink import ResponseHandler
from graphql_cli_tools.sink import ResponseSink
from graphql_cli_tools.transport import create_executor

logger = logging.getLogger(__name__)

SinkLike = Union[ResponseSink, ResponseHandler, AsyncResponseHandler]


def _as_sink(sink: SinkLike) -> ResponseSink:
    if hasattr(sink, "accept"):
        return sink  # type: ignore[return-value]
    return CallbackSink(sink)  # type: ignore[arg-type]


async def execute(
    endpoint: str,
    query: str,
    sink: SinkLike,
    *,
    headers: Iterable[Tuple[str, str]] = (),
    operation_name: Optional[str] = None,
    variables: Optional[Dict[str, Any]] = None,
    reconnect_interval: Optional[float] = None,
    settings: Optional[ClientSettings] = None,
    sleep: Optional[SleepFunc] = None,
) -> ExecutionOutcome:
    """Execute a GraphQL operation over HTTP or WebSocket.

    The transport is chosen from the endpoint scheme. Every parsed response
    is handed to ``sink``. When ``reconnect_interval`` (seconds) is set,
    failed attempts are retried indefinitely at that interval.

    Args:
        endpoint: ``http(s)://`` or ``ws(s)://`` endpoint
        query: GraphQL document
        sink: Response sink, or a plain/async callable taking a response
        headers: HTTP headers; repeated names are all sent
        operation_name: Operation to execute
        variables: Operation variables
        reconnect_interval: Seconds between attempts; None for a single attempt
        settings: Client settings
        sleep: Wait coroutine used between attempts

    Returns:
        Outcome of the last attempt

    Raises:
        InvalidEndpointSchemeError: Endpoint scheme is not supported
    """
    settings = settings or ClientSettings()
    executor = create_executor(endpoint, settings)

    request = OperationRequest(
        endpoint=endpoint,
        query=query,
        operation_name=operation_name,
        variables=variables or {},
        headers=list(headers),
    )
    if reconnect_interval is None:
        reconnect_interval = settings.reconnect_interval
    policy = ReconnectPolicy(interval=reconnect_interval)

    driver = ReconnectDriver(executor, policy, sleep=sleep)
    return await driver.run(request, _as_sink(sink))


async def execute_from_files(
    endpoint: str,
    query_path: Union[str, Path],
    sink: SinkLike,
    **kwargs: Any,
) -> ExecutionOutcome:
    """Load the query document from a file, then :func:`execute` it."""
    query = load_query(query_path)
    return await execute(endpoint, query, sink, **kwargs)
