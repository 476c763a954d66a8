"""Single-shot GraphQL execution over HTTP."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from graphql_cli_tools.config import HTTPSettings
from graphql_cli_tools.errors import ConnectionFailureError
from graphql_cli_tools.models import OperationRequest
from graphql_cli_tools.models import TransportKind
from graphql_cli_tools.models import parse_graphql_response
from graphql_cli_tools.sink import ResponseSink
from graphql_cli_tools.sink import deliver

logger = logging.getLogger(__name__)


class HTTPExecutor:
    """Run one operation as a single ``POST`` request."""

    kind = TransportKind.HTTP

    def __init__(self, settings: Optional[HTTPSettings] = None) -> None:
        """Initialize HTTP executor.

        Args:
            settings: HTTP settings
        """
        self.settings = settings or HTTPSettings()

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.timeout),
            headers={"User-Agent": self.settings.user_agent},
            follow_redirects=True,
        )

    async def execute(self, request: OperationRequest, sink: ResponseSink) -> None:
        """Execute the operation and deliver the response to the sink.

        The sink is called exactly once when the server reply parses as a
        GraphQL response. The HTTP status is not interpreted: GraphQL servers
        commonly answer with an error body on non-2xx statuses.

        Args:
            request: Operation to execute
            sink: Response consumer

        Raises:
            ConnectionFailureError: Transport error
            MalformedResponseError: Body is not a GraphQL response
            SinkError: Sink rejected the response
        """
        client = self._build_client()
        try:
            try:
                response = await client.post(
                    request.endpoint,
                    json=request.to_payload(),
                    headers=list(request.headers),
                )
            except httpx.HTTPError as e:
                raise ConnectionFailureError(
                    f"HTTP request failed: {e}",
                    endpoint=request.endpoint,
                ) from e

            logger.debug(f"POST {request.endpoint} -> {response.status_code}")

            graphql_response = parse_graphql_response(response.content)
            await deliver(sink, graphql_response)
        finally:
            await client.aclose()
