"""graphql-cli-tools - Execute GraphQL operations over HTTP and WebSocket."""

__version__ = "0.1.0"

from .client import execute, execute_from_files
from .errors import GraphQLClientError, InvalidEndpointSchemeError
from .models import GraphQLResponse, OperationRequest, ReconnectPolicy
from .reconnect import ExecutionOutcome, ReconnectDriver
from .sink import JSONPrintSink, ResponseSink
from .transport import classify_endpoint, create_executor

__all__ = [
    "execute",
    "execute_from_files",
    "GraphQLClientError",
    "InvalidEndpointSchemeError",
    "GraphQLResponse",
    "OperationRequest",
    "ReconnectPolicy",
    "ExecutionOutcome",
    "ReconnectDriver",
    "JSONPrintSink",
    "ResponseSink",
    "classify_endpoint",
    "create_executor",
    "__version__",
]
