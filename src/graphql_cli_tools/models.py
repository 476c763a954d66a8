"""Pydantic models for GraphQL operations and their wire envelopes."""

from __future__ import annotations

from enum import Enum
from typing import Any
from typing import Dict
from typing import List
from typing import Optional
from typing import Tuple
from typing import Union

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError
from pydantic import field_validator
from pydantic import model_serializer
from pydantic import model_validator

from graphql_cli_tools.errors import MalformedResponseError

GRAPHQL_TRANSPORT_WS_PROTOCOL = "graphql-transport-ws"


class GraphQLBaseModel(BaseModel):
    """Base model with common configuration."""

    model_config = ConfigDict(
        # Use enum values instead of enum objects
        use_enum_values=True,
        populate_by_name=True,
        # Servers may add fields we do not model
        extra="ignore",
    )


# ============================================================================
# Enums
# ============================================================================

class TransportKind(str, Enum):
    """Transport selected from the endpoint scheme."""
    HTTP = "http"
    WEBSOCKET = "websocket"


class MessageType(str, Enum):
    """graphql-transport-ws message types."""
    CONNECTION_INIT = "connection_init"
    CONNECTION_ACK = "connection_ack"
    PING = "ping"
    PONG = "pong"
    SUBSCRIBE = "subscribe"
    NEXT = "next"
    ERROR = "error"
    COMPLETE = "complete"


# ============================================================================
# Response Models
# ============================================================================

class GraphQLResponse(GraphQLBaseModel):
    """GraphQL response envelope.

    ``extensions`` and ``errors`` always hold a collection after parsing and
    are left out of the serialized form when empty.
    """
    data: Optional[Any] = Field(None, description="Operation result")
    extensions: Dict[str, Any] = Field(default_factory=dict, description="Server extensions")
    errors: List[Dict[str, Any]] = Field(default_factory=list, description="GraphQL errors")

    @field_validator("extensions", "errors", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any, info: Any) -> Any:
        if value is None:
            return {} if info.field_name == "extensions" else []
        return value

    @model_serializer(mode="wrap")
    def _omit_empty_collections(self, handler: Any) -> Dict[str, Any]:
        serialized = handler(self)
        for key in ("extensions", "errors"):
            if not serialized.get(key):
                serialized.pop(key, None)
        return serialized

    @property
    def has_errors(self) -> bool:
        """Whether the server reported GraphQL errors."""
        return bool(self.errors)

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialize the response as JSON text."""
        return self.model_dump_json(indent=indent)


class WebSocketEnvelope(GraphQLBaseModel):
    """Inbound graphql-transport-ws message."""
    type: str = Field(..., description="Message type")
    id: Optional[str] = Field(None, description="Operation identifier")
    payload: Optional[GraphQLResponse] = Field(None, description="Response payload")

    @model_validator(mode="before")
    @classmethod
    def _wrap_error_list(cls, data: Any) -> Any:
        # `error` messages carry a bare list of GraphQL errors
        if isinstance(data, dict) and isinstance(data.get("payload"), list):
            data = {**data, "payload": {"errors": data["payload"]}}
        return data

    @property
    def is_control(self) -> bool:
        """Whether the message carries no response payload."""
        return self.payload is None

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialize the envelope as JSON text, without empty fields."""
        return self.model_dump_json(indent=indent, exclude_none=True)


# ============================================================================
# Request Models
# ============================================================================

class OperationRequest(GraphQLBaseModel):
    """A single GraphQL operation to execute against an endpoint."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    endpoint: str = Field(..., description="Server endpoint URI")
    query: str = Field(..., description="GraphQL document")
    operation_name: Optional[str] = Field(None, description="Operation to execute")
    variables: Dict[str, Any] = Field(default_factory=dict, description="Operation variables")
    headers: List[Tuple[str, str]] = Field(
        default_factory=list,
        description="HTTP headers; repeated names are all sent",
    )

    def to_payload(self) -> Dict[str, Any]:
        """Build the GraphQL request body."""
        return {
            "operationName": self.operation_name,
            "query": self.query,
            "variables": dict(self.variables),
        }


class ReconnectPolicy(GraphQLBaseModel):
    """Fixed-interval reconnect policy."""
    interval: Optional[float] = Field(
        None,
        ge=0,
        description="Seconds to wait before retrying; None runs a single attempt",
    )

    @property
    def enabled(self) -> bool:
        """Whether failed attempts are retried."""
        return self.interval is not None


# ============================================================================
# Parsing helpers
# ============================================================================

def parse_graphql_response(raw: Union[str, bytes]) -> GraphQLResponse:
    """Parse raw JSON into a GraphQL response.

    Raises:
        MalformedResponseError: Payload is not a GraphQL response
    """
    try:
        return GraphQLResponse.model_validate_json(raw)
    except ValidationError as e:
        raise MalformedResponseError(f"Failed to parse GraphQL response: {e}", data=raw) from e


def parse_envelope(raw: Union[str, bytes]) -> WebSocketEnvelope:
    """Parse raw JSON into a WebSocket envelope.

    Raises:
        MalformedResponseError: Payload is not a graphql-transport-ws message
    """
    try:
        return WebSocketEnvelope.model_validate_json(raw)
    except ValidationError as e:
        raise MalformedResponseError(f"Failed to parse WebSocket message: {e}", data=raw) from e
