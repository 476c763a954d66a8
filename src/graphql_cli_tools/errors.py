"""Exception classes for graphql-cli-tools."""

from __future__ import annotations

from typing import Any
from typing import Dict
from typing import Optional


class GraphQLClientError(Exception):
    """Base exception for all graphql-cli-tools errors."""

    retryable = True

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize client error.

        Args:
            message: Error message
            error_code: Optional error code
            details: Optional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        """String representation of the error."""
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message

    def __repr__(self) -> str:
        """Detailed representation of the error."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class InvalidEndpointSchemeError(GraphQLClientError):
    """Endpoint scheme is neither http(s) nor ws(s)."""

    retryable = False

    def __init__(
        self,
        endpoint: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize invalid scheme error.

        Args:
            endpoint: Offending endpoint
            details: Optional error details
        """
        super().__init__(
            f"Invalid server endpoint scheme: {endpoint!r} "
            "(expected http://, https://, ws:// or wss://)",
            "INVALID_ENDPOINT_SCHEME",
            details,
        )
        self.endpoint = endpoint


class ConnectionFailureError(GraphQLClientError):
    """Transport-level connect, send or receive failure."""

    def __init__(
        self,
        message: str = "Connection failed",
        endpoint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize connection failure.

        Args:
            message: Error message
            endpoint: Endpoint the failure relates to
            details: Optional error details
        """
        super().__init__(message, "CONNECTION_FAILURE", details)
        self.endpoint = endpoint

    def __str__(self) -> str:
        """String representation of the connection failure."""
        base = super().__str__()
        if self.endpoint:
            return f"{base} (endpoint: {self.endpoint})"
        return base


class ConnectionInitError(GraphQLClientError):
    """The connection_init handshake was not acknowledged."""

    def __init__(
        self,
        message: str = "Connection init was not acknowledged",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, "CONNECTION_INIT_ERROR", details)


class MalformedResponseError(GraphQLClientError):
    """Payload did not match the expected response shape."""

    def __init__(
        self,
        message: str,
        data: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize malformed response error.

        Args:
            message: Error message
            data: Raw payload that failed to parse
            details: Optional error details
        """
        super().__init__(message, "MALFORMED_RESPONSE", details)
        self.data = data


class SinkError(GraphQLClientError):
    """The response sink failed to process a response."""

    def __init__(
        self,
        message: str = "Response sink failed",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, "SINK_ERROR", details)


class InputLoadError(GraphQLClientError):
    """Query or variables file could not be loaded."""

    retryable = False

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize input load error.

        Args:
            message: Error message
            path: File that failed to load
            details: Optional error details
        """
        super().__init__(message, "INPUT_LOAD_ERROR", details)
        self.path = path


class ConfigurationError(GraphQLClientError):
    """Configuration error."""

    retryable = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, "CONFIGURATION_ERROR", details)
