"""
Command-line interface for graphql-cli-tools.

``graphql-cli-tools client`` executes one GraphQL operation against an HTTP
or WebSocket endpoint and prints every response as JSON on stdout.
Diagnostics go to stderr through logging.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Tuple

import click
from dotenv import load_dotenv

from .client import execute_from_files
from .config import LOG_LEVELS
from .env_config import load_settings_from_env
from .errors import (
    ConfigurationError,
    ConnectionFailureError,
    ConnectionInitError,
    GraphQLClientError,
    InputLoadError,
    InvalidEndpointSchemeError,
)
from .loaders import load_variables
from .sink import JSONPrintSink
from .utils import parse_duration, parse_http_header, parse_key_json_value
from .websocket import SubscriptionState

logger = logging.getLogger(__name__)


class KeyJsonValueType(click.ParamType):
    """``name=value`` pair with the value coerced to JSON."""

    name = "name=value"

    def convert(self, value: Any, param: Optional[click.Parameter], ctx: Optional[click.Context]) -> Tuple[str, Any]:
        if isinstance(value, tuple):
            return value
        try:
            return parse_key_json_value(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


class HttpHeaderType(click.ParamType):
    """``name=value`` HTTP header."""

    name = "header"

    def convert(self, value: Any, param: Optional[click.Parameter], ctx: Optional[click.Context]) -> Tuple[str, str]:
        if isinstance(value, tuple):
            return value
        try:
            return parse_http_header(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


class DurationType(click.ParamType):
    """Human-readable duration, converted to seconds."""

    name = "duration"

    def convert(self, value: Any, param: Optional[click.Parameter], ctx: Optional[click.Context]) -> float:
        if isinstance(value, (int, float)):
            return float(value)
        try:
            return parse_duration(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


def _failed_to_establish(error: Optional[GraphQLClientError]) -> bool:
    """Whether an attempt failed before any response could be streamed."""
    if isinstance(error, ConnectionInitError):
        return True
    if isinstance(error, ConnectionFailureError):
        return error.details.get("state") != SubscriptionState.STREAMING.value
    return False


def setup_logging(level: str) -> None:
    """Send log records to stderr at the given level."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@click.group()
def cli() -> None:
    """GraphQL command-line tools."""


@cli.command("client")
@click.option('--server-endpoint', '-e', required=True,
              help='Endpoint where the server accepts the connections (e.g., http://localhost:8000/api/graphql)')
@click.option('--query-path', '-q', required=True, type=click.Path(path_type=Path),
              help='Path of the query that has to be executed')
@click.option('--operation-name', '-o', default=None, help='Name of the operation that has to be executed')
@click.option('--variables-from-json', type=click.Path(path_type=Path), default=None,
              help='Json file containing variables to be sent to the server')
@click.option('--variable', '-v', 'variables', multiple=True, type=KeyJsonValueType(),
              help='Variable to be sent to the server')
@click.option('--http-header', 'headers', multiple=True, type=HttpHeaderType(),
              help='HTTP header to be sent to the server')
@click.option('--try-reconnect-duration', '-r', type=DurationType(), default=None,
              help='Reconnect to the server after this long when an attempt fails (e.g., 500ms)')
@click.option('--strict-ack', is_flag=True, default=False,
              help='Require connection_ack as the first WebSocket message')
@click.option('--log-level', type=click.Choice(LOG_LEVELS, case_sensitive=False), default=None,
              help='Diagnostic log level')
def client(
    server_endpoint: str,
    query_path: Path,
    operation_name: Optional[str],
    variables_from_json: Optional[Path],
    variables: Tuple[Tuple[str, Any], ...],
    headers: Tuple[Tuple[str, str], ...],
    try_reconnect_duration: Optional[float],
    strict_ack: bool,
    log_level: Optional[str],
) -> None:
    """Execute a GraphQL operation and print each response as JSON."""
    load_dotenv()
    settings = load_settings_from_env()
    if log_level:
        settings.log_level = log_level.upper()
    if try_reconnect_duration is not None:
        settings.reconnect_interval = try_reconnect_duration
    if strict_ack:
        settings.websocket.strict_ack = True

    try:
        settings.validate()
    except ConfigurationError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    setup_logging(settings.log_level)

    try:
        operation_variables = load_variables(variables_from_json, variables)
        outcome = asyncio.run(execute_from_files(
            server_endpoint,
            query_path,
            JSONPrintSink(),
            headers=headers,
            operation_name=operation_name,
            variables=operation_variables,
            settings=settings,
        ))
    except (InvalidEndpointSchemeError, InputLoadError) as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    if settings.reconnect_interval is None and _failed_to_establish(outcome.last_error):
        click.echo(f"✗ {outcome.last_error}", err=True)
        sys.exit(1)


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
