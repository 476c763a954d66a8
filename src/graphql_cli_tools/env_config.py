"""
Environment variable configuration loader for graphql-cli-tools.

Every setting in ``ClientSettings`` can be provided through a
``GRAPHQL_CLI_*`` variable, so the same invocation can be pointed at
different servers without touching the command line.
"""

import os
import logging
from typing import Optional

from .config import ClientSettings, HTTPSettings, WebSocketSettings
from .utils import parse_duration

logger = logging.getLogger(__name__)

ENV_PREFIX = 'GRAPHQL_CLI_'


def load_settings_from_env() -> ClientSettings:
    """
    Load client settings from environment variables.

    Environment variables:
        GRAPHQL_CLI_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR)
        GRAPHQL_CLI_RECONNECT_INTERVAL: Reconnect interval (e.g. "500ms")

        HTTP:
            GRAPHQL_CLI_HTTP_TIMEOUT: Request timeout in seconds
            GRAPHQL_CLI_USER_AGENT: User agent string

        WebSocket:
            GRAPHQL_CLI_WS_OPEN_TIMEOUT: Opening handshake timeout in seconds
            GRAPHQL_CLI_WS_ACK_TIMEOUT: connection_ack timeout in seconds
            GRAPHQL_CLI_WS_COMPRESSION: Advertise permessage-deflate (true/false)
            GRAPHQL_CLI_WS_STRICT_ACK: Require connection_ack as first message (true/false)
            GRAPHQL_CLI_WS_MAX_MESSAGE_SIZE: Maximum inbound message size in bytes
            GRAPHQL_CLI_WS_PING_INTERVAL: Keepalive ping interval in seconds

    Returns:
        ClientSettings: Settings loaded from environment
    """
    settings = ClientSettings()

    if log_level := os.getenv(f'{ENV_PREFIX}LOG_LEVEL'):
        settings.log_level = log_level.upper()

    if interval := os.getenv(f'{ENV_PREFIX}RECONNECT_INTERVAL'):
        try:
            settings.reconnect_interval = parse_duration(interval)
        except ValueError:
            logger.warning(f"Invalid reconnect interval: {interval}, reconnect disabled")

    settings.http = _load_http_from_env()
    settings.websocket = _load_websocket_from_env()

    return settings


def _load_http_from_env() -> HTTPSettings:
    """Load HTTP settings from environment."""
    http = HTTPSettings()

    http.timeout = _parse_float('HTTP_TIMEOUT', http.timeout)

    if user_agent := os.getenv(f'{ENV_PREFIX}USER_AGENT'):
        http.user_agent = user_agent

    return http


def _load_websocket_from_env() -> WebSocketSettings:
    """Load WebSocket settings from environment."""
    ws = WebSocketSettings()

    ws.open_timeout = _parse_float('WS_OPEN_TIMEOUT', ws.open_timeout)
    ws.ack_timeout = _parse_float('WS_ACK_TIMEOUT', ws.ack_timeout)
    ws.ping_interval = _parse_float('WS_PING_INTERVAL', ws.ping_interval)

    if compression := os.getenv(f'{ENV_PREFIX}WS_COMPRESSION'):
        ws.compression = _parse_bool(compression)

    if strict_ack := os.getenv(f'{ENV_PREFIX}WS_STRICT_ACK'):
        ws.strict_ack = _parse_bool(strict_ack)

    if max_size := os.getenv(f'{ENV_PREFIX}WS_MAX_MESSAGE_SIZE'):
        try:
            ws.max_message_size = int(max_size)
        except ValueError:
            logger.warning(f"Invalid max message size: {max_size}, using default: {ws.max_message_size}")

    return ws


def _parse_float(name: str, default: Optional[float]) -> Optional[float]:
    """Parse a float setting, keeping the default on bad input."""
    value = os.getenv(f'{ENV_PREFIX}{name}')
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Invalid {ENV_PREFIX}{name} value: {value}, using default: {default}")
        return default


def _parse_bool(value: Optional[str]) -> bool:
    """Parse boolean from string."""
    if not value:
        return False
    return value.lower() in ('true', '1', 'yes', 'on')
