"""
Configuration for graphql-cli-tools.

Settings are plain dataclasses so they can be built in code, loaded from
environment variables (see ``env_config``) or overridden from the command
line.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any

from .errors import ConfigurationError

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


@dataclass
class HTTPSettings:
    """HTTP transport configuration."""
    timeout: Optional[float] = None  # seconds, None disables the timeout
    user_agent: str = 'graphql-cli-tools/0.1.0'


@dataclass
class WebSocketSettings:
    """WebSocket transport configuration."""
    open_timeout: Optional[float] = None  # seconds
    ack_timeout: Optional[float] = None  # seconds
    compression: bool = True  # permessage-deflate; client_max_window_bits
    strict_ack: bool = False  # first message must be connection_ack
    max_message_size: Optional[int] = 64 * 1024 * 1024  # 64MB, None disables the limit
    ping_interval: Optional[float] = None  # seconds, None disables keepalive pings


@dataclass
class ClientSettings:
    """Main client configuration."""
    http: HTTPSettings = field(default_factory=HTTPSettings)
    websocket: WebSocketSettings = field(default_factory=WebSocketSettings)

    # Retry behavior
    reconnect_interval: Optional[float] = None  # seconds

    # Logging
    log_level: str = 'INFO'

    def validate(self) -> None:
        """Validate the complete configuration."""
        if self.reconnect_interval is not None and self.reconnect_interval < 0:
            raise ConfigurationError("reconnect_interval must not be negative")

        for name, value in (
            ('http.timeout', self.http.timeout),
            ('websocket.open_timeout', self.websocket.open_timeout),
            ('websocket.ack_timeout', self.websocket.ack_timeout),
            ('websocket.ping_interval', self.websocket.ping_interval),
        ):
            if value is not None and value <= 0:
                raise ConfigurationError(f"{name} must be positive")

        if self.websocket.max_message_size is not None and self.websocket.max_message_size <= 0:
            raise ConfigurationError("websocket.max_message_size must be positive")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigurationError(
                f"Unknown log level: {self.log_level}",
                details={'allowed': list(LOG_LEVELS)},
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            'http': {
                'timeout': self.http.timeout,
                'user_agent': self.http.user_agent,
            },
            'websocket': {
                'open_timeout': self.websocket.open_timeout,
                'ack_timeout': self.websocket.ack_timeout,
                'compression': self.websocket.compression,
                'strict_ack': self.websocket.strict_ack,
                'max_message_size': self.websocket.max_message_size,
                'ping_interval': self.websocket.ping_interval,
            },
            'reconnect_interval': self.reconnect_interval,
            'log_level': self.log_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ClientSettings':
        """Create configuration from dictionary."""
        settings = cls()

        if 'http' in data:
            settings.http = HTTPSettings(**data['http'])

        if 'websocket' in data:
            settings.websocket = WebSocketSettings(**data['websocket'])

        if 'reconnect_interval' in data:
            settings.reconnect_interval = data['reconnect_interval']

        if 'log_level' in data:
            settings.log_level = data['log_level'].upper()

        return settings
