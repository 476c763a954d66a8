"""Utility functions for graphql-cli-tools."""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any
from typing import Dict
from typing import Tuple

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[+-]?(?:inf|infinity|nan)",
    re.IGNORECASE,
)
# RFC 9110 token characters
_HEADER_NAME_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
# Visible ASCII, space and tab
_HEADER_VALUE_RE = re.compile(r"[\t\x20-\x7e]*")
_DURATION_PART_RE = re.compile(r"\s*([0-9]+)\s*([A-Za-zµ]+)")

# Seconds per unit, humantime spelling
_DURATION_UNITS: Dict[str, float] = {
    "nsec": 1e-9, "ns": 1e-9,
    "usec": 1e-6, "us": 1e-6, "µs": 1e-6,
    "msec": 1e-3, "ms": 1e-3,
    "seconds": 1.0, "second": 1.0, "sec": 1.0, "secs": 1.0, "s": 1.0,
    "minutes": 60.0, "minute": 60.0, "min": 60.0, "mins": 60.0, "m": 60.0,
    "hours": 3600.0, "hour": 3600.0, "hr": 3600.0, "hrs": 3600.0, "h": 3600.0,
    "days": 86400.0, "day": 86400.0, "d": 86400.0,
    "weeks": 604800.0, "week": 604800.0, "w": 604800.0,
    "months": 2630016.0, "month": 2630016.0, "M": 2630016.0,
    "years": 31557600.0, "year": 31557600.0, "y": 31557600.0,
}


def parse_key_json_value(value: str) -> Tuple[str, Any]:
    """Parse a ``name=value`` variable into a name and a JSON value.

    Coercion rules, applied in order:
        - no ``=`` or empty value -> None
        - ``true`` / ``false`` -> bool
        - double-quoted text -> the text without quotes
        - integer literal -> int
        - float literal -> float (non-finite values are rejected)
        - ``[...]`` or ``{...}`` -> parsed JSON
        - anything else -> the raw string

    Args:
        value: Raw command-line value

    Returns:
        Variable name and coerced value

    Raises:
        ValueError: Value looks like a number or JSON but cannot be represented
    """
    name, sep, raw = value.partition("=")
    if not sep:
        return name, None

    return name, coerce_json_value(raw)


def coerce_json_value(raw: str) -> Any:
    """Coerce a raw string into the JSON value it most likely denotes."""
    if not raw:
        return None
    if raw == "true":
        return True
    if raw == "false":
        return False
    if len(raw) >= 2 and raw.startswith('"') and raw.endswith('"'):
        return raw[1:-1]
    if _INTEGER_RE.fullmatch(raw):
        return int(raw)
    if _FLOAT_RE.fullmatch(raw):
        number = float(raw)
        if not math.isfinite(number):
            raise ValueError(f"cannot represent {raw!r} as a JSON number")
        return number
    if (raw.startswith("[") and raw.endswith("]")) or (raw.startswith("{") and raw.endswith("}")):
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"invalid JSON value {raw!r}: {e}") from e
    return raw


def parse_http_header(value: str) -> Tuple[str, str]:
    """Parse a ``name=value`` HTTP header.

    A value without ``=`` is a header with an empty value.

    Raises:
        ValueError: Invalid header name, or a value with characters
            outside visible ASCII, space and tab
    """
    name, _, header_value = value.partition("=")

    if not _HEADER_NAME_RE.fullmatch(name):
        raise ValueError(f"invalid HTTP header name: {name!r}")
    if not _HEADER_VALUE_RE.fullmatch(header_value):
        raise ValueError(f"invalid HTTP header value for {name!r}")

    return name, header_value


def parse_duration(value: str) -> float:
    """Parse a human-readable duration such as ``500ms`` or ``1m 30s``.

    Args:
        value: Duration text

    Returns:
        Duration in seconds

    Raises:
        ValueError: Unparseable duration
    """
    text = value.strip()
    if not text:
        raise ValueError("empty duration")

    total = 0.0
    position = 0
    while position < len(text):
        match = _DURATION_PART_RE.match(text, position)
        if not match:
            raise ValueError(f"invalid duration: {value!r}")
        amount, unit = match.groups()
        if unit not in _DURATION_UNITS:
            raise ValueError(f"unknown time unit {unit!r} in duration {value!r}")
        total += int(amount) * _DURATION_UNITS[unit]
        position = match.end()
        while position < len(text) and text[position].isspace():
            position += 1

    return total
