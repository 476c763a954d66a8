"""Loading of query documents and operation variables."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any
from typing import Dict
from typing import Iterable
from typing import Optional
from typing import Tuple
from typing import Union

from graphql_cli_tools.errors import InputLoadError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def load_query(query_path: PathLike) -> str:
    """Read a GraphQL document from a UTF-8 file.

    Raises:
        InputLoadError: File missing or not valid UTF-8
    """
    path = Path(query_path)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise InputLoadError(f"Failed to read query file: {e}", path=str(path)) from e


def load_variables(
    variables_from_json: Optional[PathLike] = None,
    overrides: Iterable[Tuple[str, Any]] = (),
) -> Dict[str, Any]:
    """Assemble operation variables.

    Variables are read from an optional JSON object file, then each override
    is applied in order, so a later pair wins over an earlier one and over
    the file.

    Args:
        variables_from_json: JSON file holding an object of variables
        overrides: ``(name, value)`` pairs

    Returns:
        Variables mapping

    Raises:
        InputLoadError: File missing, not JSON, or not a JSON object
    """
    variables: Dict[str, Any] = {}

    if variables_from_json is not None:
        path = Path(variables_from_json)
        try:
            loaded = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise InputLoadError(f"Failed to read variables file: {e}", path=str(path)) from e
        except json.JSONDecodeError as e:
            raise InputLoadError(f"Variables file is not valid JSON: {e}", path=str(path)) from e

        if not isinstance(loaded, dict):
            raise InputLoadError(
                f"Variables file must contain a JSON object, got {type(loaded).__name__}",
                path=str(path),
            )
        variables.update(loaded)

    return apply_variable_overrides(variables, overrides)


def apply_variable_overrides(
    variables: Dict[str, Any],
    overrides: Iterable[Tuple[str, Any]],
) -> Dict[str, Any]:
    """Return a copy of ``variables`` with ``overrides`` applied in order."""
    merged = dict(variables)
    for name, value in overrides:
        if name in merged:
            logger.debug(f"Variable {name!r} overridden")
        merged[name] = value
    return merged
