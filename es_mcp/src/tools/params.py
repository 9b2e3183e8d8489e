"""Helpers that turn loosely-typed MCP tool arguments into validated values.

Tool-calling clients send numbers as floats or strings and JSON documents as
serialized text, so every reader here accepts the forms seen in practice and
raises an ElasticsearchError naming the offending parameter otherwise.
"""
import json
import re
from typing import Any, Dict, Mapping, Optional

from ...errors import ElasticsearchError, ErrorCodes

MAX_RESULT_WINDOW = 10000

# "-1" and "0" are the unitless values Elasticsearch accepts for time settings
TIMEOUT_PATTERN = re.compile(r"^(-1|0|\d+(nanos|micros|ms|s|m|h|d))$")

_TRUE = {"true", "1", "yes"}
_FALSE = {"false", "0", "no"}


def _invalid(name: str, value: Any, expected: str) -> ElasticsearchError:
    return ElasticsearchError(
        ErrorCodes.INVALID_PARAMETER,
        f"Parameter '{name}' must be {expected}, got {value!r}",
        details={"parameter": name, "value": value}
    )


def require_string(arguments: Mapping[str, Any], name: str) -> str:
    value = arguments.get(name)
    if value is None:
        raise ElasticsearchError(
            ErrorCodes.MISSING_PARAMETER,
            f"Missing '{name}' parameter",
            details={"parameter": name}
        )
    if not isinstance(value, str) or not value.strip():
        raise _invalid(name, value, "a non-empty string")
    return value


def get_string(arguments: Mapping[str, Any], name: str, default: str = "") -> str:
    value = arguments.get(name)
    if value is None:
        return default
    if not isinstance(value, str):
        raise _invalid(name, value, "a string")
    return value


def get_int(arguments: Mapping[str, Any], name: str, default: int) -> int:
    value = arguments.get(name)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise _invalid(name, value, "an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise _invalid(name, value, "an integer")


def get_bool(arguments: Mapping[str, Any], name: str, default: bool) -> bool:
    value = arguments.get(name)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
    raise _invalid(name, value, "a boolean")


def parse_json_param(name: str, value: Any, object_only: bool = False) -> Optional[Any]:
    """Decode a JSON sub-document; None means the caller left it out.

    Already-decoded dicts and lists are accepted unchanged.
    """
    if value is None:
        return None
    if isinstance(value, str):
        if value == "":
            return None
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError as e:
            raise ElasticsearchError(
                ErrorCodes.INVALID_JSON,
                f"Invalid {name} JSON: {e} (input: {value})",
                details={"parameter": name, "value": value}
            )
    else:
        parsed = value

    if object_only and not isinstance(parsed, dict):
        raise ElasticsearchError(
            ErrorCodes.INVALID_JSON,
            f"Invalid {name} JSON: expected an object (input: {value})",
            details={"parameter": name, "value": value}
        )
    return parsed


def parse_query(value: Any) -> Dict[str, Any]:
    """Absent, empty-string and empty-object queries all mean match_all."""
    query = parse_json_param("query", value, object_only=True)
    if not query:
        return {"match_all": {}}
    return query


def validate_pagination(size: int, from_: int) -> None:
    if size < 0 or size > MAX_RESULT_WINDOW:
        raise ElasticsearchError(
            ErrorCodes.INVALID_PARAMETER,
            f"Size parameter must be between 0 and {MAX_RESULT_WINDOW}",
            details={"parameter": "size", "value": size}
        )
    if from_ < 0:
        raise ElasticsearchError(
            ErrorCodes.INVALID_PARAMETER,
            "From parameter must be >= 0",
            details={"parameter": "from", "value": from_}
        )
    if from_ + size > MAX_RESULT_WINDOW:
        raise ElasticsearchError(
            ErrorCodes.INVALID_PARAMETER,
            f"from + size must not exceed {MAX_RESULT_WINDOW}",
            details={"parameter": "from", "value": from_, "size": size}
        )


def validate_timeout(timeout: str) -> Optional[str]:
    if not timeout:
        return None
    if not TIMEOUT_PATTERN.match(timeout):
        raise _invalid("timeout", timeout, "a time unit such as '5s' or '500ms'")
    return timeout
