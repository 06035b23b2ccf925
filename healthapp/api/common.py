"""
Request parsing helpers shared by the route modules.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from flask import request

from healthapp.errors import ValidationError


def json_body() -> Dict[str, Any]:
    """The request's JSON object; anything else is a validation error."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _blank(value) -> bool:
    return value is None or (isinstance(value, (str, list)) and len(value) == 0)


def require_fields(data: Dict[str, Any], *names: str, message: str = "Missing required fields") -> None:
    if any(_blank(data.get(n)) for n in names):
        raise ValidationError(message)


def require_strings(data: Dict[str, Any], *names: str, message: str = "Invalid field type") -> None:
    """Fields that are present and not null must be JSON strings."""
    if any(data.get(n) is not None and not isinstance(data.get(n), str) for n in names):
        raise ValidationError(message)


def parse_id(value, message: str = "Invalid identifier") -> int:
    """Turn a wire identifier (string or int) into a store key."""
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    if isinstance(value, str):
        text = value.strip()
        # isdigit alone also accepts non-ASCII digits such as "²".
        if text.isascii() and text.isdigit() and int(text) > 0:
            return int(text)
    raise ValidationError(message)


def optional_id(value, message: str = "Invalid identifier") -> Optional[int]:
    return None if _blank(value) else parse_id(value, message)


def parse_float(value, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {name}") from None


def parse_int(value, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {name}") from None


def parse_date(value) -> datetime:
    if not isinstance(value, str):
        raise ValidationError("Invalid date")
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError("Invalid date") from None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def as_list(value) -> List[Any]:
    if _blank(value):
        return []
    return value if isinstance(value, list) else [value]


def pick(data: Dict[str, Any], fields: Dict[str, str]) -> Dict[str, Any]:
    """Map truthy camelCase request fields onto their column names."""
    return {column: data[key] for key, column in fields.items() if data.get(key)}
