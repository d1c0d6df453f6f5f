import json
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel


def json_default(obj: Any) -> Any:
    """
    Fallback encoder for ``json.dumps`` used by formatters and records.

    Args:
        obj: Object the standard encoder could not handle

    Returns:
        A JSON-serializable stand-in for the object
    """
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, BaseModel):
        return obj.model_dump()
    if isinstance(obj, BaseException):
        return {"type": type(obj).__name__, "message": str(obj)}
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    return str(obj)


def to_jsonable(value: Any) -> Any:
    """Round-trip a value through JSON so it only holds plain types."""
    return json.loads(json.dumps(value, default=json_default))
