"""
Serialization Utilities

Helpers for turning domain objects (dataclasses, enums, datetimes) into
plain JSON-compatible structures and back. Used by the repositories to
store document-shaped records.
"""

import json
import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from dataclasses import is_dataclass, fields


def serialize(obj: Any, exclude_none: bool = False) -> Any:
    """
    Convert an object into JSON-compatible primitives.

    Args:
        obj: The object to serialize
        exclude_none: Whether to drop keys whose value is None

    Returns:
        Primitive, list or dict representation of ``obj``
    """
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj

    if isinstance(obj, Enum):
        return obj.value

    if isinstance(obj, (datetime.datetime, datetime.date)):
        return obj.isoformat()

    if isinstance(obj, (list, tuple)):
        return [serialize(item, exclude_none) for item in obj]

    if isinstance(obj, dict):
        return {
            serialize(key): serialize(value, exclude_none)
            for key, value in obj.items()
            if not (exclude_none and value is None)
        }

    if hasattr(obj, 'to_dict') and callable(getattr(obj, 'to_dict')):
        return serialize(obj.to_dict(), exclude_none)

    if is_dataclass(obj):
        return {
            f.name: serialize(getattr(obj, f.name), exclude_none)
            for f in fields(obj)
            if not (exclude_none and getattr(obj, f.name) is None)
        }

    return str(obj)


def parse_datetime(value: Any) -> Optional[datetime.datetime]:
    """Parse an ISO-8601 string into a datetime; datetimes and None pass through."""
    if value is None or isinstance(value, datetime.datetime):
        return value
    return datetime.datetime.fromisoformat(value)


def to_json(data: Any, pretty: bool = False) -> str:
    """Serialize ``data`` and dump it as a JSON string."""
    return json.dumps(serialize(data), indent=2 if pretty else None)


class SerializableMixin:
    """
    Mixin that provides dictionary serialization to a dataclass.

    Classes using this mixin define ``__serializable_fields__``, the field
    names included in ``to_dict()``.
    """

    __serializable_fields__: List[str] = []

    def to_dict(self) -> Dict[str, Any]:
        """Convert the object to a dictionary."""
        return {
            name: serialize(getattr(self, name))
            for name in self.__serializable_fields__
            if hasattr(self, name)
        }

    def to_json(self, pretty: bool = False) -> str:
        """Convert the object to a JSON string."""
        return to_json(self.to_dict(), pretty)
