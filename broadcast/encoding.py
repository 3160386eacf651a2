"""
Broadcast - JSON Encoding.

One encoder for everything that leaves the process: push
messages and HTTP payloads.
"""

import json
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any


class ScreenEncoder(json.JSONEncoder):
    """JSON encoder for screen data."""

    def default(self, obj):
        if hasattr(obj, "to_dict"):
            return obj.to_dict()
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, (set, frozenset)):
            return sorted(obj)
        return super().default(obj)


def dumps(data: Any) -> str:
    return json.dumps(data, cls=ScreenEncoder)


def to_jsonable(data: Any) -> Any:
    """Reduce a value to plain JSON types (dict, list, str, number, bool, None)."""
    return json.loads(dumps(data))


__all__ = ["ScreenEncoder", "dumps", "to_jsonable"]
