"""JSON serializer implementation."""

import json
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any


class SerializationError(Exception):
    """Raised when serialization or deserialization fails."""

    pass


class JsonSerializer:
    """JSON serializer for cache values.

    Handles serialization of Python objects to JSON bytes and back.
    Dates and datetimes are written as ISO 8601 strings and read back as
    strings; decoding never reinterprets the shape of a stored dict.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        """Initialize the JSON serializer.

        Args:
            encoding: Character encoding to use.
        """
        self._encoding = encoding

    def serialize(self, value: Any) -> bytes:
        """Serialize value to bytes.

        Raises:
            SerializationError: If the value cannot be serialized.
        """
        try:
            json_str = json.dumps(value, default=self._default_encoder, separators=(",", ":"))
            return json_str.encode(self._encoding)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to serialize value: {e}") from e

    def deserialize(self, data: bytes) -> Any:
        """Deserialize bytes to value.

        Raises:
            SerializationError: If the data cannot be deserialized.
        """
        try:
            json_str = data.decode(self._encoding)
            return json.loads(json_str)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SerializationError(f"Failed to deserialize data: {e}") from e

    def _default_encoder(self, obj: Any) -> Any:
        """Custom encoder for non-JSON-serializable types.

        Raises:
            TypeError: If the object cannot be encoded.
        """
        if isinstance(obj, date):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, (set, frozenset)):
            return list(obj)
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
