"""Compressing serializer wrapper."""

import zlib
from typing import Any

from mobiledge.core.interfaces.serializer import ISerializer
from mobiledge.infrastructure.serializers.json import JsonSerializer, SerializationError


class CompressedSerializer:
    """Serializer that zlib-compresses the output of another serializer.

    Offline snapshots are mostly repetitive JSON, so compression keeps
    the per-owner footprint in the backend small.
    """

    def __init__(self, inner: ISerializer | None = None, level: int = 6) -> None:
        """Initialize the serializer.

        Args:
            inner: Serializer producing the uncompressed bytes. JSON by default.
            level: zlib compression level (0-9).
        """
        if not 0 <= level <= 9:
            raise ValueError("level must be between 0 and 9")
        self._inner = inner or JsonSerializer()
        self._level = level

    def serialize(self, value: Any) -> bytes:
        return zlib.compress(self._inner.serialize(value), self._level)

    def deserialize(self, data: bytes) -> Any:
        try:
            raw = zlib.decompress(data)
        except zlib.error as e:
            raise SerializationError(f"Failed to decompress data: {e}") from e
        return self._inner.deserialize(raw)
