"""Serializer implementations."""

from mobiledge.infrastructure.serializers.compressed import CompressedSerializer
from mobiledge.infrastructure.serializers.json import JsonSerializer, SerializationError

__all__ = ["JsonSerializer", "CompressedSerializer", "SerializationError"]
