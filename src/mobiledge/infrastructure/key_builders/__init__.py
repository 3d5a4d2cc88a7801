"""Key builder implementations."""

from mobiledge.infrastructure.key_builders.default import DefaultKeyBuilder

__all__ = ["DefaultKeyBuilder"]
