"""Cache backend implementations."""

from mobiledge.infrastructure.backends.memory import InMemoryCacheBackend

__all__ = ["InMemoryCacheBackend"]
