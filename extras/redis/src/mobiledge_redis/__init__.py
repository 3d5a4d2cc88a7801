"""Redis backend for mobiledge."""

from mobiledge_redis.backend import RedisCacheBackend

__all__ = ["RedisCacheBackend"]
