"""In-memory catalog and identity collaborators."""

from mobiledge.infrastructure.collaborators.memory import InMemoryCatalog, InMemoryIdentityStore

__all__ = ["InMemoryCatalog", "InMemoryIdentityStore"]
