"""Tests for DefaultKeyBuilder."""

import pytest

from mobiledge.core.entities.snapshot import DomainType
from mobiledge.infrastructure.key_builders.default import DefaultKeyBuilder


class TestDefaultKeyBuilder:
    """Tests for DefaultKeyBuilder."""

    @pytest.fixture
    def key_builder(self) -> DefaultKeyBuilder:
        """Create a key builder for testing."""
        return DefaultKeyBuilder()

    def test_build_snapshot_key(self, key_builder: DefaultKeyBuilder) -> None:
        assert key_builder.build("u1", DomainType.PRODUCTS) == "offline:products:u1"
        assert key_builder.build("u1", DomainType.PROFILE) == "offline:profile:u1"

    def test_one_key_per_owner_and_domain(self, key_builder: DefaultKeyBuilder) -> None:
        keys = {
            key_builder.build(owner, domain)
            for owner in ("u1", "u2")
            for domain in DomainType
        }
        assert len(keys) == 8

    def test_build_receipt_key(self, key_builder: DefaultKeyBuilder) -> None:
        assert key_builder.build_receipt("u1", "c-42") == "offline:sync:u1:c-42"

    def test_custom_prefix(self) -> None:
        key_builder = DefaultKeyBuilder(prefix="edge")
        assert key_builder.prefix == "edge"
        assert key_builder.build("u1", DomainType.STORES) == "edge:stores:u1"

    @pytest.mark.parametrize("prefix", ["", "a:b"])
    def test_invalid_prefix(self, prefix: str) -> None:
        with pytest.raises(ValueError):
            DefaultKeyBuilder(prefix=prefix)
