"""Pytest configuration for mobiledge tests."""

from datetime import datetime, timedelta, timezone

import pytest

from mobiledge import (
    CacheKeyStore,
    EdgeConfig,
    InMemoryCacheBackend,
    InMemoryCatalog,
    InMemoryClickStore,
    InMemoryIdentityStore,
    InMemoryShortLinkStore,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable clock returning aware datetimes."""

    def __init__(self, start: datetime = NOW) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


class FakeTimer:
    """Controllable monotonic timer for cachetools caches."""

    def __init__(self) -> None:
        self.current = 0.0

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def config() -> EdgeConfig:
    return EdgeConfig(
        base_scheme="afrikmode",
        web_domain="https://afrikmode.com",
        app_store_url="https://apps.apple.com/app/afrikmode",
        play_store_url="https://play.google.com/store/apps/details?id=com.afrikmode.app",
    )


@pytest.fixture
def backend() -> InMemoryCacheBackend:
    return InMemoryCacheBackend(maxsize=100, default_ttl=None)


@pytest.fixture
def cache(backend: InMemoryCacheBackend, clock: FakeClock) -> CacheKeyStore:
    return CacheKeyStore(backend, clock=clock)


@pytest.fixture
def catalog() -> InMemoryCatalog:
    """A small catalog: two stores, a category tree, three products, promotions."""
    catalog = InMemoryCatalog()
    catalog.add_store(
        "s1",
        name="Dakar Style",
        description="Tailored boubous and wax prints from the heart of Dakar",
        logo="https://cdn.example.com/s1.png",
        location="Dakar, Senegal",
        rating=4.8,
        reviews_count=120,
        products_count=2,
        category="fashion",
    )
    catalog.add_store(
        "s2",
        name="Abidjan Market",
        description="Everyday essentials",
        location="Abidjan, Ivory Coast",
        rating=4.2,
        reviews_count=300,
        products_count=1,
        category="market",
    )
    catalog.add_category("c-fashion", name="Fashion", slug="fashion", sort_order=1)
    catalog.add_category("c-dresses", name="Dresses", slug="dresses", parent_id="c-fashion")
    catalog.add_category("c-home", name="Home", slug="home", sort_order=2)

    catalog.add_product(
        "p1",
        store_id="s1",
        category_id="c-dresses",
        name="Boubou",
        description="Hand-embroidered boubou",
        price=25000,
        images=[
            "https://cdn.example.com/p1-1.jpg",
            "https://cdn.example.com/p1-2.jpg",
            "https://cdn.example.com/p1-3.jpg",
            "https://cdn.example.com/p1-4.jpg",
        ],
        created_at=NOW - timedelta(days=1),
    )
    catalog.add_product(
        "p2",
        store_id="s1",
        category_id="c-fashion",
        name="Wax scarf",
        price=5000,
        images="https://cdn.example.com/p2-1.jpg,https://cdn.example.com/p2-2.jpg",
        created_at=NOW - timedelta(days=2),
    )
    catalog.add_product(
        "p3",
        store_id="s2",
        category_id="c-home",
        name="Basket",
        price=3000,
        created_at=NOW - timedelta(days=3),
    )

    catalog.add_promotion(
        "SUMMER20",
        discount_type="percentage",
        discount_amount=20,
        description="Summer sale",
    )
    catalog.add_promotion("OLD10", discount_type="fixed", discount_amount=1000, is_active=False)
    catalog.add_promotion(
        "EXPIRED5",
        discount_type="percentage",
        discount_amount=5,
        expires_at=NOW - timedelta(days=1),
    )
    return catalog


@pytest.fixture
def identities(catalog: InMemoryCatalog) -> InMemoryIdentityStore:
    identities = InMemoryIdentityStore(catalog)
    identities.add_user(
        "u1",
        full_name="Aminata Diallo",
        email="aminata@example.com",
        location="Dakar",
        preferences={"language": "fr"},
    )
    identities.add_user("u2", full_name="Kofi Mensah")
    identities.add_order(
        "o1",
        "u1",
        order_number="AM-1001",
        status="shipped",
        total_amount="30000",
        created_at=NOW - timedelta(days=5),
    )
    return identities


@pytest.fixture
def link_store() -> InMemoryShortLinkStore:
    return InMemoryShortLinkStore()


@pytest.fixture
def click_store() -> InMemoryClickStore:
    return InMemoryClickStore()
