"""Interfaces of the canonical-data collaborators.

Business records (products, stores, categories, identities, orders)
live elsewhere. mobiledge reads them through these protocols and
writes client changes back through IIdentityWriter.
"""

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

CatalogKind = Literal["products", "stores", "categories"]


@dataclass(frozen=True)
class CatalogQuery:
    """Filter passed to ICatalogReader.query.

    Only active records are expected back. Unset fields do not filter.

    Attributes:
        kind: Which collection to query.
        ids: Restrict to these ids.
        category_slugs: Products only; restrict to these categories.
        min_price: Products only; inclusive lower bound.
        max_price: Products only; inclusive upper bound.
        location: Case-insensitive substring of the (store) location.
        limit: Maximum number of records.
    """

    kind: CatalogKind
    ids: tuple[str, ...] = ()
    category_slugs: tuple[str, ...] = ()
    min_price: float | None = None
    max_price: float | None = None
    location: str | None = None
    limit: int | None = None


@dataclass
class IdentityRecord:
    """Everything IIdentityReader knows about one identity."""

    profile: dict[str, Any]
    addresses: list[dict[str, Any]] = field(default_factory=list)
    orders: list[dict[str, Any]] = field(default_factory=list)
    wishlist: list[dict[str, Any]] = field(default_factory=list)


class ICatalogReader(Protocol):
    """Read access to catalog records."""

    async def query(self, query: CatalogQuery) -> list[dict[str, Any]]:
        """Return active records matching the query.

        Product records carry id, name, description, price, currency,
        stock_quantity, images, rating, reviews_count, created_at and the
        joined store_* and category_* columns. Store records carry id,
        name, description, logo, banner, location, rating, reviews_count,
        products_count, category. Category records carry id, name, slug,
        description, image, parent_id, sort_order.
        """
        ...

    async def count_products(self, category_id: str) -> int:
        """Count active products in a category."""
        ...

    async def get_promotion(self, code: str) -> dict[str, Any] | None:
        """Return a promotion by code, including is_active and expires_at."""
        ...


class IIdentityReader(Protocol):
    """Read access to identities and their orders."""

    async def get(self, owner_id: str) -> IdentityRecord | None:
        """Return the identity with its addresses, orders and wishlist."""
        ...

    async def get_order(self, order_id: str) -> dict[str, Any] | None:
        """Return an order (with its user_id) by id."""
        ...


class IIdentityWriter(Protocol):
    """Write access used to reconcile offline changes.

    Implementations must make add_to_wishlist an upsert and
    remove_from_wishlist a no-op when the pair is absent.
    """

    async def product_exists(self, product_id: str) -> bool:
        ...

    async def add_to_wishlist(self, owner_id: str, product_id: str) -> None:
        ...

    async def remove_from_wishlist(self, owner_id: str, product_id: str) -> None:
        ...

    async def set_cart_quantity(self, owner_id: str, product_id: str, quantity: int) -> None:
        ...

    async def update_profile(self, owner_id: str, fields: dict[str, Any]) -> None:
        ...

    async def add_address(self, owner_id: str, address: dict[str, Any]) -> str:
        """Insert an address and return its id."""
        ...
