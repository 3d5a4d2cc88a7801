"""In-memory catalog and identity collaborators.

Reference implementations of the collaborator protocols, used for
local development and tests. Records are plain dicts shaped like the
rows of the relational store they stand in for.
"""

import copy
import uuid
from datetime import datetime, timezone
from typing import Any

from mobiledge.core.exceptions import NotFoundError
from mobiledge.core.interfaces.collaborators import CatalogQuery, IdentityRecord


class InMemoryCatalog:
    """Catalog reader over in-memory product, store and category rows."""

    def __init__(self) -> None:
        self.products: dict[str, dict[str, Any]] = {}
        self.stores: dict[str, dict[str, Any]] = {}
        self.categories: dict[str, dict[str, Any]] = {}
        self.promotions: dict[str, dict[str, Any]] = {}

    def add_store(self, store_id: str, **fields: Any) -> dict[str, Any]:
        row = {"id": store_id, "is_active": True, "rating": 0, "reviews_count": 0, **fields}
        self.stores[store_id] = row
        return row

    def add_category(self, category_id: str, **fields: Any) -> dict[str, Any]:
        row = {
            "id": category_id,
            "parent_id": None,
            "sort_order": 0,
            "is_active": True,
            **fields,
        }
        row.setdefault("slug", category_id)
        row.setdefault("name", category_id)
        self.categories[category_id] = row
        return row

    def add_product(
        self,
        product_id: str,
        store_id: str | None = None,
        category_id: str | None = None,
        **fields: Any,
    ) -> dict[str, Any]:
        row = {
            "id": product_id,
            "store_id": store_id,
            "category_id": category_id,
            "is_active": True,
            "currency": "XOF",
            "stock_quantity": 0,
            "rating": 0,
            "reviews_count": 0,
            "created_at": datetime.now(timezone.utc),
            **fields,
        }
        self.products[product_id] = row
        return row

    def add_promotion(self, code: str, **fields: Any) -> dict[str, Any]:
        row = {"id": str(uuid.uuid4()), "code": code, "is_active": True, "expires_at": None, **fields}
        self.promotions[code] = row
        return row

    async def query(self, query: CatalogQuery) -> list[dict[str, Any]]:
        if query.kind == "products":
            rows = self._products(query)
        elif query.kind == "stores":
            rows = [
                s for s in self.stores.values()
                if s.get("is_active") and self._location_matches(s.get("location"), query.location)
            ]
        else:
            rows = [c for c in self.categories.values() if c.get("is_active")]

        if query.ids:
            rows = [r for r in rows if r["id"] in query.ids]
        if query.limit is not None:
            rows = rows[: query.limit]
        return copy.deepcopy(rows)

    def _products(self, query: CatalogQuery) -> list[dict[str, Any]]:
        rows = []
        for product in self.products.values():
            store = self.stores.get(product.get("store_id") or "", {})
            category = self.categories.get(product.get("category_id") or "", {})
            if not product.get("is_active") or not store.get("is_active"):
                continue
            if query.category_slugs and category.get("slug") not in query.category_slugs:
                continue
            price = float(product.get("price") or 0)
            if query.min_price is not None and price < query.min_price:
                continue
            if query.max_price is not None and price > query.max_price:
                continue
            if not self._location_matches(store.get("location"), query.location):
                continue
            rows.append({
                **product,
                "store_name": store.get("name"),
                "store_logo": store.get("logo"),
                "store_location": store.get("location"),
                "category_name": category.get("name"),
                "category_slug": category.get("slug"),
            })
        rows.sort(key=lambda r: r["created_at"], reverse=True)
        return rows

    @staticmethod
    def _location_matches(location: str | None, needle: str | None) -> bool:
        if not needle:
            return True
        return location is not None and needle.lower() in location.lower()

    async def count_products(self, category_id: str) -> int:
        return sum(
            1 for p in self.products.values()
            if p.get("category_id") == category_id and p.get("is_active")
        )

    async def get_promotion(self, code: str) -> dict[str, Any] | None:
        promo = self.promotions.get(code)
        return copy.deepcopy(promo) if promo is not None else None


class InMemoryIdentityStore:
    """Identity reader and writer over in-memory rows.

    Wishlist entries are keyed by (owner, product), which makes
    add_to_wishlist an upsert.
    """

    def __init__(self, catalog: InMemoryCatalog | None = None) -> None:
        self.catalog = catalog or InMemoryCatalog()
        self.users: dict[str, dict[str, Any]] = {}
        self.addresses: dict[str, list[dict[str, Any]]] = {}
        self.orders: dict[str, dict[str, Any]] = {}
        self.wishlists: dict[str, dict[str, datetime]] = {}
        self.carts: dict[str, dict[str, int]] = {}

    def add_user(self, user_id: str, **fields: Any) -> dict[str, Any]:
        row = {"id": user_id, "full_name": None, "email": None, "preferences": {}, **fields}
        self.users[user_id] = row
        return row

    def add_order(self, order_id: str, user_id: str, **fields: Any) -> dict[str, Any]:
        row = {
            "id": order_id,
            "user_id": user_id,
            "order_number": order_id,
            "status": "pending",
            "currency": "XOF",
            "total_amount": "0",
            "created_at": datetime.now(timezone.utc),
            **fields,
        }
        self.orders[order_id] = row
        return row

    async def get(self, owner_id: str) -> IdentityRecord | None:
        user = self.users.get(owner_id)
        if user is None:
            return None
        orders = [o for o in self.orders.values() if o["user_id"] == owner_id]
        wishlist = []
        for product_id, added_at in self.wishlists.get(owner_id, {}).items():
            product = self.catalog.products.get(product_id)
            if product is not None:
                wishlist.append({**product, "added_at": added_at})
        return IdentityRecord(
            profile=copy.deepcopy(user),
            addresses=copy.deepcopy(self.addresses.get(owner_id, [])),
            orders=copy.deepcopy(orders),
            wishlist=copy.deepcopy(wishlist),
        )

    async def get_order(self, order_id: str) -> dict[str, Any] | None:
        order = self.orders.get(order_id)
        return copy.deepcopy(order) if order is not None else None

    async def product_exists(self, product_id: str) -> bool:
        product = self.catalog.products.get(product_id)
        return product is not None and bool(product.get("is_active"))

    async def add_to_wishlist(self, owner_id: str, product_id: str) -> None:
        self.wishlists.setdefault(owner_id, {}).setdefault(product_id, datetime.now(timezone.utc))

    async def remove_from_wishlist(self, owner_id: str, product_id: str) -> None:
        self.wishlists.get(owner_id, {}).pop(product_id, None)

    async def set_cart_quantity(self, owner_id: str, product_id: str, quantity: int) -> None:
        cart = self.carts.setdefault(owner_id, {})
        if quantity == 0:
            cart.pop(product_id, None)
        else:
            cart[product_id] = quantity

    async def update_profile(self, owner_id: str, fields: dict[str, Any]) -> None:
        user = self.users.get(owner_id)
        if user is None:
            raise NotFoundError(f"Unknown identity: {owner_id}")
        user.update(fields)
        user["updated_at"] = datetime.now(timezone.utc)

    async def add_address(self, owner_id: str, address: dict[str, Any]) -> str:
        address_id = str(uuid.uuid4())
        self.addresses.setdefault(owner_id, []).append(
            {"id": address_id, "is_active": True, **address}
        )
        return address_id
