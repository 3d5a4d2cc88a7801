"""Offline snapshot entities and build options."""

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from mobiledge.core.exceptions import ValidationError


class DomainType(Enum):
    """The four snapshot domains a mobile client can take offline."""

    PRODUCTS = "products"
    CATEGORIES = "categories"
    PROFILE = "profile"
    STORES = "stores"

    @classmethod
    def parse(cls, value: "str | DomainType") -> "DomainType":
        """Parse a domain type, raising ValidationError when unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Unknown snapshot domain: {value!r}") from None


@dataclass(frozen=True)
class PriceRange:
    """Inclusive price bounds."""

    min: float
    max: float

    def __post_init__(self) -> None:
        if self.min < 0 or self.max < self.min:
            raise ValidationError(f"Invalid price range: {self.min}..{self.max}")

    def contains(self, price: float) -> bool:
        return self.min <= price <= self.max


def _as_bool(options: Mapping[str, Any], key: str, default: bool) -> bool:
    value = options.get(key, default)
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be a boolean")
    return value


def _as_limit(options: Mapping[str, Any], key: str, default: int) -> int:
    value = options.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"{key} must be a positive integer")
    return value


@dataclass(frozen=True)
class ProductSnapshotOptions:
    """Filters for the products snapshot.

    Attributes:
        categories: Category slugs to restrict to. Empty means all.
        price_range: Optional inclusive price bounds.
        location: Case-insensitive substring of the store location.
        limit: Maximum number of products in the snapshot.
        include_images: Whether to attach the thumbnail and gallery.
        include_details: Whether to attach the truncated description.
    """

    categories: tuple[str, ...] = ()
    price_range: PriceRange | None = None
    location: str | None = None
    limit: int = 100
    include_images: bool = True
    include_details: bool = True

    @classmethod
    def from_mapping(
        cls, options: Mapping[str, Any] | None, default_limit: int = 100
    ) -> "ProductSnapshotOptions":
        """Validate loosely-typed request options.

        Raises:
            ValidationError: If any option has the wrong shape.
        """
        options = options or {}

        categories = options.get("categories") or ()
        if not isinstance(categories, (list, tuple)) or not all(
            isinstance(c, str) for c in categories
        ):
            raise ValidationError("categories must be a list of slugs")

        price_range = None
        raw_range = options.get("price_range")
        if raw_range is not None:
            if not isinstance(raw_range, Mapping) or "min" not in raw_range or "max" not in raw_range:
                raise ValidationError("price_range must have min and max")
            try:
                price_range = PriceRange(float(raw_range["min"]), float(raw_range["max"]))
            except (TypeError, ValueError) as e:
                raise ValidationError(f"price_range bounds must be numbers: {e}") from e

        location = options.get("location")
        if location is not None and not isinstance(location, str):
            raise ValidationError("location must be a string")

        return cls(
            categories=tuple(categories),
            price_range=price_range,
            location=location or None,
            limit=_as_limit(options, "limit", default_limit),
            include_images=_as_bool(options, "include_images", True),
            include_details=_as_bool(options, "include_details", True),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["categories"] = list(self.categories)
        return data


@dataclass(frozen=True)
class CategorySnapshotOptions:
    """Options for the categories snapshot."""

    include_subcategories: bool = True
    include_product_count: bool = True

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> "CategorySnapshotOptions":
        options = options or {}
        return cls(
            include_subcategories=_as_bool(options, "include_subcategories", True),
            include_product_count=_as_bool(options, "include_product_count", True),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class StoreSnapshotOptions:
    """Options for the popular stores snapshot."""

    location: str | None = None
    limit: int = 20

    @classmethod
    def from_mapping(
        cls, options: Mapping[str, Any] | None, default_limit: int = 20
    ) -> "StoreSnapshotOptions":
        options = options or {}
        location = options.get("location")
        if location is not None and not isinstance(location, str):
            raise ValidationError("location must be a string")
        return cls(
            location=location or None,
            limit=_as_limit(options, "limit", default_limit),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SnapshotResult:
    """Summary returned after a snapshot has been built and cached."""

    domain: DomainType
    owner_id: str
    count: int
    size_bytes: int
    size: str
    metadata: dict[str, Any]
