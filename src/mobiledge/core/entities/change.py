"""Offline change records and sync outcomes.

Clients queue mutations while offline and submit them as a batch.
Each raw record carries a ``type`` tag; its ``data`` payload is
parsed into one typed variant per change type before anything is
applied.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

from mobiledge.core.exceptions import ErrorKind, ValidationError

CURRENT_SCHEMA_VERSION = 1


class ChangeType(Enum):
    """Mutation types a mobile client may queue offline."""

    WISHLIST_ADD = "wishlist_add"
    WISHLIST_REMOVE = "wishlist_remove"
    CART_UPDATE = "cart_update"
    PROFILE_UPDATE = "profile_update"
    ADDRESS_ADD = "address_add"


def _require_str(data: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = data.get(key)
        if value is not None:
            if not isinstance(value, (str, int)) or isinstance(value, bool) or value == "":
                raise ValidationError(f"{key} must be a non-empty string")
            return str(value)
    raise ValidationError(f"{keys[0]} is required")


@dataclass(frozen=True)
class WishlistAdd:
    change_type: ClassVar[ChangeType] = ChangeType.WISHLIST_ADD

    product_id: str

    @classmethod
    def parse(cls, data: Mapping[str, Any]) -> "WishlistAdd":
        return cls(product_id=_require_str(data, "product_id", "productId"))


@dataclass(frozen=True)
class WishlistRemove:
    change_type: ClassVar[ChangeType] = ChangeType.WISHLIST_REMOVE

    product_id: str

    @classmethod
    def parse(cls, data: Mapping[str, Any]) -> "WishlistRemove":
        return cls(product_id=_require_str(data, "product_id", "productId"))


@dataclass(frozen=True)
class CartUpdate:
    """Set the absolute quantity of a product in the cart (0 removes it)."""

    change_type: ClassVar[ChangeType] = ChangeType.CART_UPDATE

    product_id: str
    quantity: int

    @classmethod
    def parse(cls, data: Mapping[str, Any]) -> "CartUpdate":
        quantity = data.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise ValidationError("quantity must be a non-negative integer")
        return cls(
            product_id=_require_str(data, "product_id", "productId"),
            quantity=quantity,
        )


@dataclass(frozen=True)
class ProfileUpdate:
    """Profile fields a client may change.

    Only allow-listed fields are kept; anything else in the payload is
    dropped without error.
    """

    change_type: ClassVar[ChangeType] = ChangeType.PROFILE_UPDATE
    ALLOWED_FIELDS: ClassVar[tuple[str, ...]] = ("full_name", "phone", "location", "preferences")

    fields: dict[str, Any]

    @classmethod
    def parse(cls, data: Mapping[str, Any]) -> "ProfileUpdate":
        fields = {name: data[name] for name in cls.ALLOWED_FIELDS if name in data}
        # "name" is accepted as an alias of full_name
        if "full_name" not in fields and "name" in data:
            fields["full_name"] = data["name"]

        for name in ("full_name", "phone", "location"):
            if name in fields and fields[name] is not None and not isinstance(fields[name], str):
                raise ValidationError(f"{name} must be a string")
        if "preferences" in fields and not isinstance(fields["preferences"], (Mapping, type(None))):
            raise ValidationError("preferences must be an object")
        return cls(fields=fields)


@dataclass(frozen=True)
class AddressAdd:
    change_type: ClassVar[ChangeType] = ChangeType.ADDRESS_ADD

    address_line: str
    city: str
    country: str
    type: str = "home"
    postal_code: str | None = None
    is_default: bool = False

    @classmethod
    def parse(cls, data: Mapping[str, Any]) -> "AddressAdd":
        postal_code = data.get("postal_code")
        return cls(
            address_line=_require_str(data, "address_line"),
            city=_require_str(data, "city"),
            country=_require_str(data, "country"),
            type=str(data.get("type") or "home"),
            postal_code=str(postal_code) if postal_code is not None else None,
            is_default=bool(data.get("is_default", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "address_line": self.address_line,
            "city": self.city,
            "postal_code": self.postal_code,
            "country": self.country,
            "is_default": self.is_default,
        }


ChangePayload = Union[WishlistAdd, WishlistRemove, CartUpdate, ProfileUpdate, AddressAdd]

PAYLOAD_TYPES: dict[ChangeType, type] = {
    ChangeType.WISHLIST_ADD: WishlistAdd,
    ChangeType.WISHLIST_REMOVE: WishlistRemove,
    ChangeType.CART_UPDATE: CartUpdate,
    ChangeType.PROFILE_UPDATE: ProfileUpdate,
    ChangeType.ADDRESS_ADD: AddressAdd,
}


@dataclass(frozen=True)
class ChangeRecord:
    """A client-queued mutation, consumed once by the reconciler."""

    id: str | None
    type: str
    data: Mapping[str, Any] = field(default_factory=dict)
    timestamp: str | None = None
    schema_version: int = CURRENT_SCHEMA_VERSION

    @classmethod
    def from_mapping(cls, raw: Any) -> "ChangeRecord":
        """Build a record from the wire shape, keeping whatever id it has.

        Validation of the type and payload is deferred to parse_payload
        so that a bad record still gets its own outcome.
        """
        if not isinstance(raw, Mapping):
            return cls(id=None, type="", data={})
        change_id = raw.get("id")
        data = raw.get("data", raw.get("payload"))
        return cls(
            id=str(change_id) if change_id is not None else None,
            type=str(raw.get("type") or ""),
            data=data if isinstance(data, Mapping) else {},
            timestamp=raw.get("timestamp"),
            schema_version=raw.get("schema_version", CURRENT_SCHEMA_VERSION),
        )

    def parse_payload(self) -> ChangePayload:
        """Parse the payload into its typed variant.

        Raises:
            ValidationError: On missing id, unknown type, unsupported
                schema version or malformed payload.
        """
        if not self.id:
            raise ValidationError("Change record has no id")
        try:
            change_type = ChangeType(self.type)
        except ValueError:
            raise ValidationError(f"Unsupported change type: {self.type!r}") from None
        if self.schema_version != CURRENT_SCHEMA_VERSION:
            raise ValidationError(f"Unsupported schema version: {self.schema_version!r}")
        payload: ChangePayload = PAYLOAD_TYPES[change_type].parse(self.data)
        return payload


@dataclass(frozen=True)
class SyncOutcome:
    """Result of applying one change; outcomes[i] matches changes[i]."""

    change_id: str | None
    type: str
    success: bool
    error_kind: ErrorKind | None = None
    error: str | None = None
    replayed: bool = False

    @classmethod
    def ok(cls, change: ChangeRecord, replayed: bool = False) -> "SyncOutcome":
        return cls(change_id=change.id, type=change.type, success=True, replayed=replayed)

    @classmethod
    def failed(cls, change: ChangeRecord, kind: ErrorKind, error: str) -> "SyncOutcome":
        return cls(
            change_id=change.id,
            type=change.type,
            success=False,
            error_kind=kind,
            error=error,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "change_id": self.change_id,
            "type": self.type,
            "success": self.success,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "error": self.error,
            "replayed": self.replayed,
        }
