"""Short link, click and redirect entities."""

import re
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Union

from mobiledge.core.exceptions import ValidationError

TARGET_SCHEMA_VERSION = 1


class TargetType(Enum):
    """Kinds of entity a short link can point at."""

    PRODUCT = "product"
    STORE = "store"
    ORDER = "order"
    PROMOTION = "promotion"
    REFERRAL = "referral"


@dataclass(frozen=True)
class ProductTarget:
    kind: ClassVar[TargetType] = TargetType.PRODUCT
    native_path: ClassVar[str] = "product"
    web_path: ClassVar[str] = "product"

    product_id: str
    schema_version: int = TARGET_SCHEMA_VERSION

    @property
    def natural_key(self) -> str:
        return self.product_id


@dataclass(frozen=True)
class StoreTarget:
    kind: ClassVar[TargetType] = TargetType.STORE
    native_path: ClassVar[str] = "store"
    web_path: ClassVar[str] = "store"

    store_id: str
    schema_version: int = TARGET_SCHEMA_VERSION

    @property
    def natural_key(self) -> str:
        return self.store_id


@dataclass(frozen=True)
class OrderTarget:
    kind: ClassVar[TargetType] = TargetType.ORDER
    native_path: ClassVar[str] = "order"
    web_path: ClassVar[str] = "orders"

    order_id: str
    schema_version: int = TARGET_SCHEMA_VERSION

    @property
    def natural_key(self) -> str:
        return self.order_id


@dataclass(frozen=True)
class PromotionTarget:
    kind: ClassVar[TargetType] = TargetType.PROMOTION
    native_path: ClassVar[str] = "promo"
    web_path: ClassVar[str] = "promo"

    promo_code: str
    schema_version: int = TARGET_SCHEMA_VERSION

    @property
    def natural_key(self) -> str:
        return self.promo_code


@dataclass(frozen=True)
class ReferralTarget:
    """Referral link of an identity.

    The referral code is assigned by the registry on creation and is
    stable for the identity afterwards.
    """

    kind: ClassVar[TargetType] = TargetType.REFERRAL
    native_path: ClassVar[str] = "referral"
    web_path: ClassVar[str] = "referral"

    referrer_id: str
    referral_code: str | None = None
    schema_version: int = TARGET_SCHEMA_VERSION

    @property
    def natural_key(self) -> str:
        if not self.referral_code:
            raise ValidationError("Referral target has no referral code yet")
        return self.referral_code


LinkTarget = Union[ProductTarget, StoreTarget, OrderTarget, PromotionTarget, ReferralTarget]

TARGET_TYPES: dict[TargetType, type] = {
    TargetType.PRODUCT: ProductTarget,
    TargetType.STORE: StoreTarget,
    TargetType.ORDER: OrderTarget,
    TargetType.PROMOTION: PromotionTarget,
    TargetType.REFERRAL: ReferralTarget,
}


def target_to_dict(target: LinkTarget) -> dict[str, Any]:
    """Serialize a target descriptor with its type tag."""
    data = asdict(target)
    data["type"] = target.kind.value
    return data


def target_from_dict(data: Mapping[str, Any]) -> LinkTarget:
    """Parse a tagged target descriptor.

    Raises:
        ValidationError: On unknown type, newer schema or missing keys.
    """
    try:
        target_type = TargetType(data.get("type"))
    except ValueError:
        raise ValidationError(f"Unknown link target type: {data.get('type')!r}") from None

    cls = TARGET_TYPES[target_type]
    version = data.get("schema_version", TARGET_SCHEMA_VERSION)
    if not isinstance(version, int) or version > TARGET_SCHEMA_VERSION:
        raise ValidationError(f"Unsupported target schema version: {version!r}")

    names = {f.name for f in fields(cls)}
    values = {k: v for k, v in data.items() if k in names}
    try:
        target: LinkTarget = cls(**values)
    except TypeError as e:
        raise ValidationError(f"Malformed {target_type.value} target: {e}") from e

    key_field = next(f.name for f in fields(cls))
    if not isinstance(getattr(target, key_field), str) or not getattr(target, key_field):
        raise ValidationError(f"{key_field} must be a non-empty string")
    return target


@dataclass(frozen=True)
class UtmParams:
    """Campaign tracking metadata stored with a link."""

    source: str = "app"
    medium: str = "deep_link"
    campaign: str | None = None


@dataclass(frozen=True)
class LinkOptions:
    """Caller options for link creation.

    Attributes:
        requester_id: Identity asking for the link. Required for order
            targets, which must belong to it.
        creator_id: Identity recorded as the link creator.
        expires_at: Optional expiry; links never expire by default.
        campaign: Campaign name; defaults per target type.
        utm_source: UTM source, "app" by default.
        utm_medium: UTM medium; "deep_link", or "referral_link" for referrals.
        currency: Currency shown in product share previews.
    """

    requester_id: str | None = None
    creator_id: str | None = None
    expires_at: datetime | None = None
    campaign: str | None = None
    utm_source: str | None = None
    utm_medium: str | None = None
    currency: str | None = None

    def __post_init__(self) -> None:
        if self.expires_at is not None and self.expires_at.tzinfo is None:
            raise ValidationError("expires_at must be timezone-aware")

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> "LinkOptions":
        options = options or {}
        expires_at = options.get("expires_at")
        if isinstance(expires_at, str):
            try:
                expires_at = datetime.fromisoformat(expires_at)
            except ValueError as e:
                raise ValidationError(f"Invalid expires_at: {e}") from e
        if expires_at is not None and not isinstance(expires_at, datetime):
            raise ValidationError("expires_at must be a datetime")
        names = {f.name for f in fields(cls)} - {"expires_at"}
        values = {k: v for k, v in options.items() if k in names}
        for key, value in values.items():
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"{key} must be a string")
        return cls(expires_at=expires_at, **values)


@dataclass(frozen=True)
class ShortLink:
    """A persisted short code and what it points at."""

    id: str
    code: str
    target: LinkTarget
    utm: UtmParams
    native_uri: str
    short_url: str
    web_url: str
    created_at: datetime
    expires_at: datetime | None = None
    is_active: bool = True
    click_count: int = 0
    creator_id: str | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) >= self.expires_at

    def with_clicks(self, click_count: int) -> "ShortLink":
        return replace(self, click_count=click_count)


@dataclass(frozen=True)
class LinkCreation:
    """Result of creating a short link."""

    link_id: str
    code: str
    native_uri: str
    short_url: str
    web_url: str
    share_preview: dict[str, Any]
    referral_code: str | None = None


_IOS_PATTERN = re.compile(r"iPhone|iPad|iPod")
_ANDROID_PATTERN = re.compile(r"Android")


class Platform(Enum):
    """Coarse device class derived from a user agent."""

    IOS = "ios"
    ANDROID = "android"
    OTHER = "other"

    @classmethod
    def classify(cls, user_agent: str | None) -> "Platform":
        """Classify a user agent string into ios, android or other."""
        if not user_agent:
            return cls.OTHER
        if _IOS_PATTERN.search(user_agent):
            return cls.IOS
        if _ANDROID_PATTERN.search(user_agent):
            return cls.ANDROID
        return cls.OTHER


@dataclass(frozen=True)
class ClickEvent:
    """One resolution of a short link. Append-only."""

    link_id: str
    code: str
    clicked_at: datetime
    user_agent: str | None
    ip: str | None
    platform: Platform
    country: str | None = None


@dataclass(frozen=True)
class RedirectDecision:
    """Where to send a client that hit a short code.

    Attributes:
        url: Redirect destination.
        platform: Platform derived from the user agent.
        fallback: True when sent to the generic web root.
        reason: Why the fallback was used ("not_found", "expired",
            "error"), None on a normal resolution.
        code: The requested code.
        target: Target descriptor when the link was found.
    """

    url: str
    platform: Platform
    fallback: bool = False
    reason: str | None = None
    code: str | None = None
    target: LinkTarget | None = None


@dataclass
class LinkAnalytics:
    """Click aggregation for one link over a time window."""

    link_id: str
    window_days: int
    since: datetime
    total_clicks: int = 0
    by_day: list[tuple[date, int]] = field(default_factory=list)
    by_platform: list[tuple[str, int]] = field(default_factory=list)
    by_country: list[tuple[str, int]] = field(default_factory=list)
