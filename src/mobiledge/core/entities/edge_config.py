"""Edge configuration entity."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta

from mobiledge.core.entities.snapshot import DomainType
from mobiledge.core.exceptions import ValidationError

DEFAULT_SNAPSHOT_TTL = timedelta(hours=24)


def _default_ttls() -> dict[DomainType, timedelta]:
    return {domain: DEFAULT_SNAPSHOT_TTL for domain in DomainType}


@dataclass(frozen=True)
class EdgeConfig:
    """Configuration shared by every mobiledge component.

    Built once at the system boundary and passed to each service at
    construction. All values are validated in __post_init__.

    Deep links:
        Native URIs are built as ``{base_scheme}://{type}/{key}`` and
        web pages as ``{web_domain}/{path}/{key}``. Mobile redirects
        embed the store listing as a ``fallback`` query parameter.

    Snapshots:
        Each domain has its own TTL (24 hours by default). Text fields
        are truncated to the given character budgets, ellipsis included.
    """

    base_scheme: str = "shop"
    web_domain: str = "https://shop.example.com"
    app_store_url: str = "https://apps.apple.com/app/shop"
    play_store_url: str = "https://play.google.com/store/apps/details?id=com.example.shop"
    short_link_path: str = "l"

    # Offline snapshots
    key_prefix: str = "offline"
    snapshot_ttls: dict[DomainType, timedelta] = field(default_factory=_default_ttls)
    product_description_budget: int = 200
    store_description_budget: int = 100
    gallery_size: int = 3
    product_limit: int = 100
    store_limit: int = 20
    recent_orders_limit: int = 10
    wishlist_preview_limit: int = 20
    snapshot_version: str = "1.0"

    # Sync receipts
    receipt_ttl: timedelta = timedelta(days=7)

    # Short links
    code_length: int = 6
    code_max_attempts: int = 5
    share_description_budget: int = 120
    default_currency: str = "XOF"

    # Background writers
    event_queue_size: int = 1000

    # Analytics
    analytics_country_limit: int = 10

    # Universal / app links
    ios_app_id: str = "TEAMID.com.example.shop"
    android_package: str = "com.example.shop"
    android_sha256_fingerprints: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate values once, at construction."""
        if not self.base_scheme or "://" in self.base_scheme:
            raise ValidationError(f"Invalid deep link scheme: {self.base_scheme!r}")
        if not self.web_domain.startswith(("http://", "https://")):
            raise ValidationError(f"web_domain must be an http(s) URL: {self.web_domain!r}")
        # No trailing slash
        object.__setattr__(self, "web_domain", self.web_domain.rstrip("/"))

        missing = [d.value for d in DomainType if d not in self.snapshot_ttls]
        if missing:
            raise ValidationError(f"Missing snapshot TTL for: {', '.join(missing)}")
        for domain, ttl in self.snapshot_ttls.items():
            if ttl <= timedelta(0):
                raise ValidationError(f"Snapshot TTL for {domain.value} must be positive")

        for name in (
            "product_description_budget",
            "store_description_budget",
            "share_description_budget",
        ):
            if getattr(self, name) < 4:
                raise ValidationError(f"{name} must leave room for an ellipsis")

        for name in (
            "gallery_size",
            "product_limit",
            "store_limit",
            "recent_orders_limit",
            "wishlist_preview_limit",
            "code_length",
            "code_max_attempts",
            "event_queue_size",
            "analytics_country_limit",
        ):
            if getattr(self, name) < 1:
                raise ValidationError(f"{name} must be at least 1")

    def ttl_for(self, domain: DomainType) -> timedelta:
        """Get the snapshot TTL for a domain type."""
        return self.snapshot_ttls[domain]

    @property
    def short_link_base(self) -> str:
        """Base URL under which short codes resolve."""
        return f"{self.web_domain}/{self.short_link_path}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: object) -> "EdgeConfig":
        """Create a config from environment variables.

        Recognized variables: DEEP_LINK_SCHEME, WEB_DOMAIN, APP_STORE_URL,
        PLAY_STORE_URL, IOS_APP_ID, ANDROID_PACKAGE_NAME and
        ANDROID_SHA256_FINGERPRINT (comma separated).

        Args:
            environ: Mapping to read from. Defaults to os.environ.
            **overrides: Explicit field values, taking precedence.

        Returns:
            A validated EdgeConfig.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}

        mapping = {
            "DEEP_LINK_SCHEME": "base_scheme",
            "WEB_DOMAIN": "web_domain",
            "APP_STORE_URL": "app_store_url",
            "PLAY_STORE_URL": "play_store_url",
            "IOS_APP_ID": "ios_app_id",
            "ANDROID_PACKAGE_NAME": "android_package",
        }
        for var, name in mapping.items():
            if env.get(var):
                values[name] = env[var]

        fingerprints = env.get("ANDROID_SHA256_FINGERPRINT")
        if fingerprints:
            values["android_sha256_fingerprints"] = tuple(
                fp.strip() for fp in fingerprints.split(",") if fp.strip()
            )

        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]
