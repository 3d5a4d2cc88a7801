"""Short link registry - mints collision-free codes for typed targets."""

import logging
import re
import secrets
import string
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from mobiledge.core.entities.edge_config import EdgeConfig
from mobiledge.core.entities.link import (
    LinkCreation,
    LinkOptions,
    LinkTarget,
    OrderTarget,
    ProductTarget,
    PromotionTarget,
    ReferralTarget,
    ShortLink,
    StoreTarget,
    UtmParams,
)
from mobiledge.core.exceptions import (
    CodeSpaceExhaustedError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from mobiledge.core.interfaces.collaborators import (
    CatalogKind,
    CatalogQuery,
    ICatalogReader,
    IIdentityReader,
)
from mobiledge.core.interfaces.link_store import IShortLinkStore
from mobiledge.utils.text import split_images, truncate_text

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase

_DEFAULT_CAMPAIGNS = {
    PromotionTarget: "promo_share",
    ReferralTarget: "user_referral",
}


def generate_code(length: int = 6) -> str:
    """Draw a random code from the 62-symbol alphabet."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def generate_referral_code(full_name: str | None) -> str:
    """Build a referral code: three letters of the name plus four digits."""
    letters = re.sub(r"[^a-zA-Z]", "", full_name or "").upper()[:3]
    return f"{letters}{1000 + secrets.randbelow(9000)}"


class ShortLinkRegistry:
    """Creates short links for products, stores, orders, promotions and referrals.

    Each target is checked against its collaborator before a code is
    minted. Codes are claimed with the store's insert_if_absent, so two
    concurrent callers can never end up with the same code; a collision
    draws a new code, up to config.code_max_attempts times.
    """

    def __init__(
        self,
        store: IShortLinkStore,
        catalog: ICatalogReader,
        identities: IIdentityReader,
        config: EdgeConfig | None = None,
        code_factory: Callable[[int], str] = generate_code,
        clock: Callable[[], datetime] | None = None,
        referral_code_factory: Callable[[str | None], str] = generate_referral_code,
    ) -> None:
        """Initialize the registry.

        Args:
            store: Persistence for links and referral codes.
            catalog: Used to check products, stores and promotions.
            identities: Used to check orders and referrers.
            config: Edge configuration. Uses defaults if not provided.
            code_factory: Draws a code of the given length.
            clock: Returns the current aware datetime. UTC now by default.
            referral_code_factory: Draws a referral code from a full name.
        """
        self._store = store
        self._catalog = catalog
        self._identities = identities
        self._config = config or EdgeConfig()
        self._code_factory = code_factory
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._referral_code_factory = referral_code_factory

    async def create(
        self,
        target: LinkTarget,
        options: LinkOptions | None = None,
    ) -> LinkCreation:
        """Create a short link for a target.

        Args:
            target: Typed target descriptor.
            options: Requester, creator, expiry and UTM options.

        Returns:
            The code, native URI, short URL, web URL and share preview.

        Raises:
            ValidationError: On an unsupported target or bad options.
            NotFoundError: If the target entity does not exist, or the
                promotion is inactive or expired.
            ForbiddenError: If an order does not belong to the requester.
            CodeSpaceExhaustedError: If no free code was found.
        """
        options = options or LinkOptions()
        if options.expires_at is not None and options.expires_at <= self._clock():
            raise ValidationError("expires_at must be in the future")

        if isinstance(target, ProductTarget):
            target, preview = await self._product(target, options)
        elif isinstance(target, StoreTarget):
            target, preview = await self._store_target(target)
        elif isinstance(target, OrderTarget):
            target, preview = await self._order(target, options)
        elif isinstance(target, PromotionTarget):
            target, preview = await self._promotion(target)
        elif isinstance(target, ReferralTarget):
            target, preview = await self._referral(target)
        else:
            raise ValidationError(f"Unsupported link target: {type(target).__name__}")

        link = await self._persist(target, options)
        return LinkCreation(
            link_id=link.id,
            code=link.code,
            native_uri=link.native_uri,
            short_url=link.short_url,
            web_url=link.web_url,
            share_preview=preview,
            referral_code=target.referral_code if isinstance(target, ReferralTarget) else None,
        )

    async def get(self, code: str) -> ShortLink | None:
        """Look up a link by code."""
        return await self._store.get(code)

    def native_uri(self, target: LinkTarget) -> str:
        return f"{self._config.base_scheme}://{target.native_path}/{target.natural_key}"

    def web_url(self, target: LinkTarget) -> str:
        return f"{self._config.web_domain}/{target.web_path}/{target.natural_key}"

    async def _persist(self, target: LinkTarget, options: LinkOptions) -> ShortLink:
        default_medium = "referral_link" if isinstance(target, ReferralTarget) else "deep_link"
        utm = UtmParams(
            source=options.utm_source or "app",
            medium=options.utm_medium or default_medium,
            campaign=options.campaign or _DEFAULT_CAMPAIGNS.get(type(target)),
        )

        for attempt in range(1, self._config.code_max_attempts + 1):
            code = self._code_factory(self._config.code_length)
            link = ShortLink(
                id=str(uuid.uuid4()),
                code=code,
                target=target,
                utm=utm,
                native_uri=self.native_uri(target),
                short_url=f"{self._config.short_link_base}/{code}",
                web_url=self.web_url(target),
                created_at=self._clock(),
                expires_at=options.expires_at,
                creator_id=options.creator_id or options.requester_id,
            )
            if await self._store.insert_if_absent(link):
                return link
            logger.warning("Short code collision on attempt %d, redrawing", attempt)

        raise CodeSpaceExhaustedError(
            f"No free short code after {self._config.code_max_attempts} attempts"
        )

    async def _get_one(self, kind: CatalogKind, entity_id: str) -> dict[str, Any] | None:
        rows = await self._catalog.query(CatalogQuery(kind=kind, ids=(entity_id,), limit=1))
        return rows[0] if rows else None

    def _describe(self, text: str | None) -> str | None:
        return truncate_text(text, self._config.share_description_budget)

    async def _product(
        self, target: ProductTarget, options: LinkOptions
    ) -> tuple[LinkTarget, dict[str, Any]]:
        product = await self._get_one("products", target.product_id)
        if product is None:
            raise NotFoundError(f"Unknown product: {target.product_id}")

        currency = options.currency or product.get("currency") or self._config.default_currency
        store_name = product.get("store_name")
        title = f"{product.get('name')} - {store_name}" if store_name else str(product.get("name"))
        return target, {
            "title": title,
            "description": self._describe(product.get("description")),
            "image": next(iter(split_images(product.get("images"))), None),
            "price": f"{product.get('price')} {currency}",
        }

    async def _store_target(self, target: StoreTarget) -> tuple[LinkTarget, dict[str, Any]]:
        store = await self._get_one("stores", target.store_id)
        if store is None:
            raise NotFoundError(f"Unknown store: {target.store_id}")
        return target, {
            "title": store.get("name"),
            "description": self._describe(store.get("description")),
            "image": store.get("logo"),
            "category": store.get("category"),
        }

    async def _order(
        self, target: OrderTarget, options: LinkOptions
    ) -> tuple[LinkTarget, dict[str, Any]]:
        if not options.requester_id:
            raise ValidationError("Order links require a requester")
        order = await self._identities.get_order(target.order_id)
        if order is None:
            raise NotFoundError(f"Unknown order: {target.order_id}")
        if str(order.get("user_id")) != options.requester_id:
            raise ForbiddenError("Order belongs to another identity")
        return target, {
            "title": f"Order #{order.get('order_number')}",
            "description": (
                f"Status: {order.get('status')} - "
                f"{order.get('total_amount')} {order.get('currency')}"
            ),
            "requires_auth": True,
        }

    async def _promotion(self, target: PromotionTarget) -> tuple[LinkTarget, dict[str, Any]]:
        promo = await self._catalog.get_promotion(target.promo_code)
        if promo is None or not promo.get("is_active"):
            raise NotFoundError(f"Unknown or inactive promotion: {target.promo_code}")
        expires_at = promo.get("expires_at")
        if isinstance(expires_at, str):
            try:
                expires_at = datetime.fromisoformat(expires_at)
            except ValueError:
                raise NotFoundError(
                    f"Promotion has an unreadable expiry: {target.promo_code}"
                ) from None
        if expires_at is not None and expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if expires_at is not None and expires_at <= self._clock():
            raise NotFoundError(f"Promotion has expired: {target.promo_code}")

        amount = promo.get("discount_amount")
        if promo.get("discount_type") == "percentage":
            discount = f"{amount}%"
        else:
            discount = f"{amount} {self._config.default_currency}"
        description = f"{discount} off"
        if promo.get("description"):
            description = f"{description} - {promo['description']}"
        return target, {
            "title": f"Promo code: {target.promo_code}",
            "description": self._describe(description),
            "cta": "Use now",
        }

    async def _referral(self, target: ReferralTarget) -> tuple[LinkTarget, dict[str, Any]]:
        identity = await self._identities.get(target.referrer_id)
        if identity is None:
            raise NotFoundError(f"Unknown identity: {target.referrer_id}")

        full_name = identity.profile.get("full_name")
        code = await self._store.get_referral_code(target.referrer_id)
        attempt = 0
        while code is None:
            attempt += 1
            if attempt > self._config.code_max_attempts:
                raise CodeSpaceExhaustedError(
                    f"No free referral code after {self._config.code_max_attempts} attempts"
                )
            code = await self._store.claim_referral_code(
                target.referrer_id, self._referral_code_factory(full_name)
            )
        return replace(target, referral_code=code), {
            "title": f"{full_name or 'A friend'} invites you",
            "description": "Join and get a discount on your first order",
            "cta": "Sign up now",
        }
