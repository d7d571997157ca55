from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable

from django.db.models import Q, QuerySet
from django.utils import timezone

from apps.authentication.models import User
from apps.authentication.services import get_user_limits
from core.exceptions import LimitExceeded
from core.utils import slugify_name

from .models import DiscountCoupon, Product

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def generate_product_slug(owner: User, name: str) -> str:
    millis = int(time.time() * 1000)
    parts = [str(owner.id)[:8], slugify_name(name), str(millis)]
    return "-".join(part for part in parts if part)


def parse_price(value) -> Decimal:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError("Invalid price")
    if not price.is_finite() or price < 0:
        raise ValueError("Invalid price")
    return price.quantize(TWO_PLACES)


def check_subscription_limit(owner: User, limits=None) -> None:
    limits = limits or get_user_limits(owner)
    if not limits.can_create_subscription_product:
        raise LimitExceeded(
            f"Subscription product limit reached ({limits.max_subscription_products}). Upgrade your plan."
        )


def check_product_limits(owner: User, is_subscription: bool) -> None:
    limits = get_user_limits(owner)
    if not limits.can_create_product:
        raise LimitExceeded(f"Product limit reached ({limits.max_products}). Upgrade your plan.")
    if is_subscription:
        check_subscription_limit(owner, limits)


def create_product(owner: User, data: dict) -> Product:
    is_subscription = bool(data.get("is_subscription"))
    check_product_limits(owner, is_subscription)

    name = (data.get("name") or "").strip()
    if not name or data.get("price") in (None, ""):
        raise ValueError("Name and price are required")
    price = parse_price(data["price"])

    store = data.get("store")
    if store is not None and store.owner_id != owner.id:
        raise ValueError("Store does not belong to you")

    fields = {
        key: value
        for key, value in data.items()
        if key not in ("name", "price", "slug", "owner", "store", "views_count", "sales_count")
    }
    if not is_subscription:
        fields["subscription_period"] = None
    elif not fields.get("subscription_period"):
        fields["subscription_period"] = "monthly"

    product = Product.objects.create(
        owner=owner,
        store=store,
        name=name,
        price=price,
        slug=generate_product_slug(owner, name),
        **fields,
    )
    logger.info("Product %s created by %s (store=%s)", product.pk, owner.pk, getattr(store, "pk", None))
    return product


def marketplace_queryset() -> QuerySet[Product]:
    """
    Products listed on the public marketplace.

    Storeless products are listed on their own; products of a store follow
    the store's active and show_in_marketplace flags.
    """
    return (
        Product.objects.select_related("store", "owner")
        .filter(is_active=True, visibility="marketplace")
        .filter(Q(store__isnull=True) | Q(store__is_active=True, store__show_in_marketplace=True))
    )


def publicly_visible_queryset() -> QuerySet[Product]:
    return Product.objects.select_related("store", "owner").filter(is_active=True).exclude(visibility="private")


@dataclass
class CouponLine:
    product: Product
    amount: Decimal


def find_coupon(seller_id, code: str) -> DiscountCoupon | None:
    code = (code or "").strip().upper()
    if not code:
        return None
    return DiscountCoupon.objects.filter(seller_id=seller_id, code=code).first()


def coupon_applies_to(coupon: DiscountCoupon, product: Product) -> bool:
    if not product.coupons_enabled:
        return False
    if coupon.apply_to == "specific_products":
        return coupon.products.filter(pk=product.pk).exists()
    if coupon.apply_to == "specific_stores":
        return product.store_id is not None and coupon.stores.filter(pk=product.store_id).exists()
    return True


def calculate_coupon_discount(
    coupon: DiscountCoupon,
    lines: Iterable[CouponLine],
    now: datetime | None = None,
) -> Decimal:
    now = now or timezone.now()
    if not coupon.is_active:
        raise ValueError("Coupon is not active")
    if coupon.start_date and coupon.start_date > now:
        raise ValueError("Coupon is not valid yet")
    if coupon.end_date and coupon.end_date < now:
        raise ValueError("Coupon has expired")
    if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
        raise ValueError("Coupon usage limit reached")

    lines = list(lines)
    order_total = sum((line.amount for line in lines), Decimal("0"))
    if coupon.min_purchase_amount is not None and order_total < coupon.min_purchase_amount:
        raise ValueError(f"Minimum purchase for this coupon is {coupon.min_purchase_amount}")

    applicable = sum(
        (line.amount for line in lines if coupon_applies_to(coupon, line.product)),
        Decimal("0"),
    )
    if applicable <= 0:
        raise ValueError("Coupon does not apply to these products")

    if coupon.discount_type == "percentage":
        discount = applicable * coupon.discount_value / Decimal("100")
        if coupon.max_discount_amount is not None:
            discount = min(discount, coupon.max_discount_amount)
    else:
        discount = coupon.discount_value
    return min(discount, applicable).quantize(TWO_PLACES)


def validate_coupon(code: str, seller_id, lines: Iterable[CouponLine], now: datetime | None = None):
    """Look up ``code`` for the seller and return ``(coupon, discount)``."""
    coupon = find_coupon(seller_id, code)
    if coupon is None:
        raise ValueError("Coupon not found")
    return coupon, calculate_coupon_discount(coupon, lines, now=now)
