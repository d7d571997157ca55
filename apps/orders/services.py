from __future__ import annotations

import logging
import secrets
import string
from collections import defaultdict
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.affiliates.services import cancel_order_sales, link_applies_to, resolve_attribution
from apps.authentication.models import User
from apps.products.models import Product
from apps.products.services import CouponLine, find_coupon, validate_coupon
from core.exceptions import InvalidTransition

from .models import CartItem, Order, OrderItem

logger = logging.getLogger(__name__)

ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits

# Allowed order status changes; anything else is rejected.
STATUS_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"paid", "failed", "cancelled"},
    "paid": {"completed", "refunded", "cancelled"},
    "failed": {"pending"},
    "completed": {"refunded"},
    "refunded": set(),
    "cancelled": set(),
}


def generate_order_number() -> str:
    today = timezone.now().strftime("%Y%m%d")
    for _ in range(10):
        suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(6))
        candidate = f"ORD-{today}-{suffix}"
        if not Order.objects.filter(order_number=candidate).exists():
            return candidate
    raise RuntimeError("Failed to generate unique order number")


def add_to_cart(user: User, product: Product, quantity: int = 1) -> CartItem:
    quantity = max(quantity, 1)
    item, created = CartItem.objects.get_or_create(
        user=user,
        product=product,
        defaults={"quantity": quantity},
    )
    if not created:
        CartItem.objects.filter(pk=item.pk).update(quantity=F("quantity") + quantity)
        item.refresh_from_db(fields=["quantity"])
    return item


def set_cart_quantity(item: CartItem, quantity: int) -> CartItem | None:
    if quantity <= 0:
        item.delete()
        return None
    item.quantity = quantity
    item.save(update_fields=["quantity"])
    return item


def cart_total(user: User) -> Decimal:
    total = Decimal("0")
    for item in CartItem.objects.filter(user=user).select_related("product"):
        total += item.product.price * item.quantity
    return total


def checkout(user: User, data: dict, affiliate_ref: str | None = None) -> list[Order]:
    """
    Turn the buyer's cart into one pending order per seller.

    The cart is cleared in the same transaction. ``affiliate_ref`` is the
    attribution cookie value (an AffiliateLink id); it is stored on each
    seller order the link applies to and credited when payment succeeds.
    """
    items = list(
        CartItem.objects.filter(user=user, product__is_active=True).select_related("product", "product__store")
    )
    if not items:
        raise ValueError("Cart is empty")

    link = resolve_attribution(affiliate_ref) if affiliate_ref else None
    coupon_code = (data.get("coupon_code") or "").strip().upper()

    by_seller: dict = defaultdict(list)
    for item in items:
        by_seller[item.product.owner_id].append(item)

    customer_name = data.get("customer_name") or user.full_name
    customer_email = data.get("customer_email") or user.email
    customer_phone = data.get("customer_phone") or user.phone_number or ""

    created: list[Order] = []
    with transaction.atomic():
        for seller_id, seller_items in by_seller.items():
            lines = [CouponLine(product=i.product, amount=i.product.price * i.quantity) for i in seller_items]
            subtotal = sum((line.amount for line in lines), Decimal("0"))

            # A coupon code only applies to the order of the seller who issued it.
            coupon = None
            discount = Decimal("0")
            if coupon_code and find_coupon(seller_id, coupon_code) is not None:
                coupon, discount = validate_coupon(coupon_code, seller_id, lines)

            order_link = None
            if link is not None and link.seller_id == seller_id and user.id != seller_id:
                if any(link_applies_to(link, i.product) for i in seller_items):
                    order_link = link

            order = Order.objects.create(
                order_number=generate_order_number(),
                buyer=user,
                seller_id=seller_id,
                customer_name=customer_name,
                customer_email=customer_email,
                customer_phone=customer_phone,
                shipping_address=data.get("shipping_address") or "",
                notes=data.get("notes") or "",
                subtotal=subtotal,
                discount_amount=discount,
                coupon=coupon,
                coupon_code=coupon.code if coupon else None,
                total_amount=subtotal - discount,
                currency=seller_items[0].product.currency,
                status="pending",
                payment_method=data.get("payment_method") or "card",
                affiliate_link=order_link,
            )
            OrderItem.objects.bulk_create(
                [
                    OrderItem(
                        order=order,
                        product=i.product,
                        product_name=i.product.name,
                        product_price=i.product.price,
                        quantity=i.quantity,
                        subtotal=i.product.price * i.quantity,
                    )
                    for i in seller_items
                ]
            )
            created.append(order)

        CartItem.objects.filter(user=user).delete()

    logger.info(
        "Checkout by %s created %d order(s): %s",
        user.pk,
        len(created),
        ", ".join(o.order_number for o in created),
    )
    return created


def transition_order(order: Order, new_status: str) -> Order:
    allowed = STATUS_TRANSITIONS.get(order.status, set())
    if new_status not in allowed:
        raise InvalidTransition(f"Cannot change order status from {order.status} to {new_status}")

    previous = order.status
    with transaction.atomic():
        order.status = new_status
        update_fields = ["status", "updated_at"]
        if new_status == "paid" and order.paid_at is None:
            order.paid_at = timezone.now()
            update_fields.append("paid_at")
        order.save(update_fields=update_fields)

        if new_status in ("refunded", "cancelled") and previous in ("paid", "completed"):
            cancel_order_sales(order)

    logger.info("Order %s: %s -> %s", order.order_number, previous, new_status)
    return order
