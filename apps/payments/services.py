from __future__ import annotations

import hashlib
import hmac
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import requests
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.affiliates.services import attribute_order
from apps.authentication.models import User
from apps.notifications.tasks import notify_new_order
from apps.orders.models import Order
from apps.orders.services import transition_order
from apps.products.models import DiscountCoupon, Product
from core.exceptions import PaymentError

from .models import Payment, PaymentProviderKey, PaymentSettings, WebhookLog

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# A failed order goes back to pending when the buyer retries.
PAYABLE_ORDER_STATUSES = ("pending", "failed")

# Order of the transaction fields in Paymob's HMAC string.
PAYMOB_HMAC_FIELDS = (
    "amount_cents",
    "created_at",
    "currency",
    "error_occured",
    "has_parent_transaction",
    "id",
    "integration_id",
    "is_3d_secure",
    "is_auth",
    "is_capture",
    "is_refunded",
    "is_standalone_payment",
    "is_voided",
    "order",
    "owner",
    "pending",
    "source_data_pan",
    "source_data_sub_type",
    "source_data_type",
    "success",
)


def active_paymob_keys() -> PaymentProviderKey | None:
    return PaymentProviderKey.objects.filter(provider="paymob", is_active=True).order_by("-updated_at").first()


def split_fee(total: Decimal, percentage: Decimal) -> tuple[Decimal, Decimal]:
    """Return ``(platform_fee, seller_amount)`` for an order total."""
    platform_fee = (Decimal(total) * Decimal(percentage) / Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)
    return platform_fee, Decimal(total) - platform_fee


def _amount_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _paymob_post(path: str, body: dict) -> dict:
    url = f"{settings.PAYMOB_BASE_URL.rstrip('/')}{path}"
    resp = requests.post(url, json=body, timeout=settings.PAYMOB_TIMEOUT)
    resp.raise_for_status()
    return resp.json() or {}


def _billing_data(order: Order) -> dict:
    parts = (order.customer_name or "").split()
    return {
        "email": order.customer_email,
        "first_name": parts[0] if parts else "Customer",
        "last_name": " ".join(parts[1:]) or "Customer",
        "phone_number": order.customer_phone or "NA",
        "country": "SA",
        "city": "Riyadh",
        "street": "NA",
        "building": "NA",
        "floor": "NA",
        "apartment": "NA",
    }


def create_payment_session(user: User, order_id) -> dict:
    """
    Open a Paymob checkout for one of the buyer's orders.

    Raises ``PaymentError`` for anything the buyer or the platform
    configuration can fix, and lets ``requests.RequestException`` through
    when Paymob itself is unreachable.
    """
    try:
        order = Order.objects.filter(pk=order_id, buyer=user).first()
    except ValidationError:
        order = None
    if order is None:
        raise PaymentError("Order not found")
    if order.status in ("paid", "completed"):
        raise PaymentError("Order already paid")
    if order.status not in PAYABLE_ORDER_STATUSES:
        raise PaymentError(f"Order cannot be paid (status: {order.status})")

    payment_settings = PaymentSettings.load()
    if not payment_settings.is_active:
        raise PaymentError("Payment system is not active")

    keys = active_paymob_keys()
    if keys is None:
        raise PaymentError("Paymob keys not configured. Please add keys in payment settings.")
    if not keys.api_key or not keys.integration_id or not keys.hmac_secret:
        raise PaymentError("Incomplete Paymob configuration")

    percentage = payment_settings.global_commission_percentage or Decimal("0")
    platform_fee, seller_amount = split_fee(order.total_amount, percentage)

    auth = _paymob_post("/api/auth/tokens", {"api_key": keys.api_key})
    token = auth.get("token")
    if not token:
        raise PaymentError("Failed to get Paymob auth token")

    amount_cents = _amount_cents(order.total_amount)
    paymob_order = _paymob_post(
        "/api/ecommerce/orders",
        {
            "auth_token": token,
            "delivery_needed": False,
            "amount_cents": amount_cents,
            "currency": settings.PAYMOB_CURRENCY,
            "merchant_order_id": str(order.id),
            "items": [],
        },
    )
    if not paymob_order.get("id"):
        raise PaymentError("Failed to create Paymob order")

    payment_key = _paymob_post(
        "/api/acceptance/payment_keys",
        {
            "auth_token": token,
            "amount_cents": amount_cents,
            "expiration": 3600,
            "order_id": paymob_order["id"],
            "billing_data": _billing_data(order),
            "currency": settings.PAYMOB_CURRENCY,
            "integration_id": int(keys.integration_id),
        },
    )
    payment_token = payment_key.get("token")
    if not payment_token:
        raise PaymentError("Failed to get payment key")

    iframe_id = keys.iframe_id or keys.integration_id
    payment_url = (
        f"{settings.PAYMOB_BASE_URL.rstrip('/')}/api/acceptance/iframes/{iframe_id}?payment_token={payment_token}"
    )

    with transaction.atomic():
        if order.status == "failed":
            transition_order(order, "pending")
        payment = Payment.objects.create(
            order=order,
            buyer=user,
            seller=order.seller,
            amount_total=order.total_amount,
            platform_fee=platform_fee,
            gateway_fee=Decimal("0"),
            seller_amount=seller_amount,
            commission_rate_used=percentage,
            provider="paymob",
            status="pending",
            provider_reference=str(paymob_order["id"]),
            provider_payment_url=payment_url,
        )

    logger.info("Paymob session opened for order %s (payment %s)", order.order_number, payment.id)
    return {
        "success": True,
        "payment_id": str(payment.id),
        "payment_url": payment_url,
        "token": payment_token,
    }


def _hmac_field(obj: dict, field: str) -> str:
    if field == "order":
        value = obj.get("order")
        if isinstance(value, dict):
            value = value.get("id")
    elif field.startswith("source_data_"):
        source = obj.get("source_data") or {}
        value = source.get(field[len("source_data_"):], obj.get(field))
    else:
        value = obj.get(field)

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def verify_paymob_signature(payload: dict, hmac_secret: str, received: str | None = None) -> bool:
    obj = payload.get("obj")
    received = received or payload.get("hmac")
    if not isinstance(obj, dict) or not received or not hmac_secret:
        return False
    message = "".join(_hmac_field(obj, field) for field in PAYMOB_HMAC_FIELDS)
    expected = hmac.new(hmac_secret.encode(), message.encode(), hashlib.sha512).hexdigest()
    return hmac.compare_digest(expected, str(received).lower())


def process_successful_payment(payment: Payment, transaction_id: str | None = None) -> Payment:
    with transaction.atomic():
        payment = Payment.objects.select_for_update().select_related("order").get(pk=payment.pk)
        if payment.status == "succeeded":
            logger.info("Payment %s already processed", payment.id)
            return payment

        now = timezone.now()
        payment.status = "succeeded"
        payment.provider_transaction_id = transaction_id
        payment.completed_at = now
        payment.save(update_fields=["status", "provider_transaction_id", "completed_at", "updated_at"])

        order = Order.objects.select_for_update().get(pk=payment.order_id)
        if order.status not in PAYABLE_ORDER_STATUSES:
            logger.warning(
                "Payment %s captured for order %s in status %s; order left unchanged",
                payment.id,
                order.order_number,
                order.status,
            )
            return payment

        order.status = "paid"
        order.paid_at = now
        order.commission_amount = payment.platform_fee
        order.seller_amount = payment.seller_amount
        order.save(update_fields=["status", "paid_at", "commission_amount", "seller_amount", "updated_at"])

        for item in order.items.all():
            if item.product_id:
                Product.objects.filter(pk=item.product_id).update(sales_count=F("sales_count") + item.quantity)
        if order.coupon_id:
            DiscountCoupon.objects.filter(pk=order.coupon_id).update(used_count=F("used_count") + 1)

        attribute_order(order)

        order_id = str(order.id)
        transaction.on_commit(lambda: notify_new_order.delay(order_id))

    logger.info("Payment %s succeeded for order %s", payment.id, order.order_number)
    return payment


def _mark_failed(payment: Payment, obj: dict) -> None:
    with transaction.atomic():
        payment = Payment.objects.select_for_update().get(pk=payment.pk)
        if payment.status == "succeeded":
            logger.warning("Ignoring failure callback for settled payment %s", payment.id)
            return
        payment.status = "failed"
        payment.metadata = {"error": obj}
        payment.save(update_fields=["status", "metadata", "updated_at"])
        Order.objects.filter(pk=payment.order_id, status="pending").update(status="failed", updated_at=timezone.now())
    logger.warning("Payment %s failed (order %s)", payment.id, payment.order_id)


def process_paymob_webhook(payload: Any, received_hmac: str | None = None) -> bool:
    """
    Apply a Paymob transaction callback. Every call is recorded in
    ``WebhookLog``; the return value says whether it was processed.
    """
    if not isinstance(payload, dict):
        payload = {}
    log = WebhookLog.objects.create(
        provider="paymob",
        event_type=payload.get("type") or "transaction",
        raw_payload=payload,
    )

    try:
        keys = active_paymob_keys()
        if keys is None or not keys.hmac_secret:
            raise PaymentError("HMAC key not found")
        if not verify_paymob_signature(payload, keys.hmac_secret, received_hmac):
            raise PaymentError("Invalid signature")

        obj = payload["obj"]
        order_ref = obj.get("order")
        if isinstance(order_ref, dict):
            order_ref = order_ref.get("merchant_order_id")
        if not order_ref:
            raise PaymentError("Order ID not found in payload")

        payment = Payment.objects.filter(order_id=order_ref).order_by("-created_at").first()
        if payment is None:
            raise PaymentError(f"Payment not found for order: {order_ref}")

        parsed = {"payment_id": str(payment.id), "order_id": str(order_ref)}
        if obj.get("success") is True and not obj.get("pending"):
            process_successful_payment(payment, str(obj.get("id")))
            parsed.update({"transaction_id": obj.get("id"), "amount": (obj.get("amount_cents") or 0) / 100})
        elif obj.get("pending"):
            parsed["status"] = "pending"
        else:
            _mark_failed(payment, obj)
            parsed["status"] = "failed"
    except (ValueError, KeyError, TypeError, ValidationError) as exc:
        logger.warning("Paymob webhook %s rejected: %s", log.id, exc)
        log.status = "failed"
        log.error_message = str(exc)
        log.processed_at = timezone.now()
        log.save(update_fields=["status", "error_message", "processed_at"])
        return False

    log.status = "success"
    log.parsed_data = parsed
    log.processed_at = timezone.now()
    log.save(update_fields=["status", "parsed_data", "processed_at"])
    return True
