from __future__ import annotations

import json
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from apps.affiliates.models import AffiliateClick, AffiliateLink, AffiliateMarketer, AffiliateSale
from apps.commissions.models import Settlement
from apps.commissions.services import release_held_sales
from apps.orders.models import Order
from apps.payments.models import Payment, PaymentSettings
from apps.payments.services import process_successful_payment
from apps.products.models import Product
from apps.stores.models import Store


def _print(title: str, data) -> None:
    print(f"\n=== {title} ===")
    if isinstance(data, (dict, list)):
        print(json.dumps(data, indent=2, default=str))
    else:
        print(data)


def run() -> None:
    """
    Manual smoke test walking a sale from affiliate click to settlement.

    Run with:
      python manage.py shell --settings=config.settings.testing -c "from scripts.smoke_test_endpoints import run; run()"
    """
    User = get_user_model()

    # Clean tables for a deterministic run
    Settlement.objects.all().delete()
    AffiliateSale.objects.all().delete()
    Payment.objects.all().delete()
    Order.objects.all().delete()
    AffiliateClick.objects.all().delete()
    AffiliateLink.objects.all().delete()
    AffiliateMarketer.objects.all().delete()
    Product.objects.all().delete()
    Store.objects.all().delete()
    User.objects.all().delete()

    seller = User.objects.create_user(
        email="seller@example.com",
        password="Seller123!",
        full_name="Seller User",
        role="seller",
    )
    buyer = User.objects.create_user(
        email="buyer@example.com",
        password="Buyer123!",
        full_name="Buyer User",
    )

    seller_client = APIClient()
    seller_client.force_authenticate(user=seller)
    buyer_client = APIClient()
    buyer_client.force_authenticate(user=buyer)

    resp = seller_client.post("/api/stores/", {"name": "Smoke Store"}, format="json")
    _print("Create store", {"status": resp.status_code, "data": resp.data})
    store_id = resp.data.get("id")

    resp = seller_client.post(
        "/api/products/",
        {"name": "Smoke Ebook", "price": "250.00", "store": store_id},
        format="json",
    )
    _print("Create product", {"status": resp.status_code, "data": resp.data})
    product_id = resp.data.get("id")

    resp = seller_client.post(
        "/api/affiliates/marketers/",
        {"name": "Smoke Marketer", "commission_rate": "12.5"},
        format="json",
    )
    _print("Create marketer", {"status": resp.status_code, "data": resp.data})
    marketer_id = resp.data.get("id")

    resp = seller_client.post(
        "/api/affiliates/links/",
        {"code": "smoke-1", "apply_to": "product", "product": product_id, "marketer": marketer_id},
        format="json",
    )
    _print("Create link", {"status": resp.status_code, "data": resp.data})
    link = AffiliateLink.objects.get(seller=seller, code="SMOKE-1")

    resp = buyer_client.get(f"/aff/{seller.id}/{link.code}/")
    _print("Affiliate click", {"status": resp.status_code, "location": resp.get("Location")})
    buyer_client.cookies[settings.AFFILIATE_COOKIE_NAME] = str(link.id)

    resp = buyer_client.post("/api/orders/cart/", {"product_id": product_id, "quantity": 2}, format="json")
    _print("Add to cart", {"status": resp.status_code})

    resp = buyer_client.post("/api/orders/checkout/", {}, format="json")
    _print("Checkout", {"status": resp.status_code, "data": resp.data})
    order = Order.objects.get(buyer=buyer)

    payment_settings = PaymentSettings.load()
    payment_settings.is_active = True
    payment_settings.global_commission_percentage = 10
    payment_settings.save()

    # Skip Paymob and settle the payment directly
    payment = Payment.objects.create(
        order=order,
        buyer=buyer,
        seller=seller,
        amount_total=order.total_amount,
        platform_fee=order.total_amount / 10,
        seller_amount=order.total_amount - order.total_amount / 10,
    )
    process_successful_payment(payment, "SMOKE-TXN")
    _print("Affiliate sales", list(AffiliateSale.objects.values("commission_amount", "status")))

    released = release_held_sales(now=timezone.now() + timedelta(days=settings.AFFILIATE_HOLDBACK_DAYS + 1))
    _print("Released sales", released)

    resp = seller_client.post(
        "/api/commissions/settlements/",
        {"marketer": marketer_id, "reference": "SMOKE-PAYOUT"},
        format="json",
    )
    _print("Settle marketer", {"status": resp.status_code, "data": resp.data})

    resp = seller_client.get(f"/api/analytics/marketers/{marketer_id}/?time_range=all")
    _print("Marketer analytics", resp.data)

    resp = seller_client.get("/api/analytics/seller/dashboard/")
    _print("Seller dashboard", resp.data)

    _print("Smoke test complete", "OK")
