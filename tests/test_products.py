from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.authentication.models import Plan
from apps.orders.services import add_to_cart
from apps.products.models import DiscountCoupon
from apps.products.services import CouponLine, calculate_coupon_discount, create_product, parse_price
from core.exceptions import LimitExceeded

pytestmark = pytest.mark.django_db


def test_create_product_generates_slug(seller, store):
    product = create_product(seller, {"name": "Logo Pack", "price": "49.9", "store": store})
    assert product.slug.startswith(f"{str(seller.id)[:8]}-logo-pack-")
    assert product.price == Decimal("49.90")
    assert product.subscription_period is None


def test_create_product_requires_name_and_price(seller):
    with pytest.raises(ValueError, match="Name and price are required"):
        create_product(seller, {"name": "No price"})


def test_parse_price_rejects_garbage():
    with pytest.raises(ValueError, match="Invalid price"):
        parse_price("abc")
    with pytest.raises(ValueError, match="Invalid price"):
        parse_price("-1")


def test_subscription_products_need_a_plan(seller):
    with pytest.raises(LimitExceeded, match="Subscription product limit"):
        create_product(seller, {"name": "Monthly", "price": "10", "is_subscription": True})


def test_store_must_belong_to_owner(make_user, store):
    other = make_user(role="seller")
    with pytest.raises(ValueError, match="Store does not belong to you"):
        create_product(other, {"name": "Nope", "price": "1", "store": store})


def test_product_crud_via_api(auth_client, seller, store):
    client = auth_client(seller)
    resp = client.post("/api/products/", {"name": "Font", "price": "15.00", "store": str(store.id)}, format="json")
    assert resp.status_code == 201
    product_id = resp.data["id"]

    resp = client.patch(f"/api/products/{product_id}/", {"price": "20.00"}, format="json")
    assert resp.status_code == 200
    assert resp.data["price"] == "20.00"


def test_switching_to_subscription_respects_plan(auth_client, seller, product):
    resp = auth_client(seller).patch(f"/api/products/{product.id}/", {"is_subscription": True}, format="json")
    assert resp.status_code == 403
    assert "Subscription product limit" in resp.data["detail"]
    product.refresh_from_db()
    assert product.is_subscription is False

    seller.plan = Plan.objects.create(name="Pro", max_products=100, max_subscription_products=1)
    seller.save(update_fields=["plan"])
    resp = auth_client(seller).patch(f"/api/products/{product.id}/", {"is_subscription": True}, format="json")
    assert resp.status_code == 200
    assert resp.data["subscription_period"] == "monthly"


def test_other_seller_cannot_edit(auth_client, make_user, product):
    other = make_user(role="seller")
    resp = auth_client(other).patch(f"/api/products/{product.id}/", {"price": "1.00"}, format="json")
    assert resp.status_code == 404


def test_private_product_only_visible_to_owner(api_client, auth_client, seller, make_product):
    hidden = make_product(visibility="private")
    assert api_client.get(f"/api/products/{hidden.id}/").status_code == 404
    assert auth_client(seller).get(f"/api/products/{hidden.id}/").status_code == 200


def test_marketplace_listing(api_client, store, make_product):
    make_product(name="Alpha Guide", price=30, category="ebooks")
    make_product(name="Beta Guide", price=10, category="ebooks")
    make_product(name="Public Only", visibility="public")
    make_product(name="Inactive", is_active=False)
    store.show_in_marketplace = False
    store.save()
    make_product(name="Hidden Store Item", store=store)

    resp = api_client.get("/api/products/marketplace/?category=ebooks&sort=price_low")
    assert resp.status_code == 200
    names = [p["name"] for p in resp.data["results"]]
    assert names == ["Beta Guide", "Alpha Guide"]

    resp = api_client.get("/api/products/marketplace/?search=alpha")
    assert [p["name"] for p in resp.data["results"]] == ["Alpha Guide"]


def _coupon(seller, **fields):
    fields.setdefault("code", "SAVE10")
    fields.setdefault("discount_value", Decimal("10"))
    return DiscountCoupon.objects.create(seller=seller, **fields)


def test_percentage_coupon_with_cap(seller, make_product):
    product = make_product(price=Decimal("200"), coupons_enabled=True)
    coupon = _coupon(seller, discount_value=Decimal("25"), max_discount_amount=Decimal("30"))
    assert calculate_coupon_discount(coupon, [CouponLine(product, Decimal("200"))]) == Decimal("30.00")


def test_fixed_coupon_never_exceeds_applicable_amount(seller, make_product):
    product = make_product(price=Decimal("20"), coupons_enabled=True)
    coupon = _coupon(seller, discount_type="fixed", discount_value=Decimal("50"))
    assert calculate_coupon_discount(coupon, [CouponLine(product, Decimal("20"))]) == Decimal("20.00")


def test_coupon_ignores_products_without_coupons(seller, make_product):
    product = make_product(coupons_enabled=False)
    coupon = _coupon(seller)
    with pytest.raises(ValueError, match="does not apply"):
        calculate_coupon_discount(coupon, [CouponLine(product, Decimal("100"))])


@pytest.mark.parametrize(
    "fields,message",
    [
        ({"is_active": False}, "not active"),
        ({"end_date": timezone.now() - timedelta(days=1)}, "expired"),
        ({"start_date": timezone.now() + timedelta(days=1)}, "not valid yet"),
        ({"usage_limit": 1, "used_count": 1}, "usage limit"),
        ({"min_purchase_amount": Decimal("500")}, "Minimum purchase"),
    ],
)
def test_coupon_rejections(seller, make_product, fields, message):
    product = make_product(coupons_enabled=True)
    coupon = _coupon(seller, **fields)
    with pytest.raises(ValueError, match=message):
        calculate_coupon_discount(coupon, [CouponLine(product, Decimal("100"))])


def test_coupon_api_normalizes_and_deduplicates_codes(auth_client, seller):
    client = auth_client(seller)
    resp = client.post("/api/products/coupons/", {"code": "summer", "discount_value": "15"}, format="json")
    assert resp.status_code == 201
    assert resp.data["code"] == "SUMMER"

    resp = client.post("/api/products/coupons/", {"code": "Summer", "discount_value": "5"}, format="json")
    assert resp.status_code == 400
    assert "Code already in use" in str(resp.data["code"])


def test_coupon_api_rejects_percentage_over_100(auth_client, seller):
    resp = auth_client(seller).post("/api/products/coupons/", {"code": "BIG", "discount_value": "150"}, format="json")
    assert resp.status_code == 400


def test_coupon_preview_against_cart(auth_client, buyer, seller, make_product):
    item = make_product(price=Decimal("120"), coupons_enabled=True)
    _coupon(seller, code="WELCOME", discount_value=Decimal("10"))
    add_to_cart(buyer, item, 1)
    client = auth_client(buyer)

    resp = client.post(
        "/api/products/coupons/validate/",
        {"code": "welcome", "seller_id": str(seller.id)},
        format="json",
    )
    assert resp.status_code == 200
    assert resp.data["discount_amount"] == Decimal("12.00")

    resp = client.post("/api/products/coupons/validate/", {"code": "NOPE", "seller_id": str(seller.id)}, format="json")
    assert resp.status_code == 400
    assert resp.data["detail"] == "Coupon not found"


def test_coupon_owned_by_another_seller_is_hidden(auth_client, seller, make_user):
    coupon = DiscountCoupon.objects.create(seller=seller, code="MINE", discount_type="fixed", discount_value=5)
    other = make_user(role="seller")
    resp = auth_client(other).patch(f"/api/products/coupons/{coupon.id}/", {"discount_value": "50"}, format="json")
    assert resp.status_code == 404
    coupon.refresh_from_db()
    assert coupon.discount_value == Decimal("5")
