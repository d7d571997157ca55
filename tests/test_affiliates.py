from datetime import timedelta
from decimal import Decimal

import pytest
from django.conf import settings
from django.utils import timezone

from apps.affiliates.models import AffiliateClick, AffiliateLink, AffiliateSale
from apps.affiliates.services import (
    attribute_order,
    create_link,
    is_bot_user_agent,
    link_applies_to,
    normalize_code,
    record_click,
    resolve_attribution,
    tracking_url,
    update_link,
)
from apps.orders.services import add_to_cart, checkout, transition_order

pytestmark = pytest.mark.django_db


def _paid_order(buyer, product, link):
    add_to_cart(buyer, product, 2)
    (order,) = checkout(buyer, {}, affiliate_ref=str(link.id))
    transition_order(order, "paid")
    return order


def test_normalize_code():
    assert normalize_code(" spring_24 ") == "SPRING_24"
    with pytest.raises(ValueError):
        normalize_code("ab")
    with pytest.raises(ValueError):
        normalize_code("has space")


def test_create_link_scopes(seller, product, store):
    link = create_link(seller, {"code": "prod1", "apply_to": "product", "product": product, "store": store})
    assert link.code == "PROD1"
    assert link.product_id == product.id
    assert link.store_id is None

    with pytest.raises(ValueError, match="A store is required"):
        create_link(seller, {"code": "store1", "apply_to": "store"})

    everything = create_link(seller, {"code": "all1", "apply_to": "all", "product": product})
    assert everything.product_id is None and everything.store_id is None


def test_duplicate_code_per_seller(seller, make_user, product, product_link):
    with pytest.raises(ValueError, match="Code already in use"):
        create_link(seller, {"code": "mona10", "apply_to": "all"})

    other = make_user(role="seller")
    assert create_link(other, {"code": "MONA10", "apply_to": "all"}).seller_id == other.id


def test_scope_must_belong_to_seller(make_user, product):
    other = make_user(role="seller")
    with pytest.raises(ValueError, match="Product does not belong to you"):
        create_link(other, {"code": "THEIRS", "apply_to": "product", "product": product})


def test_update_link_switches_scope(product_link, store):
    link = update_link(product_link, {"apply_to": "store", "store": store})
    assert link.apply_to == "store"
    assert link.product_id is None
    assert link.store_id == store.id


def test_link_applies_to(seller, store, product, make_product, make_user):
    loose = make_product()
    foreign = make_product(owner=make_user(role="seller"))
    store_link = AffiliateLink.objects.create(seller=seller, code="STORE", apply_to="store", store=store)
    all_link = AffiliateLink.objects.create(seller=seller, code="ALL", apply_to="all")

    assert link_applies_to(store_link, product)
    assert not link_applies_to(store_link, loose)
    assert link_applies_to(all_link, loose)
    assert not link_applies_to(all_link, foreign)


def test_tracking_url(product_link, seller):
    assert tracking_url(product_link) == (
        f"{settings.DIGIMART_PUBLIC_BASE_URL.rstrip('/')}/aff/{seller.id}/MONA10/"
    )


def test_bot_detection():
    assert is_bot_user_agent("Googlebot/2.1")
    assert is_bot_user_agent("curl/8.0")
    assert not is_bot_user_agent("Mozilla/5.0 (iPhone)")
    assert not is_bot_user_agent(None)


def test_record_click_counts_humans_only(product_link, marketer):
    record_click(product_link, ip_address="10.0.0.1", user_agent="Mozilla/5.0")
    bot = record_click(product_link, ip_address="10.0.0.2", user_agent="AhrefsBot")

    assert bot.is_bot is True
    assert AffiliateClick.objects.filter(link=product_link).count() == 2
    product_link.refresh_from_db()
    marketer.refresh_from_db()
    assert product_link.click_count == 1
    assert product_link.last_clicked_at is not None
    assert marketer.total_clicks == 1


def test_record_click_ignores_dead_links(product_link):
    product_link.expires_at = timezone.now() - timedelta(minutes=1)
    product_link.save()
    assert record_click(product_link, user_agent="Mozilla/5.0") is None
    assert not AffiliateClick.objects.exists()


def test_public_click_sets_cookie_and_redirects(api_client, seller, product, product_link):
    resp = api_client.get(f"/aff/{seller.id}/mona10/", HTTP_USER_AGENT="Mozilla/5.0")
    assert resp.status_code == 302
    assert resp["Location"].endswith(f"/products/{product.slug}")
    cookie = resp.cookies[settings.AFFILIATE_COOKIE_NAME]
    assert cookie.value == str(product_link.id)
    assert cookie["httponly"]
    assert cookie["samesite"] == "Lax"


@pytest.mark.parametrize(
    "forwarded, expected",
    [
        ("203.0.113.7, 10.0.0.1", "203.0.113.7"),
        ("unknown", "127.0.0.1"),
        ("", "127.0.0.1"),
    ],
)
def test_public_click_stores_a_valid_ip(api_client, seller, product_link, forwarded, expected):
    api_client.get(f"/aff/{seller.id}/MONA10/", HTTP_X_FORWARDED_FOR=forwarded, HTTP_USER_AGENT="Mozilla/5.0")
    click = AffiliateClick.objects.get(link=product_link)
    assert click.ip_address == expected


def test_public_click_unknown_code(api_client, seller):
    resp = api_client.get(f"/aff/{seller.id}/NOPE/")
    assert resp.status_code == 302
    assert resp["Location"].endswith("/marketplace")
    assert settings.AFFILIATE_COOKIE_NAME not in resp.cookies


def test_resolve_attribution(product_link):
    assert resolve_attribution(str(product_link.id)) == product_link
    assert resolve_attribution("not-a-uuid") is None
    assert resolve_attribution(None) is None
    product_link.is_active = False
    product_link.save()
    assert resolve_attribution(str(product_link.id)) is None


def test_attribute_order_is_idempotent(buyer, product, product_link, marketer):
    order = _paid_order(buyer, product, product_link)

    first = attribute_order(order)
    second = attribute_order(order)

    assert len(first) == 1
    assert second == []
    sale = AffiliateSale.objects.get(order=order)
    assert sale.sale_amount == Decimal("400.00")
    assert sale.commission_rate == Decimal("10")
    assert sale.commission_amount == Decimal("40.00")
    assert sale.holdback_until == order.paid_at + timedelta(days=settings.AFFILIATE_HOLDBACK_DAYS)

    product_link.refresh_from_db()
    marketer.refresh_from_db()
    assert product_link.sale_count == 1
    assert product_link.total_commission == Decimal("40.00")
    assert marketer.total_sales == 1
    assert marketer.total_commission == Decimal("40.00")


def test_link_rate_overrides_marketer_rate(buyer, product, product_link):
    product_link.commission_rate = Decimal("12.5")
    product_link.save()
    order = _paid_order(buyer, product, product_link)
    (sale,) = attribute_order(order)
    assert sale.commission_amount == Decimal("50.00")


def test_self_purchase_not_attributed(seller, product, product_link):
    add_to_cart(seller, product, 1)
    (order,) = checkout(seller, {}, affiliate_ref=str(product_link.id))
    assert order.affiliate_link_id is None
    order.affiliate_link = product_link
    assert attribute_order(order) == []


def test_link_api(auth_client, seller, product, marketer):
    client = auth_client(seller)
    resp = client.post(
        "/api/affiliates/links/",
        {"code": "promo-1", "apply_to": "product", "product": str(product.id), "marketer": str(marketer.id)},
        format="json",
    )
    assert resp.status_code == 201
    assert resp.data["code"] == "PROMO-1"
    assert resp.data["full_url"].endswith(f"/aff/{seller.id}/PROMO-1/")

    resp = client.post("/api/affiliates/links/", {"code": "promo-1", "apply_to": "all"}, format="json")
    assert resp.status_code == 400
    assert resp.data["detail"] == "Code already in use"


def test_deleting_marketer_detaches_links(auth_client, seller, marketer, product_link):
    resp = auth_client(seller).delete(f"/api/affiliates/marketers/{marketer.id}/")
    assert resp.status_code == 204
    product_link.refresh_from_db()
    assert product_link.marketer_id is None


def test_marketers_are_seller_scoped(auth_client, make_user, marketer):
    other = make_user(role="seller")
    resp = auth_client(other).get("/api/affiliates/marketers/")
    assert resp.data["count"] == 0
