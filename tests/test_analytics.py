from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.affiliates.models import AffiliateClick, AffiliateMarketer
from apps.affiliates.services import attribute_order, record_click
from apps.analytics.services import conversion_rate, marketer_analytics, seller_dashboard
from apps.commissions.services import ledger_summary
from apps.orders.services import add_to_cart, checkout, transition_order

pytestmark = pytest.mark.django_db


@pytest.fixture
def activity(buyer, product, product_link):
    for _ in range(4):
        record_click(product_link, user_agent="Mozilla/5.0")
    record_click(product_link, user_agent="bingbot")
    add_to_cart(buyer, product, 1)
    (order,) = checkout(buyer, {}, affiliate_ref=str(product_link.id))
    transition_order(order, "paid")
    attribute_order(order)
    return order


def test_conversion_rate():
    assert conversion_rate(0, 3) == 0.0
    assert conversion_rate(8, 2) == 25.0


def test_marketer_analytics(marketer, product_link, activity):
    data = marketer_analytics(marketer, "30days")
    assert data["total_clicks"] == 4
    assert data["total_sales"] == 1
    assert data["conversion_rate"] == 25.0
    assert data["total_commission"] == Decimal("20.00")
    assert data["pending_commission"] == Decimal("20.00")
    assert data["paid_commission"] == Decimal("0")
    (link_row,) = data["links"]
    assert link_row["code"] == "MONA10"
    assert link_row["clicks"] == 4
    assert sum(day["clicks"] for day in data["daily"]) == 4


def test_reassigned_link_keeps_credited_sales(seller, marketer, product_link, activity):
    product_link.marketer = AffiliateMarketer.objects.create(seller=seller, name="Rami")
    product_link.save(update_fields=["marketer"])

    data = marketer_analytics(marketer, "all")
    summary = ledger_summary(marketer)
    assert data["total_sales"] == 1
    assert data["total_commission"] == summary.totals["pending"] == Decimal("20.00")
    assert [row["code"] for row in data["links"]] == ["MONA10"]


def test_time_range_excludes_old_clicks(marketer, product_link, activity):
    AffiliateClick.objects.update(clicked_at=timezone.now() - timedelta(days=40))
    assert marketer_analytics(marketer, "30days")["total_clicks"] == 0
    assert marketer_analytics(marketer, "all")["total_clicks"] == 4


def test_unknown_time_range(marketer):
    with pytest.raises(ValueError):
        marketer_analytics(marketer, "yesterday")


def test_seller_dashboard(seller, store, product, activity):
    data = seller_dashboard(seller)
    assert data["stores"] == 1
    assert data["products"] == 1
    assert data["orders"] == 1
    assert data["revenue"] == Decimal("200.00")
    assert data["affiliate_links"] == 1
    assert data["affiliate_clicks"] == 4
    assert data["affiliate_sales"] == 1


def test_marketer_analytics_access(auth_client, seller, make_user, marketer):
    assert auth_client(seller).get(f"/api/analytics/marketers/{marketer.id}/").status_code == 200

    linked = make_user()
    marketer.user = linked
    marketer.save()
    assert auth_client(linked).get(f"/api/analytics/marketers/{marketer.id}/?time_range=7days").status_code == 200

    stranger = make_user(role="seller")
    assert auth_client(stranger).get(f"/api/analytics/marketers/{marketer.id}/").status_code == 404


def test_dashboard_endpoint_requires_seller(auth_client, buyer, seller):
    assert auth_client(buyer).get("/api/analytics/seller/dashboard/").status_code == 403
    assert auth_client(seller).get("/api/analytics/seller/dashboard/").status_code == 200
