from datetime import timedelta
from decimal import Decimal

import pytest
from django.test import override_settings
from django.utils import timezone

from apps.affiliates.models import AffiliateSale
from apps.affiliates.services import attribute_order
from apps.commissions.calculator import commission_for
from apps.commissions.services import (
    approve_sale,
    cancel_sale,
    ledger_summary,
    release_held_sales,
    settle_marketer,
)
from apps.commissions.tasks import release_held_sales as release_task
from apps.orders.services import add_to_cart, checkout, transition_order


@pytest.mark.parametrize(
    "amount,rate,expected",
    [
        ("100", "10", "10.00"),
        ("19.99", "12.5", "2.50"),
        ("0.05", "10", "0.01"),
        ("250", "0", "0.00"),
        ("33.33", "100", "33.33"),
    ],
)
def test_commission_for(amount, rate, expected):
    assert commission_for(Decimal(amount), Decimal(rate)) == Decimal(expected)


def test_commission_for_rejects_bad_input():
    with pytest.raises(ValueError):
        commission_for(Decimal("10"), Decimal("101"))
    with pytest.raises(ValueError):
        commission_for(Decimal("-1"), Decimal("10"))


@pytest.fixture
def sale(db, buyer, product, product_link):
    add_to_cart(buyer, product, 3)
    (order,) = checkout(buyer, {}, affiliate_ref=str(product_link.id))
    transition_order(order, "paid")
    (created,) = attribute_order(order)
    return created


@pytest.mark.django_db
def test_release_held_sales(sale):
    assert release_held_sales(now=timezone.now()) == 0
    assert release_held_sales(now=sale.holdback_until + timedelta(seconds=1)) == 1
    sale.refresh_from_db()
    assert sale.status == "approved"
    assert sale.approved_at is not None


@pytest.mark.django_db
def test_release_task_runs(sale):
    AffiliateSale.objects.filter(pk=sale.pk).update(holdback_until=timezone.now() - timedelta(days=1))
    assert release_task.delay().get() == 1


@pytest.mark.django_db
def test_paid_sale_cannot_be_cancelled(sale):
    AffiliateSale.objects.filter(pk=sale.pk).update(status="paid")
    sale.refresh_from_db()
    with pytest.raises(ValueError, match="paid sale cannot be cancelled"):
        cancel_sale(sale)


@pytest.mark.django_db
def test_cancel_uses_current_row_not_stale_copy(seller, marketer, sale):
    stale = AffiliateSale.objects.get(pk=sale.pk)
    approve_sale(sale)
    settle_marketer(seller, marketer)

    assert stale.status == "pending"
    with pytest.raises(ValueError, match="paid sale cannot be cancelled"):
        cancel_sale(stale)
    marketer.refresh_from_db()
    assert marketer.total_paid == Decimal("60.00")
    assert marketer.total_commission == Decimal("60.00")


@pytest.mark.django_db
def test_cancel_sale_rolls_back_counters(sale, product_link, marketer):
    cancel_sale(sale)
    product_link.refresh_from_db()
    marketer.refresh_from_db()
    assert product_link.sale_count == 0
    assert marketer.total_commission == Decimal("0")


@pytest.mark.django_db
def test_settle_marketer(seller, marketer, sale):
    approve_sale(sale)

    settlement = settle_marketer(seller, marketer, reference="BANK-1")

    assert settlement.total_amount == Decimal("60.00")
    assert settlement.sale_count == 1
    assert settlement.created_by == seller
    sale.refresh_from_db()
    assert sale.status == "paid"
    assert sale.settlement_id == settlement.id
    marketer.refresh_from_db()
    assert marketer.total_paid == Decimal("60.00")

    with pytest.raises(ValueError, match="Minimum settlement is"):
        settle_marketer(seller, marketer)


@pytest.mark.django_db
@override_settings(MINIMUM_SETTLEMENT_AMOUNT=Decimal("100"))
def test_settlement_minimum(seller, marketer, sale):
    approve_sale(sale)
    with pytest.raises(ValueError, match="Minimum settlement is 100"):
        settle_marketer(seller, marketer)
    sale.refresh_from_db()
    assert sale.status == "approved"


@pytest.mark.django_db
def test_ledger_summary(marketer, sale):
    summary = ledger_summary(marketer).as_dict()
    assert summary["counts"]["pending"] == 1
    assert summary["totals"]["pending"] == Decimal("60.00")
    assert summary["counts"]["paid"] == 0


@pytest.mark.django_db
def test_sales_api(auth_client, seller, make_user, marketer, sale):
    client = auth_client(seller)
    resp = client.get("/api/commissions/sales/?status=pending")
    assert resp.data["count"] == 1

    resp = client.post(f"/api/commissions/sales/{sale.id}/approve/")
    assert resp.status_code == 200
    assert resp.data["status"] == "approved"

    resp = client.get(f"/api/commissions/sales/summary/{marketer.id}/")
    assert resp.data["counts"]["approved"] == 1

    resp = client.post("/api/commissions/settlements/", {"marketer": str(marketer.id)}, format="json")
    assert resp.status_code == 201
    assert resp.data["total_amount"] == "60.00"

    other = make_user(role="seller")
    assert auth_client(other).get("/api/commissions/sales/").data["count"] == 0
