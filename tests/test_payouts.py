from datetime import timedelta
from decimal import Decimal

import pytest
from django.test import override_settings
from django.utils import timezone

from apps.orders.models import Order
from apps.orders.services import add_to_cart, checkout, transition_order
from apps.payouts.models import BankAccount, PayoutRequest
from apps.payouts.services import approve_payout, get_wallet, reject_payout, request_payout

pytestmark = pytest.mark.django_db


@pytest.fixture
def earn(buyer, product):
    def _earn(seller_amount="185.00", hours_ago=96):
        add_to_cart(buyer, product, 1)
        (order,) = checkout(buyer, {})
        Order.objects.filter(pk=order.pk).update(
            status="paid",
            paid_at=timezone.now() - timedelta(hours=hours_ago),
            seller_amount=Decimal(seller_amount),
        )
        order.refresh_from_db()
        return order

    return _earn


@pytest.fixture
def account(seller):
    return BankAccount.objects.create(
        seller=seller,
        bank_name="Al Rajhi",
        account_holder_name="Sara Seller",
        account_number="1234567890",
        verification_status="verified",
    )


@pytest.fixture
def admin(make_user):
    return make_user(role="admin")


def test_wallet_holds_recent_earnings(seller, earn):
    earn()
    recent = earn(hours_ago=1)

    wallet = get_wallet(seller)
    assert wallet.total_earned == Decimal("370.00")
    assert wallet.balance_hold == Decimal("185.00")
    assert wallet.balance_available == Decimal("185.00")
    assert wallet.next_release_amount == Decimal("185.00")
    assert wallet.next_release_at == recent.paid_at + timedelta(hours=72)


def test_refunded_order_leaves_the_wallet(seller, earn):
    order = earn()
    transition_order(order, "refunded")
    assert get_wallet(seller).total_earned == Decimal("0")


def test_request_payout_checks(seller, make_user, earn, account):
    earn()
    other = BankAccount.objects.create(
        seller=make_user(role="seller"),
        bank_name="SNB",
        account_holder_name="Someone",
        account_number="999",
        verification_status="verified",
    )

    with pytest.raises(ValueError, match="Bank account not found"):
        request_payout(seller, "150", other)
    with pytest.raises(ValueError, match="Minimum withdrawal is 100"):
        request_payout(seller, "50", account)
    with pytest.raises(ValueError, match="Insufficient balance"):
        request_payout(seller, "200", account)

    account.verification_status = "pending"
    account.save()
    with pytest.raises(ValueError, match="not verified"):
        request_payout(seller, "150", account)


def test_request_payout_reserves_the_amount(seller, earn, account):
    earn()
    payout = request_payout(seller, "150", account, note="March")

    assert payout.status == "pending"
    assert payout.amount_to_transfer == Decimal("150.00")
    wallet = get_wallet(seller)
    assert wallet.balance_pending_payout == Decimal("150.00")
    assert wallet.balance_available == Decimal("35.00")
    with pytest.raises(ValueError, match="Insufficient balance"):
        request_payout(seller, "100", account)


@override_settings(PAYOUT_FEE_PERCENTAGE=Decimal("2"), PAYOUT_FEE_FIXED=Decimal("1"))
def test_payout_fees(seller, earn, account):
    earn()
    payout = request_payout(seller, "150", account)
    assert payout.amount_fees == Decimal("4.00")
    assert payout.amount_to_transfer == Decimal("146.00")


def test_reject_returns_the_balance(seller, admin, earn, account):
    earn()
    payout = request_payout(seller, "150", account)

    with pytest.raises(ValueError, match="rejection reason"):
        reject_payout(payout, admin, "  ")
    reject_payout(payout, admin, "IBAN mismatch")

    payout.refresh_from_db()
    assert payout.status == "rejected"
    assert payout.reviewed_by == admin
    assert get_wallet(seller).balance_available == Decimal("185.00")
    with pytest.raises(ValueError, match="Cannot approve a rejected payout request"):
        approve_payout(payout, admin)


def test_admin_approves_payout_via_api(
    auth_client, seller, admin, earn, account, django_capture_on_commit_callbacks
):
    earn()
    resp = auth_client(seller).post(
        "/api/payouts/requests/",
        {"amount": "150.00", "bank_account": str(account.id)},
        format="json",
    )
    assert resp.status_code == 201
    payout_id = resp.data["id"]

    assert auth_client(seller).post(f"/api/payouts/requests/{payout_id}/approve/").status_code == 403

    with django_capture_on_commit_callbacks(execute=True):
        resp = auth_client(admin).post(f"/api/payouts/requests/{payout_id}/approve/", {"notes": "sent"}, format="json")
    assert resp.status_code == 200
    assert resp.data["status"] == "paid"
    assert seller.notifications.filter(kind="payout").count() == 1

    resp = auth_client(admin).post(f"/api/payouts/requests/{payout_id}/approve/")
    assert resp.status_code == 400

    wallet = auth_client(seller).get("/api/payouts/wallet/").data["wallet"]
    assert Decimal(wallet["total_withdrawn"]) == Decimal("150.00")
    assert Decimal(wallet["balance_available"]) == Decimal("35.00")


def test_bank_account_api(auth_client, seller, make_user, admin):
    resp = auth_client(seller).post(
        "/api/payouts/bank-accounts/",
        {"bank_name": "SNB", "account_holder_name": "Sara Seller", "account_number": "555"},
        format="json",
    )
    assert resp.status_code == 201
    assert resp.data["verification_status"] == "pending"
    account_id = resp.data["id"]

    other = make_user(role="seller")
    assert auth_client(other).get(f"/api/payouts/bank-accounts/{account_id}/").status_code == 404
    assert auth_client(seller).post(f"/api/payouts/bank-accounts/{account_id}/verify/").status_code == 403

    resp = auth_client(admin).post(f"/api/payouts/bank-accounts/{account_id}/verify/", {"status": "verified"})
    assert resp.status_code == 200
    assert resp.data["verification_status"] == "verified"


def test_bank_account_with_payouts_cannot_be_deleted(auth_client, seller, earn, account):
    earn()
    request_payout(seller, "150", account)
    resp = auth_client(seller).delete(f"/api/payouts/bank-accounts/{account.id}/")
    assert resp.status_code == 400
    assert PayoutRequest.objects.filter(bank_account=account).exists()
