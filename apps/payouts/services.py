from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from apps.authentication.models import User
from apps.notifications.tasks import notify_payout_update
from apps.orders.models import Order

from .models import BankAccount, PayoutRequest

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
EARNING_STATUSES = ("paid", "completed")
OPEN_PAYOUT_STATUSES = ("pending",)


@dataclass
class Wallet:
    total_earned: Decimal
    balance_hold: Decimal
    balance_pending_payout: Decimal
    total_withdrawn: Decimal
    balance_available: Decimal
    currency: str
    hold_period_hours: int
    last_payout_at: datetime | None
    next_release_amount: Decimal
    next_release_at: datetime | None

    def as_dict(self) -> dict:
        return asdict(self)


def _sum(qs, field: str) -> Decimal:
    return qs.aggregate(total=Sum(field))["total"] or Decimal("0")


def get_wallet(seller: User, now: datetime | None = None) -> Wallet:
    """
    Seller balance derived from paid orders and payout requests.

    Earnings from an order stay on hold for ``PAYOUT_HOLD_HOURS`` after it
    was paid. A refunded order drops out of the earnings.
    """
    now = now or timezone.now()
    hold_hours = settings.PAYOUT_HOLD_HOURS
    hold_start = now - timedelta(hours=hold_hours)

    earned = Order.objects.filter(seller=seller, status__in=EARNING_STATUSES)
    held = earned.filter(paid_at__gt=hold_start)
    payouts = PayoutRequest.objects.filter(seller=seller)

    total_earned = _sum(earned, "seller_amount")
    balance_hold = _sum(held, "seller_amount")
    pending = _sum(payouts.filter(status__in=OPEN_PAYOUT_STATUSES), "amount_requested")
    withdrawn = _sum(payouts.filter(status="paid"), "amount_requested")

    oldest_held = held.order_by("paid_at").first()
    last_paid = payouts.filter(status="paid").order_by("-paid_at").first()

    return Wallet(
        total_earned=total_earned,
        balance_hold=balance_hold,
        balance_pending_payout=pending,
        total_withdrawn=withdrawn,
        balance_available=total_earned - balance_hold - pending - withdrawn,
        currency=settings.PAYMOB_CURRENCY,
        hold_period_hours=hold_hours,
        last_payout_at=last_paid.paid_at if last_paid else None,
        next_release_amount=oldest_held.seller_amount if oldest_held else Decimal("0"),
        next_release_at=oldest_held.paid_at + timedelta(hours=hold_hours) if oldest_held else None,
    )


def payout_fees(amount: Decimal) -> Decimal:
    fee = amount * settings.PAYOUT_FEE_PERCENTAGE / Decimal("100") + settings.PAYOUT_FEE_FIXED
    return fee.quantize(CENT, rounding=ROUND_HALF_UP)


def request_payout(seller: User, amount, bank_account: BankAccount | None, note: str = "") -> PayoutRequest:
    try:
        amount = Decimal(str(amount)).quantize(CENT) if amount not in (None, "") else None
    except InvalidOperation:
        amount = None
    if not amount or amount <= 0 or bank_account is None:
        raise ValueError("Amount and bank account are required")
    if bank_account.seller_id != seller.id:
        raise ValueError("Bank account not found")
    if bank_account.verification_status != "verified":
        raise ValueError("Bank account is not verified")

    minimum = settings.PAYOUT_MIN_AMOUNT
    if amount < minimum:
        raise ValueError(f"Minimum withdrawal is {minimum} {settings.PAYMOB_CURRENCY}")

    fees = payout_fees(amount)
    if fees >= amount:
        raise ValueError("Amount does not cover the withdrawal fees")

    with transaction.atomic():
        # The seller row serialises concurrent requests against the same balance.
        User.objects.select_for_update().get(pk=seller.pk)
        wallet = get_wallet(seller)
        if amount > wallet.balance_available:
            raise ValueError(f"Insufficient balance (available {wallet.balance_available})")

        payout = PayoutRequest.objects.create(
            seller=seller,
            bank_account=bank_account,
            amount_requested=amount,
            amount_fees=fees,
            amount_to_transfer=amount - fees,
            currency=wallet.currency,
            merchant_note=note or "",
        )

    logger.info("Seller %s requested payout %s of %s", seller.id, payout.id, amount)
    return payout


def _review(payout: PayoutRequest, action: str) -> PayoutRequest:
    payout = PayoutRequest.objects.select_for_update().get(pk=payout.pk)
    if payout.status != "pending":
        raise ValueError(f"Cannot {action} a {payout.status} payout request")
    return payout


def approve_payout(payout: PayoutRequest, admin: User, notes: str = "") -> PayoutRequest:
    """Mark a pending request as transferred."""
    now = timezone.now()
    with transaction.atomic():
        payout = _review(payout, "approve")
        payout.status = "paid"
        payout.reviewed_by = admin
        payout.reviewed_at = now
        payout.paid_at = now
        payout.admin_notes = notes or ""
        payout.save(update_fields=["status", "reviewed_by", "reviewed_at", "paid_at", "admin_notes"])
        payout_id = str(payout.id)
        transaction.on_commit(lambda: notify_payout_update.delay(payout_id))

    logger.info("Payout %s approved by %s", payout.id, admin.id)
    return payout


def reject_payout(payout: PayoutRequest, admin: User, reason: str) -> PayoutRequest:
    """Reject a pending request; the amount returns to the available balance."""
    reason = (reason or "").strip()
    if not reason:
        raise ValueError("A rejection reason is required")

    with transaction.atomic():
        payout = _review(payout, "reject")
        payout.status = "rejected"
        payout.reviewed_by = admin
        payout.reviewed_at = timezone.now()
        payout.rejection_reason = reason
        payout.save(update_fields=["status", "reviewed_by", "reviewed_at", "rejection_reason"])
        payout_id = str(payout.id)
        transaction.on_commit(lambda: notify_payout_update.delay(payout_id))

    logger.info("Payout %s rejected by %s: %s", payout.id, admin.id, reason)
    return payout


def set_bank_account_status(account: BankAccount, verification_status: str) -> BankAccount:
    if verification_status not in dict(BankAccount.VERIFICATION_CHOICES):
        raise ValueError(f"Unknown verification status: {verification_status}")
    account.verification_status = verification_status
    account.save(update_fields=["verification_status"])
    return account
