from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Count, F, Sum
from django.utils import timezone

from apps.affiliates.models import AffiliateMarketer, AffiliateSale
from apps.affiliates.services import reverse_sale_counters
from apps.authentication.models import User

from .models import Settlement

logger = logging.getLogger(__name__)

SALE_STATUSES = ("pending", "approved", "paid", "cancelled")


def release_held_sales(now=None) -> int:
    """Approve pending sales whose holdback window has passed."""
    now = now or timezone.now()
    count = AffiliateSale.objects.filter(status="pending", holdback_until__lte=now).update(
        status="approved",
        approved_at=now,
    )
    if count:
        logger.info("Released %d held affiliate sale(s)", count)
    return count


def approve_sale(sale: AffiliateSale) -> AffiliateSale:
    with transaction.atomic():
        sale = AffiliateSale.objects.select_for_update().get(pk=sale.pk)
        if sale.status == "approved":
            return sale
        if sale.status != "pending":
            raise ValueError(f"Cannot approve a {sale.status} sale")
        sale.status = "approved"
        sale.approved_at = timezone.now()
        sale.save(update_fields=["status", "approved_at"])
    return sale


def cancel_sale(sale: AffiliateSale) -> AffiliateSale:
    # The row lock serialises this against settle_marketer picking the same sale.
    with transaction.atomic():
        sale = AffiliateSale.objects.select_for_update().get(pk=sale.pk)
        if sale.status == "cancelled":
            return sale
        if sale.status == "paid" or sale.settlement_id is not None:
            raise ValueError("A paid sale cannot be cancelled")
        sale.status = "cancelled"
        sale.cancelled_at = timezone.now()
        sale.save(update_fields=["status", "cancelled_at"])
        reverse_sale_counters(sale)
    logger.info("Affiliate sale %s cancelled", sale.id)
    return sale


def settle_marketer(
    seller: User,
    marketer: AffiliateMarketer,
    reference: str = "",
    notes: str = "",
) -> Settlement:
    """
    Pay out every approved, unsettled sale of ``marketer`` in one settlement.

    Rows are locked while the batch is built so two concurrent settlements
    cannot pay the same sale twice.
    """
    if marketer.seller_id != seller.id:
        raise ValueError("Marketer does not belong to you")

    minimum = Decimal(str(settings.MINIMUM_SETTLEMENT_AMOUNT))
    with transaction.atomic():
        sales = list(
            AffiliateSale.objects.select_for_update()
            .filter(marketer=marketer, status="approved", settlement__isnull=True)
            .order_by("approved_at", "created_at")
        )
        total = sum((s.commission_amount for s in sales), Decimal("0"))
        if not sales or total < minimum:
            raise ValueError(f"Minimum settlement is {minimum}")

        now = timezone.now()
        settlement = Settlement.objects.create(
            seller=seller,
            marketer=marketer,
            total_amount=total,
            sale_count=len(sales),
            reference=reference,
            notes=notes,
            created_by=seller,
        )
        AffiliateSale.objects.filter(id__in=[s.id for s in sales]).update(
            status="paid",
            paid_at=now,
            settlement=settlement,
        )
        AffiliateMarketer.objects.filter(pk=marketer.pk).update(total_paid=F("total_paid") + total)

    logger.info("Settled %s for marketer %s (%d sales)", total, marketer.id, len(sales))
    return settlement


@dataclass
class LedgerSummary:
    totals: dict
    counts: dict

    def as_dict(self) -> dict:
        return {"totals": self.totals, "counts": self.counts}


def ledger_summary(marketer: AffiliateMarketer) -> LedgerSummary:
    rows = (
        AffiliateSale.objects.filter(marketer=marketer)
        .values("status")
        .annotate(total=Sum("commission_amount"), count=Count("id"))
    )
    totals = {status: Decimal("0") for status in SALE_STATUSES}
    counts = {status: 0 for status in SALE_STATUSES}
    for row in rows:
        totals[row["status"]] = row["total"] or Decimal("0")
        counts[row["status"]] = row["count"]
    return LedgerSummary(totals=totals, counts=counts)
