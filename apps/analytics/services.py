from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.db.models import Count, Q, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from apps.affiliates.models import AffiliateClick, AffiliateLink, AffiliateMarketer, AffiliateSale
from apps.authentication.models import User
from apps.orders.models import Order

TIME_RANGES = {
    "7days": 7,
    "30days": 30,
    "90days": 90,
    "all": None,
}


def range_start(time_range: str, now=None):
    if time_range not in TIME_RANGES:
        raise ValueError(f"Unknown time range: {time_range}")
    days = TIME_RANGES[time_range]
    if days is None:
        return None
    now = now or timezone.now()
    return now - timedelta(days=days)


def conversion_rate(clicks: int, sales: int) -> float:
    if not clicks:
        return 0.0
    return round(sales / clicks * 100, 2)


def marketer_analytics(marketer: AffiliateMarketer, time_range: str = "30days") -> dict:
    """
    Clicks, sales and commission for one marketer over ``time_range``.

    Bot clicks and cancelled sales are left out of every figure.
    """
    start = range_start(time_range)

    clicks = AffiliateClick.objects.filter(link__marketer=marketer, is_bot=False)
    sales = AffiliateSale.objects.filter(marketer=marketer).exclude(status="cancelled")
    if start is not None:
        clicks = clicks.filter(clicked_at__gte=start)
        sales = sales.filter(created_at__gte=start)

    clicks_by_link = {row["link_id"]: row["count"] for row in clicks.values("link_id").annotate(count=Count("id"))}
    sales_by_link = {
        row["link_id"]: row
        for row in sales.values("link_id").annotate(
            count=Count("id"),
            commission=Sum("commission_amount"),
        )
    }

    sale_totals = sales.aggregate(
        count=Count("id"),
        commission=Sum("commission_amount"),
        pending=Sum("commission_amount", filter=Q(status__in=["pending", "approved"])),
        paid=Sum("commission_amount", filter=Q(status="paid")),
    )
    total_clicks = sum(clicks_by_link.values())
    total_sales = sale_totals["count"]

    # Links credited with a sale stay listed after being moved to another marketer.
    link_ids = set(clicks_by_link) | set(sales_by_link)
    links = []
    for link in AffiliateLink.objects.filter(Q(marketer=marketer) | Q(id__in=link_ids)).order_by("code"):
        link_clicks = clicks_by_link.get(link.id, 0)
        row = sales_by_link.get(link.id, {})
        link_sales = row.get("count", 0)
        link_commission = row.get("commission") or Decimal("0")
        links.append(
            {
                "id": str(link.id),
                "code": link.code,
                "apply_to": link.apply_to,
                "clicks": link_clicks,
                "sales": link_sales,
                "commission": link_commission,
                "conversion_rate": conversion_rate(link_clicks, link_sales),
            }
        )

    daily: dict[str, dict] = {}
    for row in clicks.annotate(day=TruncDate("clicked_at")).values("day").annotate(count=Count("id")):
        daily.setdefault(row["day"].isoformat(), {"clicks": 0, "sales": 0})["clicks"] = row["count"]
    for row in sales.annotate(day=TruncDate("created_at")).values("day").annotate(count=Count("id")):
        daily.setdefault(row["day"].isoformat(), {"clicks": 0, "sales": 0})["sales"] = row["count"]

    return {
        "marketer_id": str(marketer.id),
        "time_range": time_range,
        "total_clicks": total_clicks,
        "total_sales": total_sales,
        "conversion_rate": conversion_rate(total_clicks, total_sales),
        "total_commission": sale_totals["commission"] or Decimal("0"),
        "pending_commission": sale_totals["pending"] or Decimal("0"),
        "paid_commission": sale_totals["paid"] or Decimal("0"),
        "links": links,
        "daily": [{"date": day, **values} for day, values in sorted(daily.items())],
    }


def seller_dashboard(seller: User) -> dict:
    orders = Order.objects.filter(seller=seller)
    order_stats = orders.aggregate(
        total=Count("id"),
        pending=Count("id", filter=Q(status="pending")),
        completed=Count("id", filter=Q(status="completed")),
        revenue=Sum("total_amount", filter=Q(status__in=["paid", "completed"])),
    )
    link_stats = AffiliateLink.objects.filter(seller=seller).aggregate(
        links=Count("id"),
        clicks=Sum("click_count"),
        sales=Sum("sale_count"),
        commission=Sum("total_commission"),
    )
    return {
        "stores": seller.stores.count(),
        "products": seller.products.count(),
        "orders": order_stats["total"],
        "pending_orders": order_stats["pending"],
        "completed_orders": order_stats["completed"],
        "revenue": order_stats["revenue"] or Decimal("0"),
        "affiliate_links": link_stats["links"],
        "affiliate_clicks": link_stats["clicks"] or 0,
        "affiliate_sales": link_stats["sales"] or 0,
        "affiliate_commission": link_stats["commission"] or Decimal("0"),
    }


def affiliate_overview(seller: User) -> list[dict]:
    rows = (
        AffiliateLink.objects.filter(seller=seller)
        .select_related("marketer")
        .order_by("-sale_count", "code")
    )
    return [
        {
            "id": str(link.id),
            "code": link.code,
            "marketer": link.marketer.name if link.marketer else None,
            "clicks": link.click_count,
            "sales": link.sale_count,
            "commission": link.total_commission,
            "conversion_rate": conversion_rate(link.click_count, link.sale_count),
        }
        for link in rows
    ]
