from __future__ import annotations

import logging
import re
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from apps.authentication.models import User
from apps.commissions.calculator import commission_for
from apps.notifications.tasks import notify_affiliate_sale
from apps.products.models import Product

from .models import AffiliateClick, AffiliateLink, AffiliateMarketer, AffiliateSale

logger = logging.getLogger(__name__)

CODE_PATTERN = re.compile(r"^[A-Z0-9_-]{3,50}$")

BOT_PATTERNS = (
    "bot",
    "crawler",
    "spider",
    "scraper",
    "curl",
    "wget",
    "python-requests",
    "headless",
    "scrapy",
)


# Link Registry


def normalize_code(code: str | None) -> str:
    value = (code or "").strip().upper()
    if not CODE_PATTERN.match(value):
        raise ValueError("Code must be 3-50 characters: letters, digits, '-' or '_'")
    return value


def validate_scope(
    seller: User,
    apply_to: str,
    product: Product | None,
    store=None,
) -> tuple[Product | None, object | None]:
    """
    Check the link's scope and return the (product, store) pair to persist.

    A product link needs a product and never a store, a store link the
    reverse, and an "all" link neither. Scoped objects must belong to the seller.
    """
    if apply_to == "product":
        if product is None:
            raise ValueError("A product is required for product links")
        if product.owner_id != seller.id:
            raise ValueError("Product does not belong to you")
        return product, None
    if apply_to == "store":
        if store is None:
            raise ValueError("A store is required for store links")
        if store.owner_id != seller.id:
            raise ValueError("Store does not belong to you")
        return None, store
    if apply_to == "all":
        return None, None
    raise ValueError(f"Unknown link scope: {apply_to}")


def _save_link(seller: User, data: dict, instance: AffiliateLink | None = None) -> AffiliateLink:
    link = instance or AffiliateLink(seller=seller)

    code = normalize_code(data.get("code", link.code if instance else None))
    apply_to = data.get("apply_to", link.apply_to)
    product, store = validate_scope(
        seller,
        apply_to,
        data.get("product", link.product if instance else None),
        data.get("store", link.store if instance else None),
    )

    marketer = data.get("marketer", link.marketer if instance else None)
    if marketer is not None and marketer.seller_id != seller.id:
        raise ValueError("Marketer does not belong to you")

    link.code = code
    link.apply_to = apply_to
    link.product = product
    link.store = store
    link.marketer = marketer
    for field in ("commission_rate", "description", "is_active", "expires_at"):
        if field in data:
            setattr(link, field, data[field])

    try:
        with transaction.atomic():
            link.save()
    except IntegrityError:
        raise ValueError("Code already in use")
    return link


def create_link(seller: User, data: dict) -> AffiliateLink:
    link = _save_link(seller, data)
    logger.info("Seller %s created affiliate link %s (%s)", seller.id, link.code, link.apply_to)
    return link


def update_link(link: AffiliateLink, data: dict) -> AffiliateLink:
    return _save_link(link.seller, data, instance=link)


def link_applies_to(link: AffiliateLink, product: Product) -> bool:
    if product.owner_id != link.seller_id:
        return False
    if link.apply_to == "product":
        return link.product_id == product.id
    if link.apply_to == "store":
        return product.store_id is not None and product.store_id == link.store_id
    return link.apply_to == "all"


def tracking_url(link: AffiliateLink) -> str:
    base = settings.DIGIMART_PUBLIC_BASE_URL.rstrip("/")
    return f"{base}/aff/{link.seller_id}/{link.code}/"


def landing_url(link: AffiliateLink) -> str:
    base = settings.FRONTEND_BASE_URL.rstrip("/")
    if link.apply_to == "product" and link.product_id:
        return f"{base}/products/{link.product.slug}"
    if link.apply_to == "store" and link.store_id:
        return f"{base}/stores/{link.store.slug}"
    return f"{base}/marketplace"


def is_link_live(link: AffiliateLink, now=None) -> bool:
    now = now or timezone.now()
    if not link.is_active:
        return False
    if link.expires_at and link.expires_at < now:
        return False
    if link.marketer_id and not link.marketer.is_active:
        return False
    return True


# Click Recorder


def is_bot_user_agent(user_agent: str | None) -> bool:
    if not user_agent:
        return False
    ua = user_agent.lower()
    return any(pattern in ua for pattern in BOT_PATTERNS)


def record_click(
    link: AffiliateLink,
    ip_address: str | None = None,
    user_agent: str | None = None,
    referrer_url: str | None = None,
    landing_page_url: str | None = None,
    visitor_id: str | None = None,
) -> AffiliateClick | None:
    now = timezone.now()
    if not is_link_live(link, now):
        return None

    is_bot = is_bot_user_agent(user_agent)
    click = AffiliateClick.objects.create(
        link=link,
        ip_address=ip_address or None,
        user_agent=user_agent,
        referrer_url=referrer_url,
        landing_page_url=landing_page_url,
        visitor_id=visitor_id,
        is_bot=is_bot,
    )
    if is_bot:
        logger.info("Bot click on link %s ignored for counters (ua=%r)", link.code, user_agent)
        return click

    AffiliateLink.objects.filter(pk=link.pk).update(click_count=F("click_count") + 1, last_clicked_at=now)
    if link.marketer_id:
        AffiliateMarketer.objects.filter(pk=link.marketer_id).update(total_clicks=F("total_clicks") + 1)
    return click


# Sale Attributor


def resolve_attribution(ref: str | None) -> AffiliateLink | None:
    if not ref:
        return None
    try:
        link = AffiliateLink.objects.select_related("marketer", "product", "store").get(pk=ref)
    except (AffiliateLink.DoesNotExist, ValidationError, ValueError, TypeError):
        logger.debug("Ignoring unknown attribution ref %r", ref)
        return None
    return link if is_link_live(link) else None


def effective_rate(link: AffiliateLink) -> Decimal:
    if link.commission_rate is not None:
        return link.commission_rate
    if link.marketer_id:
        return link.marketer.commission_rate
    return Decimal("0")


def attribute_order(order) -> list[AffiliateSale]:
    """
    Credit the order's affiliate link with one sale per applicable item.

    Safe to call more than once for the same order: existing (link, item)
    pairs are left untouched and counters only move for new rows.
    """
    link = order.affiliate_link
    if link is None:
        return []
    if order.buyer_id == order.seller_id:
        logger.info("Order %s is a self-purchase; no affiliate credit", order.order_number)
        return []

    rate = effective_rate(link)
    paid_at = order.paid_at or timezone.now()
    holdback_until = paid_at + timedelta(days=settings.AFFILIATE_HOLDBACK_DAYS)

    created: list[AffiliateSale] = []
    total = Decimal("0")
    with transaction.atomic():
        for item in order.items.select_related("product"):
            if item.product is None or not link_applies_to(link, item.product):
                continue
            amount = commission_for(item.subtotal, rate)
            sale, was_created = AffiliateSale.objects.get_or_create(
                link=link,
                order_item=item,
                defaults={
                    "marketer": link.marketer,
                    "order": order,
                    "sale_amount": item.subtotal,
                    "commission_rate": rate,
                    "commission_amount": amount,
                    "holdback_until": holdback_until,
                },
            )
            if was_created:
                created.append(sale)
                total += amount

        if created:
            AffiliateLink.objects.filter(pk=link.pk).update(
                sale_count=F("sale_count") + len(created),
                total_commission=F("total_commission") + total,
            )
            if link.marketer_id:
                AffiliateMarketer.objects.filter(pk=link.marketer_id).update(
                    total_sales=F("total_sales") + len(created),
                    total_commission=F("total_commission") + total,
                )
            for sale in created:
                sale_id = str(sale.id)
                transaction.on_commit(lambda sale_id=sale_id: notify_affiliate_sale.delay(sale_id))

    if created:
        logger.info(
            "Order %s credited to link %s: %d sale(s), commission %s",
            order.order_number,
            link.code,
            len(created),
            total,
        )
    return created


def reverse_sale_counters(sale: AffiliateSale) -> None:
    AffiliateLink.objects.filter(pk=sale.link_id).update(
        sale_count=F("sale_count") - 1,
        total_commission=F("total_commission") - sale.commission_amount,
    )
    if sale.marketer_id:
        AffiliateMarketer.objects.filter(pk=sale.marketer_id).update(
            total_sales=F("total_sales") - 1,
            total_commission=F("total_commission") - sale.commission_amount,
        )


def cancel_order_sales(order) -> int:
    """Cancel unpaid sales of a refunded or cancelled order and roll the counters back."""
    now = timezone.now()
    with transaction.atomic():
        sales = list(
            AffiliateSale.objects.select_for_update().filter(order=order, status__in=["pending", "approved"])
        )
        for sale in sales:
            sale.status = "cancelled"
            sale.cancelled_at = now
            sale.save(update_fields=["status", "cancelled_at"])
            reverse_sale_counters(sale)
    if sales:
        logger.info("Cancelled %d affiliate sale(s) for order %s", len(sales), order.order_number)
    return len(sales)
