import logging

from celery import shared_task

from .models import Notification

logger = logging.getLogger(__name__)


@shared_task
def notify_new_order(order_id: str) -> int:
    from apps.orders.models import Order

    order = Order.objects.select_related("seller").filter(pk=order_id).first()
    if order is None:
        logger.warning("notify_new_order: order %s not found", order_id)
        return 0

    Notification.objects.create(
        user=order.seller,
        kind="order",
        title=f"New order {order.order_number}",
        body=f"{order.customer_name} paid {order.total_amount} {order.currency}.",
    )
    logger.info("Seller %s notified of order %s", order.seller_id, order.order_number)
    return 1


@shared_task
def notify_affiliate_sale(sale_id: str) -> int:
    from apps.affiliates.models import AffiliateSale

    sale = AffiliateSale.objects.select_related("link__seller", "marketer__user", "order").filter(pk=sale_id).first()
    if sale is None:
        logger.warning("notify_affiliate_sale: sale %s not found", sale_id)
        return 0

    body = (
        f"Order {sale.order.order_number} via link {sale.link.code}: "
        f"commission {sale.commission_amount} on {sale.sale_amount}."
    )
    recipients = [sale.link.seller]
    if sale.marketer and sale.marketer.user_id and sale.marketer.user_id != sale.link.seller_id:
        recipients.append(sale.marketer.user)

    Notification.objects.bulk_create(
        [Notification(user=user, kind="affiliate_sale", title="New affiliate sale", body=body) for user in recipients]
    )
    logger.info("Affiliate sale %s notified to %d user(s)", sale_id, len(recipients))
    return len(recipients)


@shared_task
def notify_payout_update(payout_id: str) -> int:
    from apps.payouts.models import PayoutRequest

    payout = PayoutRequest.objects.select_related("seller").filter(pk=payout_id).first()
    if payout is None:
        logger.warning("notify_payout_update: payout %s not found", payout_id)
        return 0

    if payout.status == "paid":
        title = "Withdrawal paid"
        body = f"{payout.amount_to_transfer} {payout.currency} is on its way to your bank account."
    else:
        title = "Withdrawal rejected"
        body = f"Your request for {payout.amount_requested} {payout.currency} was rejected: {payout.rejection_reason}"

    Notification.objects.create(user=payout.seller, kind="payout", title=title, body=body)
    logger.info("Seller %s notified of payout %s (%s)", payout.seller_id, payout_id, payout.status)
    return 1
