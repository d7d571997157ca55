import logging

from celery import shared_task

from . import services

logger = logging.getLogger(__name__)


@shared_task
def release_held_sales() -> int:
    count = services.release_held_sales()
    logger.debug("release_held_sales task approved %d sale(s)", count)
    return count
