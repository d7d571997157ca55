from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal

from .models import User

DEFAULT_MAX_STORES = 1
DEFAULT_MAX_PRODUCTS = 10
DEFAULT_MAX_SUBSCRIPTION_PRODUCTS = 0
DEFAULT_COMMISSION_RATE = Decimal("10")
DEFAULT_MARKETPLACE_COMMISSION_RATE = Decimal("15")


@dataclass
class UserLimits:
    current_stores: int
    current_products: int
    current_subscription_products: int
    max_stores: int
    max_products: int
    max_subscription_products: int
    can_create_store: bool
    can_create_product: bool
    can_create_subscription_product: bool
    commission_rate: Decimal
    marketplace_commission_rate: Decimal

    def as_dict(self) -> dict:
        return asdict(self)


def get_user_limits(user: User) -> UserLimits:
    """
    Plan usage for a seller. Users without a plan get the free-tier defaults.

    Admins are never limited.
    """
    plan = user.plan if user.plan_id and user.plan.is_active else None
    if plan is not None:
        max_stores = plan.max_stores
        max_products = plan.max_products
        max_subscription = plan.max_subscription_products
        commission_rate = plan.commission_rate
        marketplace_rate = plan.marketplace_commission_rate
    else:
        max_stores = DEFAULT_MAX_STORES
        max_products = DEFAULT_MAX_PRODUCTS
        max_subscription = DEFAULT_MAX_SUBSCRIPTION_PRODUCTS
        commission_rate = DEFAULT_COMMISSION_RATE
        marketplace_rate = DEFAULT_MARKETPLACE_COMMISSION_RATE

    current_stores = user.stores.count()
    current_products = user.products.count()
    current_subscription = user.products.filter(is_subscription=True).count()
    unlimited = user.role == "admin"

    return UserLimits(
        current_stores=current_stores,
        current_products=current_products,
        current_subscription_products=current_subscription,
        max_stores=max_stores,
        max_products=max_products,
        max_subscription_products=max_subscription,
        can_create_store=unlimited or current_stores < max_stores,
        can_create_product=unlimited or current_products < max_products,
        can_create_subscription_product=unlimited or current_subscription < max_subscription,
        commission_rate=commission_rate,
        marketplace_commission_rate=marketplace_rate,
    )
