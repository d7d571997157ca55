from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from apps.products.models import Product

from .models import Favorite, ViewedProduct


def toggle_favorite(user, product: Product) -> bool:
    """Returns True when the product is now a favorite, False when it was removed."""
    deleted, _ = Favorite.objects.filter(user=user, product=product).delete()
    if deleted:
        return False
    try:
        with transaction.atomic():
            Favorite.objects.create(user=user, product=product)
    except IntegrityError:
        # A concurrent request already added it.
        pass
    return True


def record_product_view(user, product: Product) -> None:
    Product.objects.filter(pk=product.pk).update(views_count=F("views_count") + 1)
    if user is None or not user.is_authenticated:
        return

    ViewedProduct.objects.update_or_create(
        user=user,
        product=product,
        defaults={"viewed_at": timezone.now()},
    )

    limit = settings.VIEWED_PRODUCTS_LIMIT
    stale = ViewedProduct.objects.filter(user=user).order_by("-viewed_at").values_list("pk", flat=True)[limit:]
    stale_ids = list(stale)
    if stale_ids:
        ViewedProduct.objects.filter(pk__in=stale_ids).delete()
