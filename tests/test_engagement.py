import pytest
from django.test import override_settings

from apps.engagement.models import Favorite, ViewedProduct
from apps.engagement.services import record_product_view

pytestmark = pytest.mark.django_db


def test_toggle_favorite(auth_client, buyer, product):
    client = auth_client(buyer)
    resp = client.post("/api/engagement/favorites/toggle/", {"product_id": str(product.id)}, format="json")
    assert resp.data == {"is_favorite": True}
    assert client.get(f"/api/engagement/favorites/{product.id}/").data == {"is_favorite": True}

    resp = client.post("/api/engagement/favorites/toggle/", {"product_id": str(product.id)}, format="json")
    assert resp.data == {"is_favorite": False}
    assert not Favorite.objects.filter(user=buyer).exists()


def test_anonymous_view_only_counts(api_client, product):
    resp = api_client.post("/api/engagement/viewed/record/", {"product_id": str(product.id)}, format="json")
    assert resp.status_code == 204
    product.refresh_from_db()
    assert product.views_count == 1
    assert ViewedProduct.objects.count() == 0


def test_repeat_view_keeps_one_row(buyer, product):
    record_product_view(buyer, product)
    record_product_view(buyer, product)
    product.refresh_from_db()
    assert product.views_count == 2
    assert ViewedProduct.objects.filter(user=buyer).count() == 1


@override_settings(VIEWED_PRODUCTS_LIMIT=2)
def test_viewed_history_is_trimmed(buyer, make_product):
    products = [make_product() for _ in range(3)]
    for p in products:
        record_product_view(buyer, p)
    remaining = set(ViewedProduct.objects.filter(user=buyer).values_list("product_id", flat=True))
    assert products[0].id not in remaining
    assert len(remaining) == 2


def test_clear_viewed_history(auth_client, buyer, product):
    record_product_view(buyer, product)
    resp = auth_client(buyer).delete("/api/engagement/viewed/")
    assert resp.status_code == 204
    assert not ViewedProduct.objects.filter(user=buyer).exists()
