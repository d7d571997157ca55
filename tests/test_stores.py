import pytest

from apps.products.models import Product
from apps.stores.models import Store
from apps.stores.services import clean_social_links, create_store, generate_store_slug
from core.exceptions import LimitExceeded

pytestmark = pytest.mark.django_db


def test_slug_is_prefixed_and_deduplicated(seller):
    first = create_store(seller, {"name": "My Shop"})
    assert first.slug == f"{str(seller.id)[:8]}-my-shop"
    assert generate_store_slug(seller, "My Shop") == f"{first.slug}-2"


def test_store_limit(seller, store):
    with pytest.raises(LimitExceeded, match="Store limit reached"):
        create_store(seller, {"name": "Second"})


def test_blank_name_rejected(seller):
    with pytest.raises(ValueError, match="Store name is required"):
        create_store(seller, {"name": "   "})


def test_social_links_are_cleaned():
    assert clean_social_links({"twitter": " @me ", "facebook": "x", "email": ""}) == {"twitter": "@me"}


def test_create_store_over_limit_is_forbidden(auth_client, seller, store):
    resp = auth_client(seller).post("/api/stores/", {"name": "Another"}, format="json")
    assert resp.status_code == 403
    assert "Store limit reached" in resp.data["detail"]


def test_customer_cannot_create_store(auth_client, buyer):
    resp = auth_client(buyer).post("/api/stores/", {"name": "Mine"}, format="json")
    assert resp.status_code == 403


def test_deleting_store_keeps_products(auth_client, seller, store, product):
    resp = auth_client(seller).delete(f"/api/stores/{store.id}/")
    assert resp.status_code == 204
    assert not Store.objects.filter(pk=store.pk).exists()
    product.refresh_from_db()
    assert product.store_id is None


def test_public_storefront_hides_private_products(api_client, store, make_product):
    make_product(store=store, name="Cheap", price=10)
    make_product(store=store, name="Pricey", price=90)
    make_product(store=store, name="Hidden", visibility="private")

    resp = api_client.get(f"/api/stores/storefront/{store.slug}/?sort=price_high")
    assert resp.status_code == 200
    names = [p["name"] for p in resp.data["products"]]
    assert names == ["Pricey", "Cheap"]
    assert Product.objects.filter(store=store).count() == 3
