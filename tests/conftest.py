from decimal import Decimal
from itertools import count

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.affiliates.models import AffiliateLink, AffiliateMarketer
from apps.products.models import Product
from apps.stores.models import Store

User = get_user_model()

_seq = count(1)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_user(db):
    def _make_user(role="customer", **extra):
        n = next(_seq)
        extra.setdefault("full_name", f"User {n}")
        return User.objects.create_user(
            email=f"user{n}@example.com",
            password="Passw0rd!",
            role=role,
            **extra,
        )

    return _make_user


@pytest.fixture
def seller(make_user):
    return make_user(role="seller", full_name="Sara Seller")


@pytest.fixture
def buyer(make_user):
    return make_user(role="customer", full_name="Bader Buyer", phone_number="0500000000")


@pytest.fixture
def auth_client():
    def _auth_client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _auth_client


@pytest.fixture
def store(seller):
    return Store.objects.create(owner=seller, name="Seller Store", slug=f"{str(seller.id)[:8]}-seller-store")


@pytest.fixture
def make_product(seller):
    def _make_product(owner=None, **fields):
        owner = owner or seller
        n = next(_seq)
        fields.setdefault("name", f"Product {n}")
        fields.setdefault("price", Decimal("100.00"))
        return Product.objects.create(owner=owner, slug=f"{str(owner.id)[:8]}-product-{n}", **fields)

    return _make_product


@pytest.fixture
def product(make_product, store):
    return make_product(store=store, name="Design Course", price=Decimal("200.00"))


@pytest.fixture
def marketer(seller):
    return AffiliateMarketer.objects.create(seller=seller, name="Mona Marketer", commission_rate=Decimal("10"))


@pytest.fixture
def product_link(seller, product, marketer):
    return AffiliateLink.objects.create(
        seller=seller,
        code="MONA10",
        apply_to="product",
        product=product,
        marketer=marketer,
    )
