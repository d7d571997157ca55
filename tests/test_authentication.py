import pytest

from apps.authentication.models import Plan
from apps.authentication.services import get_user_limits

pytestmark = pytest.mark.django_db


def test_register_and_login(api_client):
    resp = api_client.post(
        "/api/auth/register/",
        {"email": "new@example.com", "password": "longpassword", "full_name": "New Seller", "role": "seller"},
        format="json",
    )
    assert resp.status_code == 201

    resp = api_client.post("/api/auth/login/", {"email": "new@example.com", "password": "longpassword"}, format="json")
    assert resp.status_code == 200
    assert resp.data["user"]["role"] == "seller"
    assert "access" in resp.data and "refresh" in resp.data


def test_register_rejects_admin_role(api_client):
    resp = api_client.post(
        "/api/auth/register/",
        {"email": "sneaky@example.com", "password": "longpassword", "full_name": "Sneaky", "role": "admin"},
        format="json",
    )
    assert resp.status_code == 400


def test_login_with_wrong_password(api_client, seller):
    resp = api_client.post("/api/auth/login/", {"email": seller.email, "password": "nope"}, format="json")
    assert resp.status_code == 401


def test_default_limits_without_plan(seller, store, make_product):
    make_product()
    limits = get_user_limits(seller)
    assert limits.max_stores == 1
    assert limits.current_stores == 1
    assert limits.can_create_store is False
    assert limits.current_products == 1
    assert limits.can_create_product is True
    assert limits.can_create_subscription_product is False


def test_plan_limits_apply(make_user):
    plan = Plan.objects.create(name="Pro", max_stores=3, max_products=100, max_subscription_products=5)
    user = make_user(role="seller", plan=plan)
    limits = get_user_limits(user)
    assert limits.max_stores == 3
    assert limits.can_create_subscription_product is True


def test_admin_is_unlimited(make_user):
    admin = make_user(role="admin")
    limits = get_user_limits(admin)
    assert limits.max_stores == 1
    assert limits.can_create_store is True


def test_limits_endpoint(auth_client, seller):
    resp = auth_client(seller).get("/api/auth/limits/")
    assert resp.status_code == 200
    assert resp.data["can_create_store"] is True
