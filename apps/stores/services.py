from __future__ import annotations

import logging

from django.db import transaction

from apps.authentication.models import User
from apps.authentication.services import get_user_limits
from core.exceptions import LimitExceeded
from core.utils import slugify_name

from .models import Store

logger = logging.getLogger(__name__)

SOCIAL_KEYS = ("email", "twitter", "instagram", "telegram")


def clean_social_links(links: dict | None) -> dict:
    links = links or {}
    return {key: links[key].strip() for key in SOCIAL_KEYS if isinstance(links.get(key), str) and links[key].strip()}


def generate_store_slug(owner: User, name: str, exclude_pk=None) -> str:
    base = f"{str(owner.id)[:8]}-{slugify_name(name)}".rstrip("-")
    candidate = base
    idx = 1
    qs = Store.objects.all()
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    while qs.filter(slug=candidate).exists():
        idx += 1
        candidate = f"{base}-{idx}"
    return candidate


def create_store(owner: User, data: dict) -> Store:
    limits = get_user_limits(owner)
    if not limits.can_create_store:
        raise LimitExceeded(f"Store limit reached ({limits.max_stores}). Upgrade your plan.")

    name = (data.get("name") or "").strip()
    if not name:
        raise ValueError("Store name is required")

    fields = {key: value for key, value in data.items() if key not in ("name", "slug", "owner", "social_links")}
    with transaction.atomic():
        store = Store.objects.create(
            owner=owner,
            name=name,
            slug=generate_store_slug(owner, name),
            social_links=clean_social_links(data.get("social_links")),
            **fields,
        )
    logger.info("Store %s created by %s", store.slug, owner.pk)
    return store


def detach_products(store: Store) -> int:
    """Products of a deleted store become independent listings."""
    return store.products.update(store=None)
