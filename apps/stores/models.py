import uuid

from django.db import models


def default_payment_methods() -> dict:
    return {"hyperpay": True, "paypal": False}


class StoreCategory(models.Model):
    id = models.BigAutoField(primary_key=True)
    slug = models.SlugField(max_length=50, unique=True)
    name = models.CharField(max_length=100)
    name_ar = models.CharField(max_length=100, blank=True, default="")
    icon = models.CharField(max_length=50, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "Store categories"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Store(models.Model):
    CURRENCY_CHOICES = (
        ("SAR", "Saudi Riyal"),
        ("USD", "US Dollar"),
        ("EUR", "Euro"),
        ("AED", "UAE Dirham"),
        ("EGP", "Egyptian Pound"),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        "authentication.User",
        on_delete=models.CASCADE,
        related_name="stores",
    )
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    description = models.TextField(blank=True, null=True)
    cover_image = models.TextField(blank=True, null=True)
    logo_url = models.TextField(blank=True, null=True)
    category = models.CharField(max_length=50, default="other")
    default_currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default="SAR")
    show_in_marketplace = models.BooleanField(default=True)
    payment_methods = models.JSONField(default=default_payment_methods, blank=True)
    social_links = models.JSONField(default=dict, blank=True)
    email = models.EmailField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.name
