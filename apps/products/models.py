import uuid

from django.core.validators import MinValueValidator
from django.db import models


class Product(models.Model):
    VISIBILITY_CHOICES = (
        ("public", "Public"),
        ("private", "Private"),
        ("marketplace", "Marketplace"),
    )
    DELIVERY_CHOICES = (
        ("instant", "Instant download"),
        ("email", "Email"),
    )
    SUBSCRIPTION_PERIOD_CHOICES = (
        ("monthly", "Monthly"),
        ("quarterly", "Quarterly"),
        ("yearly", "Yearly"),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        "authentication.User",
        on_delete=models.CASCADE,
        related_name="products",
    )
    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    description = models.TextField(blank=True, null=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    currency = models.CharField(max_length=3, default="SAR")
    category = models.CharField(max_length=50, default="other")
    is_subscription = models.BooleanField(default=False)
    subscription_period = models.CharField(
        max_length=20,
        choices=SUBSCRIPTION_PERIOD_CHOICES,
        blank=True,
        null=True,
    )
    visibility = models.CharField(max_length=20, choices=VISIBILITY_CHOICES, default="marketplace")
    delivery_method = models.CharField(max_length=20, choices=DELIVERY_CHOICES, default="instant")
    coupons_enabled = models.BooleanField(default=False)
    thumbnail_url = models.TextField(blank=True, null=True)
    file_url = models.TextField(blank=True, null=True)
    file_type = models.CharField(max_length=50, blank=True, null=True)
    file_size = models.BigIntegerField(blank=True, null=True)
    download_limit = models.IntegerField(default=0)
    is_featured = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    views_count = models.IntegerField(default=0)
    sales_count = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.name


class DiscountCoupon(models.Model):
    DISCOUNT_TYPE_CHOICES = (
        ("percentage", "Percentage"),
        ("fixed", "Fixed"),
    )
    APPLY_TO_CHOICES = (
        ("all", "All products"),
        ("specific_products", "Specific products"),
        ("specific_stores", "Specific stores"),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    seller = models.ForeignKey(
        "authentication.User",
        on_delete=models.CASCADE,
        related_name="coupons",
    )
    code = models.CharField(max_length=50)
    discount_type = models.CharField(max_length=20, choices=DISCOUNT_TYPE_CHOICES, default="percentage")
    discount_value = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    min_purchase_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    max_discount_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    usage_limit = models.IntegerField(null=True, blank=True, validators=[MinValueValidator(1)])
    used_count = models.IntegerField(default=0)
    start_date = models.DateTimeField(null=True, blank=True)
    end_date = models.DateTimeField(null=True, blank=True)
    apply_to = models.CharField(max_length=20, choices=APPLY_TO_CHOICES, default="all")
    products = models.ManyToManyField(Product, related_name="coupons", blank=True)
    stores = models.ManyToManyField("stores.Store", related_name="coupons", blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["seller", "code"], name="unique_coupon_code_per_seller"),
        ]

    def __str__(self) -> str:
        return self.code
