import uuid

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

RATE_VALIDATORS = [MinValueValidator(0), MaxValueValidator(100)]


class AffiliateMarketer(models.Model):
    """
    A marketer promoting one seller's catalogue.

    Marketers are records owned by the seller; ``user`` optionally links the
    record to an account so the marketer can read their own analytics.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    seller = models.ForeignKey(
        "authentication.User",
        on_delete=models.CASCADE,
        related_name="affiliate_marketers",
    )
    user = models.ForeignKey(
        "authentication.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="marketer_profiles",
    )
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    commission_rate = models.DecimalField(max_digits=5, decimal_places=2, default=10, validators=RATE_VALIDATORS)
    notes = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    total_clicks = models.IntegerField(default=0)
    total_sales = models.IntegerField(default=0)
    total_commission = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    total_paid = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.name


class AffiliateLink(models.Model):
    APPLY_TO_CHOICES = (
        ("product", "Single product"),
        ("store", "Single store"),
        ("all", "All products"),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    seller = models.ForeignKey(
        "authentication.User",
        on_delete=models.CASCADE,
        related_name="affiliate_links",
    )
    code = models.CharField(max_length=50)
    apply_to = models.CharField(max_length=10, choices=APPLY_TO_CHOICES, default="product")
    # Links outlive their product or store so recorded sales stay on the ledger.
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="affiliate_links",
    )
    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="affiliate_links",
    )
    marketer = models.ForeignKey(
        AffiliateMarketer,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="links",
    )
    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=RATE_VALIDATORS,
    )
    description = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    expires_at = models.DateTimeField(blank=True, null=True)
    click_count = models.IntegerField(default=0)
    sale_count = models.IntegerField(default=0)
    total_commission = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    last_clicked_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["seller", "code"], name="unique_affiliate_code_per_seller"),
        ]

    def __str__(self) -> str:
        return self.code


class AffiliateClick(models.Model):
    id = models.BigAutoField(primary_key=True)
    link = models.ForeignKey(
        AffiliateLink,
        on_delete=models.CASCADE,
        related_name="clicks",
    )
    ip_address = models.GenericIPAddressField(blank=True, null=True)
    user_agent = models.TextField(blank=True, null=True)
    referrer_url = models.TextField(blank=True, null=True)
    landing_page_url = models.TextField(blank=True, null=True)
    visitor_id = models.CharField(max_length=100, blank=True, null=True)
    is_bot = models.BooleanField(default=False)
    clicked_at = models.DateTimeField(auto_now_add=True, db_index=True)


class AffiliateSale(models.Model):
    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("approved", "Approved"),
        ("paid", "Paid"),
        ("cancelled", "Cancelled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    link = models.ForeignKey(
        AffiliateLink,
        on_delete=models.PROTECT,
        related_name="sales",
    )
    marketer = models.ForeignKey(
        AffiliateMarketer,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sales",
    )
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="affiliate_sales",
    )
    order_item = models.ForeignKey(
        "orders.OrderItem",
        on_delete=models.CASCADE,
        related_name="affiliate_sales",
    )
    sale_amount = models.DecimalField(max_digits=12, decimal_places=2)
    commission_rate = models.DecimalField(max_digits=5, decimal_places=2)
    commission_amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    holdback_until = models.DateTimeField(blank=True, null=True)
    approved_at = models.DateTimeField(blank=True, null=True)
    paid_at = models.DateTimeField(blank=True, null=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)
    settlement = models.ForeignKey(
        "commissions.Settlement",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="sales",
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["link", "order_item"], name="unique_sale_per_link_and_item"),
        ]
