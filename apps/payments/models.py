import uuid

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class PaymentSettings(models.Model):
    """Single-row platform payment configuration."""

    is_active = models.BooleanField(default=False)
    global_commission_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "payment settings"

    def save(self, *args, **kwargs):
        self.pk = 1
        super().save(*args, **kwargs)

    @classmethod
    def load(cls) -> "PaymentSettings":
        obj, _ = cls.objects.get_or_create(pk=1)
        return obj


class PaymentProviderKey(models.Model):
    PROVIDER_CHOICES = [
        ("paymob", "Paymob"),
    ]

    provider = models.CharField(max_length=30, choices=PROVIDER_CHOICES, default="paymob")
    api_key = models.TextField(blank=True, default="")
    integration_id = models.CharField(max_length=50, blank=True, default="")
    iframe_id = models.CharField(max_length=50, blank=True, default="")
    hmac_secret = models.CharField(max_length=255, blank=True, default="")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.provider} ({'active' if self.is_active else 'inactive'})"


class Payment(models.Model):
    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("succeeded", "Succeeded"),
        ("failed", "Failed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="payments",
    )
    buyer = models.ForeignKey(
        "authentication.User",
        on_delete=models.CASCADE,
        related_name="payments",
    )
    seller = models.ForeignKey(
        "authentication.User",
        on_delete=models.CASCADE,
        related_name="received_payments",
    )
    amount_total = models.DecimalField(max_digits=12, decimal_places=2)
    platform_fee = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    gateway_fee = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    seller_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    commission_rate_used = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    provider = models.CharField(max_length=30, default="paymob")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    provider_reference = models.CharField(max_length=100, blank=True, null=True)
    provider_transaction_id = models.CharField(max_length=100, blank=True, null=True)
    provider_payment_url = models.URLField(max_length=500, blank=True, null=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.provider} {self.amount_total} ({self.status})"


class WebhookLog(models.Model):
    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("success", "Success"),
        ("failed", "Failed"),
    ]

    provider = models.CharField(max_length=50)
    event_type = models.CharField(max_length=100, default="transaction")
    raw_payload = models.JSONField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    error_message = models.TextField(blank=True, default="")
    parsed_data = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    processed_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        ordering = ["-created_at"]
