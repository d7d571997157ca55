import uuid

from django.core.validators import MinValueValidator
from django.db import models


class BankAccount(models.Model):
    VERIFICATION_CHOICES = [
        ("pending", "Pending"),
        ("verified", "Verified"),
        ("rejected", "Rejected"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    seller = models.ForeignKey(
        "authentication.User",
        on_delete=models.CASCADE,
        related_name="bank_accounts",
    )
    bank_name = models.CharField(max_length=255)
    account_holder_name = models.CharField(max_length=255)
    account_number = models.CharField(max_length=64)
    iban = models.CharField(max_length=64, blank=True)
    swift_code = models.CharField(max_length=32, blank=True)
    bank_country = models.CharField(max_length=64, blank=True)
    verification_status = models.CharField(max_length=20, choices=VERIFICATION_CHOICES, default="pending")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.bank_name} ****{self.account_number[-4:]}"


class PayoutRequest(models.Model):
    """A seller withdrawal from their order earnings, reviewed by an admin."""

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("paid", "Paid"),
        ("rejected", "Rejected"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    seller = models.ForeignKey(
        "authentication.User",
        on_delete=models.CASCADE,
        related_name="payout_requests",
    )
    bank_account = models.ForeignKey(
        BankAccount,
        on_delete=models.PROTECT,
        related_name="payout_requests",
    )
    amount_requested = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(0)],
    )
    amount_fees = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    amount_to_transfer = models.DecimalField(max_digits=15, decimal_places=2)
    currency = models.CharField(max_length=3, default="SAR")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    merchant_note = models.TextField(blank=True)
    admin_notes = models.TextField(blank=True)
    rejection_reason = models.TextField(blank=True)
    reviewed_by = models.ForeignKey(
        "authentication.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    requested_at = models.DateTimeField(auto_now_add=True)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-requested_at"]

    def __str__(self) -> str:
        return f"{self.seller} {self.amount_requested} ({self.status})"
