import uuid

from django.db import models


class Settlement(models.Model):
    """A payout run that marks a batch of approved affiliate sales as paid."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    seller = models.ForeignKey(
        "authentication.User",
        on_delete=models.CASCADE,
        related_name="settlements",
    )
    marketer = models.ForeignKey(
        "affiliates.AffiliateMarketer",
        on_delete=models.PROTECT,
        related_name="settlements",
    )
    total_amount = models.DecimalField(max_digits=15, decimal_places=2)
    sale_count = models.IntegerField(default=0)
    reference = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        "authentication.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.marketer} {self.total_amount}"
