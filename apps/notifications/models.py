from django.db import models


class Notification(models.Model):
    KIND_CHOICES = [
        ("order", "Order"),
        ("affiliate_sale", "Affiliate sale"),
        ("payout", "Payout"),
        ("system", "System"),
    ]

    user = models.ForeignKey(
        "authentication.User",
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    kind = models.CharField(max_length=30, choices=KIND_CHOICES, default="system")
    title = models.CharField(max_length=255)
    body = models.TextField()
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.title
