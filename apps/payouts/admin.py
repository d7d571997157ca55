from django.contrib import admin

from .models import BankAccount, PayoutRequest


@admin.register(BankAccount)
class BankAccountAdmin(admin.ModelAdmin):
    list_display = ("id", "seller", "bank_name", "account_holder_name", "verification_status", "created_at")
    list_filter = ("verification_status",)
    search_fields = ("seller__email", "bank_name", "account_holder_name", "iban")


@admin.register(PayoutRequest)
class PayoutRequestAdmin(admin.ModelAdmin):
    list_display = ("id", "seller", "amount_requested", "amount_to_transfer", "status", "requested_at", "paid_at")
    list_filter = ("status",)
    search_fields = ("seller__email",)
