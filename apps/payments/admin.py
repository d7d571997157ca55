from django.contrib import admin

from .models import Payment, PaymentProviderKey, PaymentSettings, WebhookLog


@admin.register(PaymentSettings)
class PaymentSettingsAdmin(admin.ModelAdmin):
    list_display = ("id", "is_active", "global_commission_percentage", "updated_at")


@admin.register(PaymentProviderKey)
class PaymentProviderKeyAdmin(admin.ModelAdmin):
    list_display = ("provider", "integration_id", "iframe_id", "is_active", "updated_at")
    list_filter = ("provider", "is_active")


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "order", "buyer", "seller", "amount_total", "platform_fee", "status", "created_at")
    search_fields = ("order__order_number", "provider_reference", "provider_transaction_id", "buyer__email")
    list_filter = ("status", "provider")


@admin.register(WebhookLog)
class WebhookLogAdmin(admin.ModelAdmin):
    list_display = ("provider", "event_type", "status", "created_at", "processed_at")
    search_fields = ("provider", "error_message")
    list_filter = ("status", "provider")
