from django.contrib import admin

from .models import Settlement


@admin.register(Settlement)
class SettlementAdmin(admin.ModelAdmin):
    list_display = ("id", "seller", "marketer", "total_amount", "sale_count", "reference", "created_at")
    search_fields = ("reference", "marketer__name", "seller__email")
