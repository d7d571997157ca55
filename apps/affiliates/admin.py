from django.contrib import admin

from .models import AffiliateClick, AffiliateLink, AffiliateMarketer, AffiliateSale


@admin.register(AffiliateMarketer)
class AffiliateMarketerAdmin(admin.ModelAdmin):
    list_display = ("name", "seller", "commission_rate", "is_active", "total_clicks", "total_sales", "total_commission")
    search_fields = ("name", "email", "seller__email")
    list_filter = ("is_active",)


@admin.register(AffiliateLink)
class AffiliateLinkAdmin(admin.ModelAdmin):
    list_display = ("code", "seller", "apply_to", "marketer", "is_active", "click_count", "sale_count")
    search_fields = ("code", "seller__email", "marketer__name")
    list_filter = ("apply_to", "is_active")


@admin.register(AffiliateClick)
class AffiliateClickAdmin(admin.ModelAdmin):
    list_display = ("link", "ip_address", "is_bot", "clicked_at")
    search_fields = ("link__code", "ip_address", "visitor_id")
    list_filter = ("is_bot",)


@admin.register(AffiliateSale)
class AffiliateSaleAdmin(admin.ModelAdmin):
    list_display = ("link", "marketer", "order", "sale_amount", "commission_amount", "status", "created_at")
    search_fields = ("link__code", "order__order_number", "marketer__name")
    list_filter = ("status",)
