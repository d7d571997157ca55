from django.contrib import admin

from .models import DiscountCoupon, Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "owner", "store", "price", "currency", "visibility", "is_subscription", "is_active")
    search_fields = ("name", "slug", "owner__email")
    list_filter = ("is_active", "visibility", "is_subscription", "delivery_method")


@admin.register(DiscountCoupon)
class DiscountCouponAdmin(admin.ModelAdmin):
    list_display = ("code", "seller", "discount_type", "discount_value", "used_count", "usage_limit", "is_active")
    search_fields = ("code", "seller__email")
    list_filter = ("is_active", "discount_type", "apply_to")
