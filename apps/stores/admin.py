from django.contrib import admin

from .models import Store, StoreCategory


@admin.register(StoreCategory)
class StoreCategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "name_ar")
    search_fields = ("name", "slug")


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "owner", "category", "default_currency", "show_in_marketplace", "is_active")
    search_fields = ("name", "slug", "owner__email")
    list_filter = ("is_active", "show_in_marketplace", "category")
