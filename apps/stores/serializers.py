from rest_framework import serializers

from .models import Store, StoreCategory
from .services import clean_social_links


class StoreCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = StoreCategory
        fields = ["id", "slug", "name", "name_ar", "icon"]


class StoreSerializer(serializers.ModelSerializer):
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Store
        fields = [
            "id",
            "owner",
            "name",
            "slug",
            "description",
            "cover_image",
            "logo_url",
            "category",
            "default_currency",
            "show_in_marketplace",
            "payment_methods",
            "social_links",
            "email",
            "is_active",
            "product_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "owner", "slug", "product_count", "created_at", "updated_at"]

    def get_product_count(self, obj: Store) -> int:
        return obj.products.filter(is_active=True).count()

    def validate_name(self, value: str) -> str:
        if not value.strip():
            raise serializers.ValidationError("Store name is required")
        return value.strip()

    def validate_social_links(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Expected an object")
        return clean_social_links(value)


class StorefrontProductSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    name = serializers.CharField()
    slug = serializers.CharField()
    price = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField()
    thumbnail_url = serializers.CharField(allow_null=True)
    is_subscription = serializers.BooleanField()
    sales_count = serializers.IntegerField()
