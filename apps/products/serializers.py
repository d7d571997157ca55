from django.utils import timezone
from rest_framework import serializers

from apps.stores.models import Store

from .models import DiscountCoupon, Product


class ProductSerializer(serializers.ModelSerializer):
    store_name = serializers.CharField(source="store.name", read_only=True, allow_null=True)
    store_slug = serializers.CharField(source="store.slug", read_only=True, allow_null=True)
    seller_name = serializers.CharField(source="owner.full_name", read_only=True)

    class Meta:
        model = Product
        fields = "__all__"
        read_only_fields = ["id", "owner", "slug", "views_count", "sales_count", "created_at", "updated_at"]

    def validate_store(self, store: Store | None):
        request = self.context.get("request")
        if store is not None and request is not None and store.owner_id != request.user.id:
            raise serializers.ValidationError("Store does not belong to you")
        return store

    def validate(self, attrs):
        is_subscription = attrs.get("is_subscription", getattr(self.instance, "is_subscription", False))
        if not is_subscription:
            attrs["subscription_period"] = None
        elif not attrs.get("subscription_period", getattr(self.instance, "subscription_period", None)):
            attrs["subscription_period"] = "monthly"
        return attrs


class MarketplaceProductSerializer(serializers.ModelSerializer):
    store_name = serializers.CharField(source="store.name", read_only=True, allow_null=True)
    store_slug = serializers.CharField(source="store.slug", read_only=True, allow_null=True)
    seller_name = serializers.CharField(source="owner.full_name", read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "slug",
            "description",
            "price",
            "currency",
            "category",
            "thumbnail_url",
            "is_subscription",
            "subscription_period",
            "is_featured",
            "views_count",
            "sales_count",
            "store",
            "store_name",
            "store_slug",
            "seller_name",
            "created_at",
        ]


class DiscountCouponSerializer(serializers.ModelSerializer):
    class Meta:
        model = DiscountCoupon
        fields = "__all__"
        read_only_fields = ["id", "seller", "used_count", "created_at"]
        # Code uniqueness per seller is checked in validate_code.
        validators = []

    def validate_code(self, value: str) -> str:
        code = value.strip().upper()
        request = self.context["request"]
        qs = DiscountCoupon.objects.filter(seller=request.user, code=code)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Code already in use")
        return code

    def validate(self, attrs):
        user = self.context["request"].user
        discount_type = attrs.get("discount_type", getattr(self.instance, "discount_type", "percentage"))
        value = attrs.get("discount_value", getattr(self.instance, "discount_value", None))
        if discount_type == "percentage" and value is not None and value > 100:
            raise serializers.ValidationError({"discount_value": "Percentage discount cannot exceed 100"})

        start = attrs.get("start_date", getattr(self.instance, "start_date", None)) or timezone.now()
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if end is not None and end < start:
            raise serializers.ValidationError({"end_date": "End date must be after start date"})

        for product in attrs.get("products", []):
            if product.owner_id != user.id:
                raise serializers.ValidationError({"products": "One or more products do not belong to you"})
        for store in attrs.get("stores", []):
            if store.owner_id != user.id:
                raise serializers.ValidationError({"stores": "One or more stores do not belong to you"})
        return attrs
