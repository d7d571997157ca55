from rest_framework import serializers

from apps.products.models import Product
from apps.stores.models import Store

from .models import AffiliateLink, AffiliateMarketer
from .services import tracking_url


class AffiliateMarketerSerializer(serializers.ModelSerializer):
    link_count = serializers.IntegerField(source="links.count", read_only=True)

    class Meta:
        model = AffiliateMarketer
        fields = [
            "id",
            "user",
            "name",
            "email",
            "phone",
            "commission_rate",
            "notes",
            "is_active",
            "total_clicks",
            "total_sales",
            "total_commission",
            "total_paid",
            "link_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "total_clicks",
            "total_sales",
            "total_commission",
            "total_paid",
            "link_count",
            "created_at",
            "updated_at",
        ]

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        return value


class AffiliateLinkSerializer(serializers.ModelSerializer):
    """
    Input is validated for shape only; scope and ownership rules live in
    ``services.create_link`` / ``services.update_link``.
    """

    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all(), required=False, allow_null=True)
    store = serializers.PrimaryKeyRelatedField(queryset=Store.objects.all(), required=False, allow_null=True)
    marketer = serializers.PrimaryKeyRelatedField(
        queryset=AffiliateMarketer.objects.all(),
        required=False,
        allow_null=True,
    )
    product_name = serializers.CharField(source="product.name", read_only=True)
    store_name = serializers.CharField(source="store.name", read_only=True)
    marketer_name = serializers.CharField(source="marketer.name", read_only=True)
    full_url = serializers.SerializerMethodField()

    class Meta:
        model = AffiliateLink
        fields = [
            "id",
            "code",
            "apply_to",
            "product",
            "product_name",
            "store",
            "store_name",
            "marketer",
            "marketer_name",
            "commission_rate",
            "description",
            "is_active",
            "expires_at",
            "full_url",
            "click_count",
            "sale_count",
            "total_commission",
            "last_clicked_at",
            "created_at",
        ]
        read_only_fields = [
            "id",
            "click_count",
            "sale_count",
            "total_commission",
            "last_clicked_at",
            "created_at",
        ]
        extra_kwargs = {"code": {"validators": []}}

    def get_full_url(self, obj):
        return tracking_url(obj)
