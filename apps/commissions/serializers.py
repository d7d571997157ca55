from rest_framework import serializers

from apps.affiliates.models import AffiliateMarketer, AffiliateSale

from .models import Settlement


class AffiliateSaleSerializer(serializers.ModelSerializer):
    link_code = serializers.CharField(source="link.code", read_only=True)
    marketer_name = serializers.CharField(source="marketer.name", read_only=True)
    order_number = serializers.CharField(source="order.order_number", read_only=True)
    product_name = serializers.CharField(source="order_item.product_name", read_only=True)

    class Meta:
        model = AffiliateSale
        fields = [
            "id",
            "link",
            "link_code",
            "marketer",
            "marketer_name",
            "order",
            "order_number",
            "order_item",
            "product_name",
            "sale_amount",
            "commission_rate",
            "commission_amount",
            "status",
            "holdback_until",
            "approved_at",
            "paid_at",
            "cancelled_at",
            "settlement",
            "created_at",
        ]
        read_only_fields = fields


class SettlementSerializer(serializers.ModelSerializer):
    marketer_name = serializers.CharField(source="marketer.name", read_only=True)

    class Meta:
        model = Settlement
        fields = [
            "id",
            "marketer",
            "marketer_name",
            "total_amount",
            "sale_count",
            "reference",
            "notes",
            "created_at",
        ]
        read_only_fields = ["id", "marketer_name", "total_amount", "sale_count", "created_at"]


class CreateSettlementSerializer(serializers.Serializer):
    marketer = serializers.PrimaryKeyRelatedField(queryset=AffiliateMarketer.objects.all())
    reference = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_marketer(self, value):
        if value.seller_id != self.context["request"].user.id:
            raise serializers.ValidationError("Marketer does not belong to you")
        return value
