from decimal import Decimal

from rest_framework import serializers

from .models import CartItem, Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ["id", "product", "product_name", "product_price", "quantity", "subtotal"]


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    seller_name = serializers.CharField(source="seller.full_name", read_only=True)
    affiliate_code = serializers.CharField(source="affiliate_link.code", read_only=True, allow_null=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "buyer",
            "seller",
            "seller_name",
            "customer_name",
            "customer_email",
            "customer_phone",
            "shipping_address",
            "notes",
            "subtotal",
            "discount_amount",
            "coupon_code",
            "total_amount",
            "currency",
            "commission_amount",
            "seller_amount",
            "status",
            "payment_method",
            "affiliate_code",
            "items",
            "created_at",
            "updated_at",
            "paid_at",
        ]
        read_only_fields = fields


class CartItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    product_price = serializers.DecimalField(source="product.price", max_digits=12, decimal_places=2, read_only=True)
    currency = serializers.CharField(source="product.currency", read_only=True)
    line_total = serializers.SerializerMethodField()

    class Meta:
        model = CartItem
        fields = ["id", "product", "product_name", "product_price", "currency", "quantity", "line_total", "added_at"]
        read_only_fields = ["id", "product_name", "product_price", "currency", "line_total", "added_at"]

    def get_line_total(self, obj: CartItem) -> Decimal:
        return obj.product.price * obj.quantity


class AddToCartSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(default=1, min_value=1)


class CheckoutSerializer(serializers.Serializer):
    customer_name = serializers.CharField(required=False, allow_blank=True)
    customer_email = serializers.EmailField(required=False, allow_blank=True)
    customer_phone = serializers.CharField(required=False, allow_blank=True)
    shipping_address = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES, default="card")
    coupon_code = serializers.CharField(required=False, allow_blank=True)


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=["completed", "refunded", "cancelled"])
