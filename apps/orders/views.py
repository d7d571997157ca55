from django.conf import settings
from django.shortcuts import get_object_or_404
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.authentication.permissions import IsAdminOrSeller
from apps.products.services import publicly_visible_queryset

from .models import CartItem, Order
from .serializers import (
    AddToCartSerializer,
    CartItemSerializer,
    CheckoutSerializer,
    OrderSerializer,
    OrderStatusSerializer,
)
from .services import add_to_cart, cart_total, checkout, generate_order_number, set_cart_quantity, transition_order


def _cart_payload(user) -> dict:
    items = CartItem.objects.filter(user=user).select_related("product")
    return {
        "items": CartItemSerializer(items, many=True).data,
        "total_amount": str(cart_total(user)),
    }


class CartView(APIView):
    """
    GET to see the cart, POST to add a product (quantity is added to an existing line).
    """

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, *args, **kwargs):
        return Response(_cart_payload(request.user))

    def post(self, request, *args, **kwargs):
        serializer = AddToCartSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product = get_object_or_404(publicly_visible_queryset(), pk=serializer.validated_data["product_id"])
        add_to_cart(request.user, product, serializer.validated_data["quantity"])
        return Response(_cart_payload(request.user), status=status.HTTP_201_CREATED)

    def delete(self, request, *args, **kwargs):
        CartItem.objects.filter(user=request.user).delete()
        return Response(_cart_payload(request.user))


class CartItemView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, item_id: int, *args, **kwargs):
        item = get_object_or_404(CartItem, id=item_id, user=request.user)
        try:
            quantity = int(request.data.get("quantity"))
        except (TypeError, ValueError):
            return Response({"detail": "Invalid quantity"}, status=status.HTTP_400_BAD_REQUEST)
        set_cart_quantity(item, quantity)
        return Response(_cart_payload(request.user), status=status.HTTP_200_OK)

    def delete(self, request, item_id: int, *args, **kwargs):
        item = get_object_or_404(CartItem, id=item_id, user=request.user)
        item.delete()
        return Response(_cart_payload(request.user), status=status.HTTP_200_OK)


class CheckoutView(APIView):
    """
    Create one pending order per seller from the current cart.

    Payment happens afterwards through ``api/payments/session/`` per order.
    """

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        affiliate_ref = request.COOKIES.get(settings.AFFILIATE_COOKIE_NAME)
        try:
            orders = checkout(request.user, serializer.validated_data, affiliate_ref=affiliate_ref)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(
            {"orders": OrderSerializer(orders, many=True).data},
            status=status.HTTP_201_CREATED,
        )


class OrderNumberView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, *args, **kwargs):
        return Response({"order_number": generate_order_number()})


class OrderViewSet(viewsets.ReadOnlyModelViewSet):
    """Buyer-side order tracking."""

    serializer_class = OrderSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["status"]
    ordering_fields = ["created_at", "total_amount"]

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        return Order.objects.filter(buyer=self.request.user).select_related("seller", "affiliate_link").prefetch_related("items")


class SellerOrderViewSet(viewsets.ReadOnlyModelViewSet):
    """Seller-side order management."""

    serializer_class = OrderSerializer
    permission_classes = [IsAdminOrSeller]
    filterset_fields = ["status", "payment_method"]
    search_fields = ["order_number", "customer_email", "customer_name"]
    ordering_fields = ["created_at", "total_amount"]

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        qs = Order.objects.select_related("seller", "affiliate_link").prefetch_related("items")
        if self.request.user.role == "admin":
            return qs
        return qs.filter(seller=self.request.user)

    @action(detail=True, methods=["patch"], url_path="status")
    def update_status(self, request, pk=None):
        order = self.get_object()
        serializer = OrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            transition_order(order, serializer.validated_data["status"])
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(order).data, status=status.HTTP_200_OK)
