from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Q
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.authentication.permissions import IsAdminOrSeller, IsOwner
from apps.orders.models import CartItem
from core.exceptions import LimitExceeded

from .models import DiscountCoupon, Product
from .serializers import DiscountCouponSerializer, MarketplaceProductSerializer, ProductSerializer
from .services import (
    CouponLine,
    check_subscription_limit,
    create_product,
    marketplace_queryset,
    publicly_visible_queryset,
    validate_coupon,
)

MARKETPLACE_ORDERING = {
    "newest": "-created_at",
    "popular": "-sales_count",
    "price_low": "price",
    "price_high": "-price",
}


class ProductViewSet(viewsets.ModelViewSet):
    """
    Sellers manage their own products here; ``retrieve`` and ``marketplace``
    are public.
    """

    queryset = Product.objects.select_related("owner", "store").all()
    serializer_class = ProductSerializer
    filterset_fields = ["store", "category", "visibility", "is_active", "is_subscription"]
    search_fields = ["name", "slug", "description"]
    ordering_fields = ["created_at", "price", "sales_count", "views_count"]

    def get_permissions(self):
        if self.action in ("retrieve", "marketplace"):
            return [permissions.AllowAny()]
        return [IsAdminOrSeller(), IsOwner()]

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return self.queryset.none()
        if self.action == "retrieve":
            user = self.request.user
            if user.is_authenticated:
                return self.queryset.filter(Q(is_active=True) & ~Q(visibility="private") | Q(owner=user))
            return publicly_visible_queryset()
        return self.queryset.filter(owner=self.request.user)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            product = create_product(owner=request.user, data=dict(serializer.validated_data))
        except LimitExceeded as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(product).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        try:
            return super().update(request, *args, **kwargs)
        except LimitExceeded as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)

    def perform_update(self, serializer):
        # Turning an existing product into a subscription uses up a plan slot.
        if serializer.validated_data.get("is_subscription") and not serializer.instance.is_subscription:
            check_subscription_limit(serializer.instance.owner)
        serializer.save()

    @action(detail=False, methods=["get"])
    def marketplace(self, request):
        qs = marketplace_queryset()
        category = request.query_params.get("category")
        if category:
            qs = qs.filter(category=category)
        search = request.query_params.get("search")
        if search:
            qs = qs.filter(name__icontains=search)
        qs = qs.order_by(MARKETPLACE_ORDERING.get(request.query_params.get("sort", "newest"), "-created_at"))

        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(MarketplaceProductSerializer(page, many=True).data)
        return Response(MarketplaceProductSerializer(qs, many=True).data)

    def filter_queryset(self, queryset):
        # The marketplace action applies its own filters.
        if self.action == "marketplace":
            return queryset
        return super().filter_queryset(queryset)


class DiscountCouponViewSet(viewsets.ModelViewSet):
    serializer_class = DiscountCouponSerializer
    permission_classes = [IsAdminOrSeller, IsOwner]
    owner_field = "seller"
    filterset_fields = ["is_active", "apply_to", "discount_type"]
    search_fields = ["code"]

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return DiscountCoupon.objects.none()
        return DiscountCoupon.objects.filter(seller=self.request.user).prefetch_related("products", "stores")

    def perform_create(self, serializer):
        serializer.save(seller=self.request.user)

    @action(detail=False, methods=["post"], permission_classes=[permissions.IsAuthenticated])
    def validate(self, request):
        """Preview a coupon against the buyer's cart lines for one seller."""
        code = request.data.get("code") or ""
        seller_id = request.data.get("seller_id")
        try:
            items = CartItem.objects.filter(user=request.user, product__owner_id=seller_id).select_related("product")
            lines = [CouponLine(product=i.product, amount=i.product.price * i.quantity) for i in items]
            coupon, discount = validate_coupon(code, seller_id, lines)
        except (ValueError, DjangoValidationError) as exc:
            message = exc.messages[0] if isinstance(exc, DjangoValidationError) else str(exc)
            return Response({"detail": message}, status=status.HTTP_400_BAD_REQUEST)
        return Response({"code": coupon.code, "discount_type": coupon.discount_type, "discount_amount": discount})
