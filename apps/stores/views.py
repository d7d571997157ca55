from django.shortcuts import get_object_or_404
from rest_framework import generics, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.authentication.permissions import IsAdminOrSeller
from core.exceptions import LimitExceeded

from .models import Store, StoreCategory
from .serializers import StoreCategorySerializer, StoreSerializer, StorefrontProductSerializer
from .services import create_store, detach_products

STOREFRONT_ORDERING = {
    "newest": "-created_at",
    "price_low": "price",
    "price_high": "-price",
    "popular": "-sales_count",
}


class StoreCategoryListView(generics.ListAPIView):
    queryset = StoreCategory.objects.all()
    serializer_class = StoreCategorySerializer
    permission_classes = [permissions.AllowAny]
    pagination_class = None


class StoreViewSet(viewsets.ModelViewSet):
    queryset = Store.objects.select_related("owner").all()
    serializer_class = StoreSerializer
    permission_classes = [IsAdminOrSeller]
    filterset_fields = ["category", "is_active", "show_in_marketplace"]
    search_fields = ["name", "slug"]
    ordering_fields = ["created_at", "name"]

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return self.queryset.none()
        return self.queryset.filter(owner=self.request.user)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            store = create_store(owner=request.user, data=dict(serializer.validated_data))
        except LimitExceeded as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(store).data, status=status.HTTP_201_CREATED)

    def perform_destroy(self, instance: Store):
        detach_products(instance)
        instance.delete()

    @action(
        detail=False,
        methods=["get"],
        permission_classes=[permissions.AllowAny],
        url_path=r"storefront/(?P<slug>[-\w]+)",
    )
    def storefront(self, request, slug: str | None = None):
        """
        Public storefront: the store's branding plus its active products.
        """
        store = get_object_or_404(Store, slug=slug, is_active=True)
        sort = request.query_params.get("sort", "newest")
        ordering = STOREFRONT_ORDERING.get(sort, "-created_at")
        products = store.products.filter(is_active=True).exclude(visibility="private").order_by(ordering)

        data = StoreSerializer(store).data
        data["products"] = StorefrontProductSerializer(products, many=True).data
        return Response(data, status=status.HTTP_200_OK)
