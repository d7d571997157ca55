from django.shortcuts import get_object_or_404
from rest_framework import generics, permissions, status, views
from rest_framework.response import Response

from apps.products.services import publicly_visible_queryset

from .models import Favorite, ViewedProduct
from .serializers import FavoriteSerializer, ProductActionSerializer, ViewedProductSerializer
from .services import record_product_view, toggle_favorite


class FavoriteListView(generics.ListAPIView):
    serializer_class = FavoriteSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Favorite.objects.none()
        return Favorite.objects.filter(user=self.request.user).select_related("product__store", "product__owner")


class ToggleFavoriteView(views.APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = ProductActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product = get_object_or_404(publicly_visible_queryset(), pk=serializer.validated_data["product_id"])
        is_favorite = toggle_favorite(request.user, product)
        return Response({"is_favorite": is_favorite}, status=status.HTTP_200_OK)


class FavoriteStatusView(views.APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, product_id, *args, **kwargs):
        exists = Favorite.objects.filter(user=request.user, product_id=product_id).exists()
        return Response({"is_favorite": exists}, status=status.HTTP_200_OK)


class RecordViewView(views.APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = ProductActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product = get_object_or_404(publicly_visible_queryset(), pk=serializer.validated_data["product_id"])
        record_product_view(request.user, product)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ViewedProductListView(generics.ListAPIView):
    serializer_class = ViewedProductSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return ViewedProduct.objects.none()
        return ViewedProduct.objects.filter(user=self.request.user).select_related("product__store", "product__owner")

    def delete(self, request, *args, **kwargs):
        ViewedProduct.objects.filter(user=request.user).delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
