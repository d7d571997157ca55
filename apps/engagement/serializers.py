from rest_framework import serializers

from apps.products.serializers import MarketplaceProductSerializer

from .models import Favorite, ViewedProduct


class ProductActionSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()


class FavoriteSerializer(serializers.ModelSerializer):
    product = MarketplaceProductSerializer(read_only=True)

    class Meta:
        model = Favorite
        fields = ["id", "product", "created_at"]


class ViewedProductSerializer(serializers.ModelSerializer):
    product = MarketplaceProductSerializer(read_only=True)

    class Meta:
        model = ViewedProduct
        fields = ["id", "product", "viewed_at"]
