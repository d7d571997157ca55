from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import CartItemView, CartView, CheckoutView, OrderNumberView, OrderViewSet, SellerOrderViewSet

router = DefaultRouter()
router.register("manage", SellerOrderViewSet, basename="seller-order")
router.register("", OrderViewSet, basename="order")

urlpatterns = [
    path("cart/", CartView.as_view(), name="cart"),
    path("cart/items/<int:item_id>/", CartItemView.as_view(), name="cart-item"),
    path("checkout/", CheckoutView.as_view(), name="checkout"),
    path("order-number/", OrderNumberView.as_view(), name="order-number"),
] + router.urls
