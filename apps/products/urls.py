from rest_framework.routers import DefaultRouter

from .views import DiscountCouponViewSet, ProductViewSet

router = DefaultRouter()
router.register("coupons", DiscountCouponViewSet, basename="coupon")
router.register("", ProductViewSet, basename="product")

urlpatterns = router.urls
