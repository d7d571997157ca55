from rest_framework.routers import DefaultRouter

from .views import AffiliateSaleViewSet, SettlementViewSet

router = DefaultRouter()
router.register("sales", AffiliateSaleViewSet, basename="affiliate-sale")
router.register("settlements", SettlementViewSet, basename="settlement")

urlpatterns = router.urls
