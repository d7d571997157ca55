from rest_framework.routers import DefaultRouter

from .views import AffiliateLinkViewSet, AffiliateMarketerViewSet

router = DefaultRouter()
router.register("marketers", AffiliateMarketerViewSet, basename="affiliate-marketer")
router.register("links", AffiliateLinkViewSet, basename="affiliate-link")

urlpatterns = router.urls
