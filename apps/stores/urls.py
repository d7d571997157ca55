from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import StoreCategoryListView, StoreViewSet

router = DefaultRouter()
router.register("", StoreViewSet, basename="store")

urlpatterns = [
    path("categories/", StoreCategoryListView.as_view(), name="store-categories"),
] + router.urls
