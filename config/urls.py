from django.contrib import admin
from django.urls import include, path
from drf_yasg import openapi
from drf_yasg.views import get_schema_view
from rest_framework import permissions

from apps.affiliates.views import handle_affiliate_click

schema_view = get_schema_view(
    openapi.Info(title="Digimart API", default_version="v1"),
    public=True,
    permission_classes=[permissions.AllowAny],
)

urlpatterns = [
    path("admin/", admin.site.urls),
    # Public tracking/redirect endpoint for affiliate links
    path("aff/<uuid:seller_id>/<str:code>/", handle_affiliate_click, name="affiliate-click-public"),
    path("api/docs/", schema_view.with_ui("swagger", cache_timeout=0), name="api-docs"),
    path("api/auth/", include("apps.authentication.urls")),
    path("api/stores/", include("apps.stores.urls")),
    path("api/products/", include("apps.products.urls")),
    path("api/engagement/", include("apps.engagement.urls")),
    path("api/orders/", include("apps.orders.urls")),
    path("api/payments/", include("apps.payments.urls")),
    path("api/affiliates/", include("apps.affiliates.urls")),
    path("api/commissions/", include("apps.commissions.urls")),
    path("api/payouts/", include("apps.payouts.urls")),
    path("api/analytics/", include("apps.analytics.urls")),
    path("api/notifications/", include("apps.notifications.urls")),
]
