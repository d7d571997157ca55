from django.urls import path

from .views import AffiliateOverviewView, MarketerAnalyticsView, SellerDashboardView

urlpatterns = [
    path("marketers/<uuid:marketer_id>/", MarketerAnalyticsView.as_view(), name="marketer-analytics"),
    path("seller/dashboard/", SellerDashboardView.as_view(), name="seller-dashboard"),
    path("seller/affiliates/", AffiliateOverviewView.as_view(), name="affiliate-overview"),
]
