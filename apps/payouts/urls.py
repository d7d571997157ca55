from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import BankAccountViewSet, PayoutRequestViewSet, WalletView

router = DefaultRouter()
router.register("bank-accounts", BankAccountViewSet, basename="bank-account")
router.register("requests", PayoutRequestViewSet, basename="payout-request")

urlpatterns = [
    path("wallet/", WalletView.as_view(), name="payout-wallet"),
] + router.urls
