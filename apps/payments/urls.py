from django.urls import path

from .views import CreatePaymentSessionView, PaymobWebhookView

urlpatterns = [
    path("session/", CreatePaymentSessionView.as_view(), name="payment-session"),
    path("paymob/webhook/", PaymobWebhookView.as_view(), name="paymob-webhook"),
]
