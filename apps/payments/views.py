import logging

import requests
from rest_framework import permissions, status, views
from rest_framework.response import Response

from core.exceptions import PaymentError

from .services import create_payment_session, process_paymob_webhook

logger = logging.getLogger(__name__)


class CreatePaymentSessionView(views.APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, *args, **kwargs):
        order_id = request.data.get("orderId") or request.data.get("order_id")
        if not order_id:
            return Response({"success": False, "error": "orderId is required"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            result = create_payment_session(request.user, order_id)
        except PaymentError as exc:
            return Response({"success": False, "error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except requests.RequestException as exc:
            logger.error("Paymob request failed for order %s: %s", order_id, exc)
            return Response(
                {"success": False, "error": "Payment provider is unavailable"},
                status=status.HTTP_502_BAD_GATEWAY,
            )
        return Response(result, status=status.HTTP_200_OK)


class PaymobWebhookView(views.APIView):
    """Paymob transaction callback. Always answers 200 so Paymob stops retrying."""

    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request, *args, **kwargs):
        processed = process_paymob_webhook(request.data, received_hmac=request.query_params.get("hmac"))
        return Response({"success": processed}, status=status.HTTP_200_OK)
