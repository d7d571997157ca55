from django.db.models import ProtectedError
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.authentication.permissions import IsAdmin, IsAdminOrSeller

from .models import BankAccount, PayoutRequest
from .serializers import BankAccountSerializer, CreatePayoutSerializer, PayoutRequestSerializer
from .services import approve_payout, get_wallet, reject_payout, request_payout, set_bank_account_status


def _is_admin(user) -> bool:
    return getattr(user, "role", None) == "admin"


class WalletView(APIView):
    permission_classes = [IsAdminOrSeller]

    def get(self, request, *args, **kwargs):
        recent = PayoutRequest.objects.filter(seller=request.user).select_related("bank_account")[:5]
        return Response(
            {
                "wallet": get_wallet(request.user).as_dict(),
                "recent_payouts": PayoutRequestSerializer(recent, many=True).data,
            }
        )


class BankAccountViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Sellers register payout accounts; admins review them."""

    serializer_class = BankAccountSerializer
    permission_classes = [IsAdminOrSeller]
    filterset_fields = ["verification_status"]

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return BankAccount.objects.none()
        if _is_admin(self.request.user):
            return BankAccount.objects.all()
        return BankAccount.objects.filter(seller=self.request.user)

    def perform_create(self, serializer):
        serializer.save(seller=self.request.user)

    def destroy(self, request, *args, **kwargs):
        try:
            return super().destroy(request, *args, **kwargs)
        except ProtectedError:
            return Response(
                {"detail": "Bank account has payout requests"},
                status=status.HTTP_400_BAD_REQUEST,
            )

    @action(detail=True, methods=["post"], permission_classes=[IsAdmin])
    def verify(self, request, pk=None):
        account = self.get_object()
        try:
            account = set_bank_account_status(account, request.data.get("status", "verified"))
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(account).data)


class PayoutRequestViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = PayoutRequestSerializer
    permission_classes = [IsAdminOrSeller]
    filterset_fields = ["status"]
    ordering_fields = ["requested_at", "amount_requested"]

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return PayoutRequest.objects.none()
        qs = PayoutRequest.objects.select_related("seller", "bank_account")
        if _is_admin(self.request.user):
            return qs
        return qs.filter(seller=self.request.user)

    def create(self, request, *args, **kwargs):
        serializer = CreatePayoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            payout = request_payout(
                seller=request.user,
                amount=serializer.validated_data["amount"],
                bank_account=serializer.validated_data["bank_account"],
                note=serializer.validated_data["note"],
            )
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(PayoutRequestSerializer(payout).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], permission_classes=[IsAdmin])
    def approve(self, request, pk=None):
        try:
            payout = approve_payout(self.get_object(), request.user, notes=request.data.get("notes", ""))
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(payout).data)

    @action(detail=True, methods=["post"], permission_classes=[IsAdmin])
    def reject(self, request, pk=None):
        try:
            payout = reject_payout(self.get_object(), request.user, reason=request.data.get("reason", ""))
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(payout).data)
