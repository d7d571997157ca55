from django.shortcuts import get_object_or_404
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.affiliates.models import AffiliateMarketer, AffiliateSale
from apps.authentication.permissions import IsAdminOrSeller

from .models import Settlement
from .serializers import AffiliateSaleSerializer, CreateSettlementSerializer, SettlementSerializer
from .services import approve_sale, cancel_sale, ledger_summary, settle_marketer


class AffiliateSaleViewSet(viewsets.ReadOnlyModelViewSet):
    """Sales credited to the seller's affiliate links."""

    serializer_class = AffiliateSaleSerializer
    permission_classes = [IsAdminOrSeller]
    filterset_fields = ["status", "marketer", "link"]
    ordering_fields = ["created_at", "commission_amount"]

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return AffiliateSale.objects.none()
        return AffiliateSale.objects.select_related("link", "marketer", "order", "order_item").filter(
            link__seller=self.request.user
        )

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        sale = self.get_object()
        try:
            sale = approve_sale(sale)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(sale).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        sale = self.get_object()
        try:
            sale = cancel_sale(sale)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(sale).data)

    @action(detail=False, methods=["get"], url_path=r"summary/(?P<marketer_id>[^/.]+)")
    def summary(self, request, marketer_id=None):
        marketer = get_object_or_404(AffiliateMarketer, id=marketer_id, seller=request.user)
        return Response(ledger_summary(marketer).as_dict())


class SettlementViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = SettlementSerializer
    permission_classes = [IsAdminOrSeller]
    filterset_fields = ["marketer"]

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Settlement.objects.none()
        return Settlement.objects.select_related("marketer").filter(seller=self.request.user)

    def create(self, request, *args, **kwargs):
        serializer = CreateSettlementSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        try:
            settlement = settle_marketer(
                seller=request.user,
                marketer=serializer.validated_data["marketer"],
                reference=serializer.validated_data["reference"],
                notes=serializer.validated_data["notes"],
            )
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(SettlementSerializer(settlement).data, status=status.HTTP_201_CREATED)
