from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import permissions, status, views
from rest_framework.response import Response

from apps.affiliates.models import AffiliateMarketer
from apps.authentication.permissions import IsAdminOrSeller

from .services import affiliate_overview, marketer_analytics, seller_dashboard


class MarketerAnalyticsView(views.APIView):
    """Visible to the owning seller and to the user linked to the marketer."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, marketer_id, *args, **kwargs):
        marketer = get_object_or_404(
            AffiliateMarketer,
            Q(seller=request.user) | Q(user=request.user),
            pk=marketer_id,
        )
        time_range = request.query_params.get("time_range", "30days")
        try:
            data = marketer_analytics(marketer, time_range)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(data)


class SellerDashboardView(views.APIView):
    permission_classes = [IsAdminOrSeller]

    def get(self, request, *args, **kwargs):
        return Response(seller_dashboard(request.user))


class AffiliateOverviewView(views.APIView):
    permission_classes = [IsAdminOrSeller]

    def get(self, request, *args, **kwargs):
        return Response({"links": affiliate_overview(request.user)})
