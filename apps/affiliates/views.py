import ipaddress
import logging
from uuid import UUID

from django.conf import settings
from django.http import HttpRequest, HttpResponse
from django.shortcuts import redirect
from rest_framework import status, viewsets
from rest_framework.response import Response

from apps.authentication.permissions import IsAdminOrSeller

from .models import AffiliateLink, AffiliateMarketer
from .serializers import AffiliateLinkSerializer, AffiliateMarketerSerializer
from .services import create_link, landing_url, record_click, update_link

logger = logging.getLogger(__name__)


class AffiliateMarketerViewSet(viewsets.ModelViewSet):
    queryset = AffiliateMarketer.objects.select_related("user").all()
    serializer_class = AffiliateMarketerSerializer
    permission_classes = [IsAdminOrSeller]
    filterset_fields = ["is_active"]
    search_fields = ["name", "email", "phone"]
    ordering_fields = ["created_at", "total_sales", "total_commission"]

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return self.queryset.none()
        return self.queryset.filter(seller=self.request.user)

    def perform_create(self, serializer):
        serializer.save(seller=self.request.user)

    def perform_destroy(self, instance: AffiliateMarketer):
        detached = instance.links.update(marketer=None)
        logger.info("Marketer %s deleted; %d link(s) detached", instance.id, detached)
        instance.delete()


class AffiliateLinkViewSet(viewsets.ModelViewSet):
    queryset = AffiliateLink.objects.select_related("product", "store", "marketer").all()
    serializer_class = AffiliateLinkSerializer
    permission_classes = [IsAdminOrSeller]
    filterset_fields = ["apply_to", "is_active", "marketer", "product", "store"]
    search_fields = ["code", "description"]
    ordering_fields = ["created_at", "click_count", "sale_count", "total_commission"]

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return self.queryset.none()
        return self.queryset.filter(seller=self.request.user)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            link = create_link(request.user, dict(serializer.validated_data))
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(link).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        link = self.get_object()
        serializer = self.get_serializer(link, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        try:
            link = update_link(link, dict(serializer.validated_data))
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(link).data)

    def perform_destroy(self, instance: AffiliateLink):
        # Sales are kept for the ledger, so a link with sales is only deactivated.
        if instance.sales.exists():
            instance.is_active = False
            instance.save(update_fields=["is_active"])
            return
        instance.delete()


def _marketplace_url() -> str:
    return f"{settings.FRONTEND_BASE_URL.rstrip('/')}/marketplace"


def _valid_ip(value: str | None) -> str | None:
    try:
        return str(ipaddress.ip_address((value or "").strip()))
    except ValueError:
        return None


def _client_ip(request: HttpRequest) -> str | None:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    return _valid_ip(forwarded.split(",")[0]) or _valid_ip(request.META.get("REMOTE_ADDR"))


def handle_affiliate_click(request: HttpRequest, seller_id: UUID, code: str) -> HttpResponse:
    link = (
        AffiliateLink.objects.select_related("product", "store", "marketer")
        .filter(seller_id=seller_id, code=code.upper())
        .first()
    )
    if link is None:
        logger.info("Unknown affiliate code %s for seller %s", code, seller_id)
        return redirect(_marketplace_url())

    click = record_click(
        link,
        ip_address=_client_ip(request),
        user_agent=request.META.get("HTTP_USER_AGENT", ""),
        referrer_url=request.META.get("HTTP_REFERER", ""),
        landing_page_url=request.build_absolute_uri(),
        visitor_id=request.COOKIES.get(settings.AFFILIATE_COOKIE_NAME),
    )

    response = redirect(landing_url(link))
    if click is None:
        return response

    response.set_cookie(
        settings.AFFILIATE_COOKIE_NAME,
        str(link.id),
        max_age=settings.AFFILIATE_COOKIE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=not settings.DEBUG,
        samesite="Lax",
    )
    return response
