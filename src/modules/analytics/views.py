"""Analytics API views.

Every report accepts ``store``; managers are confined to their own store
and admins see all stores unless they name one.
"""

from __future__ import annotations

from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.accounts.permissions import ActorMixin, IsAdminOrManager
from modules.analytics.dtos import ReportQueryDTO
from modules.analytics.serializers import ReportQuerySerializer
from modules.analytics.services import AnalyticsService
from modules.core.clients import clients
from modules.orders.models import Order


class AnalyticsViewSet(ActorMixin, GenericViewSet):
    queryset = Order.objects.none()
    serializer_class = ReportQuerySerializer
    permission_classes = [IsAdminOrManager]
    pagination_class = None

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = AnalyticsService(cache=clients.cache)

    def _query(self, request: Request) -> ReportQueryDTO:
        serializer = ReportQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        if "store" in data:
            data["store_id"] = data.pop("store")
        if "delivery_partner" in data:
            data["delivery_partner_id"] = data.pop("delivery_partner")
        return ReportQueryDTO(**data)

    @action(detail=False, methods=["get"])
    def dashboard(self, request: Request) -> Response:
        """GET /api/v1/analytics/dashboard/"""
        return Response(self._service.dashboard(self.actor, self._query(request)))

    @action(detail=False, methods=["get"], url_path="daily-sales")
    def daily_sales(self, request: Request) -> Response:
        """GET /api/v1/analytics/daily-sales/"""
        return Response(self._service.daily_sales(self.actor, self._query(request)))

    @action(detail=False, methods=["get"], url_path="weekly-sales")
    def weekly_sales(self, request: Request) -> Response:
        return Response(self._service.weekly_sales(self.actor, self._query(request)))

    @action(detail=False, methods=["get"], url_path="delivery-performance")
    def delivery_performance(self, request: Request) -> Response:
        return Response(
            self._service.delivery_performance(self.actor, self._query(request))
        )

    @action(detail=False, methods=["get"], url_path="top-customers")
    def top_customers(self, request: Request) -> Response:
        return Response(self._service.top_customers(self.actor, self._query(request)))

    @action(detail=False, methods=["get"], url_path="payment-methods")
    def payment_methods(self, request: Request) -> Response:
        return Response(self._service.payment_methods(self.actor, self._query(request)))

    @action(detail=False, methods=["get"], url_path="order-sources")
    def order_sources(self, request: Request) -> Response:
        return Response(self._service.order_sources(self.actor, self._query(request)))
