"""Order API views.

Exposes ``OrderService`` via HTTP using DRF ViewSets.  Authorisation is
decided per order by the lifecycle policy; domain errors propagate to the
project exception handler.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.accounts.permissions import ActorMixin
from modules.accounts.repositories.django_repository import UserDjangoRepository
from modules.core.clients import clients
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.dtos import (
    AssignOrderDTO,
    CancelOrderDTO,
    CreateOrderDTO,
    DeliverOrderDTO,
    EditOrderDTO,
    OrderQueryDTO,
    ReturnOrderDTO,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    AssignOrderSerializer,
    CancelOrderSerializer,
    CreateOrderSerializer,
    DeliverOrderSerializer,
    EditOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    ReturnOrderSerializer,
    ReturnSerializer,
)
from modules.orders.services import OrderService
from modules.stores.repositories.django_repository import StoreDjangoRepository


class OrderViewSet(ActorMixin, GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories and clients (DIP).
    Does **not** extend ``ModelViewSet``; all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    search_fields = ["order_number", "invoice_number", "customer__user__name"]
    ordering_fields = ["created_at", "invoice_amount", "status", "delivered_at"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            customer_repository=CustomerDjangoRepository(),
            user_repository=UserDjangoRepository(),
            store_repository=StoreDjangoRepository(),
            cache=clients.cache,
            events=clients.events,
        )

    def get_throttles(self) -> list[BaseThrottle]:
        if self.action == "create":
            self.throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            self.throttle_scope = "order_listing"
        return super().get_throttles()

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/?status=CREATED,ASSIGNED&customer=&store=&start_date=&end_date="""
        params = request.query_params
        query = OrderQueryDTO(
            statuses=params.get("status") or [],
            store_id=params.get("store") or None,
            customer_id=params.get("customer") or None,
            start_date=params.get("start_date") or None,
            end_date=params.get("end_date") or None,
        )
        queryset = self.filter_queryset(self._service.list_orders(self.actor, query))
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(OrderListSerializer(page, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(self.actor, pk)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["get"])
    def returns(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/returns/"""
        returns = self._service.list_returns(self.actor, pk)
        return Response(ReturnSerializer(returns, many=True).data)

    # ------------------------------------------------------------------
    # Create / Edit / Delete
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.create_order(
            self.actor, CreateOrderDTO(**serializer.validated_data)
        )
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/"""
        serializer = EditOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.edit_order(
            self.actor, pk, EditOrderDTO(**serializer.validated_data)
        )
        return Response(OrderSerializer(order).data)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/"""
        return self.partial_update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/ (cancelled orders only)"""
        self._service.delete_order(self.actor, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------------
    # Lifecycle transitions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def assign(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/assign/"""
        serializer = AssignOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.assign(
            self.actor, pk, AssignOrderDTO(**serializer.validated_data)
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="out-for-delivery")
    def out_for_delivery(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/out-for-delivery/"""
        order = self._service.start_delivery(self.actor, pk)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def deliver(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/deliver/"""
        serializer = DeliverOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.deliver(
            self.actor, pk, DeliverOrderDTO(**serializer.validated_data)
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/"""
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.cancel(
            self.actor, pk, CancelOrderDTO(**serializer.validated_data)
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="return")
    def return_order(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/return/"""
        serializer = ReturnOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.process_return(
            self.actor,
            pk,
            ReturnOrderDTO(**serializer.validated_data),
            processed_by=request.user,
        )
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)
