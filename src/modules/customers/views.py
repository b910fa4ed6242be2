"""Customer API views.

Exposes ``CustomerService`` over HTTP.  Domain errors propagate to the
project exception handler.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.accounts.permissions import ActorMixin, IsAdmin, IsAdminOrManager, IsStaffMember
from modules.accounts.repositories.django_repository import UserDjangoRepository
from modules.core.clients import clients
from modules.customers.dtos import ClearDuesDTO, CreateCustomerDTO, UpdateCustomerDTO
from modules.customers.filters import CustomerFilter
from modules.customers.models import Customer
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.customers.serializers import (
    ClearDuesSerializer,
    CreateCustomerSerializer,
    CustomerDetailSerializer,
    CustomerSerializer,
    DueClearanceSerializer,
    UpdateCustomerSerializer,
)
from modules.customers.services import CustomerService
from modules.stores.repositories.django_repository import StoreDjangoRepository


class CustomerViewSet(ActorMixin, GenericViewSet):
    """Customers of the actor's store, or of every store for admins.

    ``?search=`` matches name, phone and email.
    """

    queryset = Customer.objects.none()
    serializer_class = CustomerSerializer
    filterset_class = CustomerFilter
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    search_fields = ["user__name", "user__phone", "user__email"]
    ordering_fields = ["created_at", "total_dues", "total_sales", "total_orders"]
    ordering = ["-created_at", "-id"]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CustomerService(
            customer_repository=CustomerDjangoRepository(),
            user_repository=UserDjangoRepository(),
            store_repository=StoreDjangoRepository(),
            cache=clients.cache,
        )

    def get_permissions(self):
        if self.action == "list":
            return [IsStaffMember()]
        if self.action == "retrieve":
            return [IsAuthenticated()]
        if self.action == "destroy":
            return [IsAdmin()]
        return [IsAdminOrManager()]

    def list(self, request: Request) -> Response:
        """GET /api/v1/customers/?store=<id>&search=<text>"""
        queryset = self._service.list_customers(
            self.actor, store_id=request.query_params.get("store") or None
        )
        page = self.paginate_queryset(self.filter_queryset(queryset))
        return self.get_paginated_response(CustomerSerializer(page, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/customers/{pk}/"""
        customer = self._service.get_customer(self.actor, pk)
        return Response(CustomerDetailSerializer(customer).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/customers/"""
        serializer = CreateCustomerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        customer = self._service.create_customer(
            self.actor, CreateCustomerDTO(**serializer.validated_data)
        )
        return Response(CustomerSerializer(customer).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/customers/{pk}/"""
        serializer = UpdateCustomerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        customer = self._service.update_customer(
            self.actor, pk, UpdateCustomerDTO(**serializer.validated_data)
        )
        return Response(CustomerSerializer(customer).data)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/customers/{pk}/"""
        return self.partial_update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/customers/{pk}/"""
        self._service.delete_customer(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="clear-dues")
    def clear_dues(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/customers/{pk}/clear-dues/"""
        serializer = ClearDuesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        customer, clearance = self._service.clear_dues(
            self.actor,
            pk,
            ClearDuesDTO(**serializer.validated_data),
            cleared_by=request.user,
        )
        return Response(
            {
                "customer": CustomerSerializer(customer).data,
                "clearance": DueClearanceSerializer(clearance).data,
            },
            status=status.HTTP_201_CREATED,
        )
