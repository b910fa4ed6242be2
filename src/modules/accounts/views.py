"""Account API views: authentication and staff administration.

Domain errors propagate to the project exception handler, which renders
them in the standard error format.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.accounts.dtos import CreateStaffDTO, RegisterUserDTO, UpdateStaffDTO
from modules.accounts.models import User
from modules.accounts.permissions import ActorMixin, IsAdmin, IsAdminOrManager, IsStaffMember
from modules.accounts.repositories.django_repository import UserDjangoRepository
from modules.accounts.serializers import (
    ChangePasswordSerializer,
    CreateStaffSerializer,
    LoginSerializer,
    RegisterSerializer,
    ResetPasswordSerializer,
    StaffDetailSerializer,
    UpdateStaffSerializer,
    UserSerializer,
)
from modules.accounts.services import AuthService, StaffService
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.stores.repositories.django_repository import StoreDjangoRepository


class AuthViewSet(GenericViewSet):
    """Login, logout, current user, password change and registration."""

    queryset = User.objects.none()
    serializer_class = UserSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = AuthService(
            user_repository=UserDjangoRepository(),
            store_repository=StoreDjangoRepository(),
            customer_repository=CustomerDjangoRepository(),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        if self.action == "login":
            self.throttle_scope = "login"
        return super().get_throttles()

    @action(
        detail=False,
        methods=["post"],
        permission_classes=[AllowAny],
        authentication_classes=[],
    )
    def login(self, request: Request) -> Response:
        """POST /api/v1/auth/login"""
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user, token = self._service.login(
            serializer.validated_data["email"], serializer.validated_data["password"]
        )
        return Response({"token": token, "user": UserSerializer(user).data})

    @action(detail=False, methods=["post"])
    def logout(self, request: Request) -> Response:
        """POST /api/v1/auth/logout"""
        if request.auth is not None:
            self._service.logout(request.auth)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"])
    def me(self, request: Request) -> Response:
        """GET /api/v1/auth/me"""
        return Response(UserSerializer(request.user).data)

    @action(detail=False, methods=["post"], url_path="change-password")
    def change_password(self, request: Request) -> Response:
        """POST /api/v1/auth/change-password"""
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self._service.change_password(
            request.user,
            serializer.validated_data["current_password"],
            serializer.validated_data["new_password"],
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["post"], permission_classes=[IsAdmin])
    def register(self, request: Request) -> Response:
        """POST /api/v1/auth/register (admin)"""
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = self._service.register(RegisterUserDTO(**serializer.validated_data))
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


class StaffViewSet(ActorMixin, GenericViewSet):
    """Staff administration.

    Listing is open to managers (own store only); everything else is admin
    only, except the delivery-partner lookup used when assigning orders.
    """

    queryset = User.objects.none()
    serializer_class = UserSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = StaffService(
            user_repository=UserDjangoRepository(),
            store_repository=StoreDjangoRepository(),
        )

    def get_permissions(self):
        if self.action == "list":
            return [IsAdminOrManager()]
        if self.action == "store_delivery_boys":
            return [IsStaffMember()]
        return [IsAdmin()]

    def list(self, request: Request) -> Response:
        """GET /api/v1/staff/?store=<id>&role=<role>"""
        queryset = self._service.list_staff(
            self.actor,
            store_id=request.query_params.get("store") or None,
            role=request.query_params.get("role") or None,
        )
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(UserSerializer(page, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/staff/{pk}/"""
        return Response(StaffDetailSerializer(self._service.get_staff(pk)).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/staff/"""
        serializer = CreateStaffSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = self._service.create_staff(CreateStaffDTO(**serializer.validated_data))
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/staff/{pk}/"""
        serializer = UpdateStaffSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = self._service.update_staff(pk, UpdateStaffDTO(**serializer.validated_data))
        return Response(UserSerializer(user).data)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/staff/{pk}/"""
        return self.partial_update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/staff/{pk}/ (deactivates)."""
        self._service.deactivate_staff(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="reset-password")
    def reset_password(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/staff/{pk}/reset-password/"""
        serializer = ResetPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self._service.reset_password(pk, serializer.validated_data["password"])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(
        detail=False,
        methods=["get"],
        url_path=r"delivery-boys/(?P<store_id>[^/.]+)",
    )
    def store_delivery_boys(self, request: Request, store_id: str) -> Response:
        """GET /api/v1/staff/delivery-boys/{store_id}/"""
        queryset = self._service.delivery_boys(self.actor, store_id)
        return Response(UserSerializer(queryset, many=True).data)
