"""Store API views."""

from __future__ import annotations

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.accounts.permissions import ActorMixin, IsAdmin, IsStaffMember
from modules.stores.dtos import CreateStoreDTO, UpdateStoreDTO
from modules.stores.models import Store
from modules.stores.repositories.django_repository import StoreDjangoRepository
from modules.stores.serializers import (
    CreateStoreSerializer,
    StoreDetailSerializer,
    StoreListSerializer,
    StoreSerializer,
    UpdateStoreSerializer,
)
from modules.stores.services import StoreService


class StoreViewSet(ActorMixin, GenericViewSet):
    """Stores.  Reads are scoped to the actor; writes are admin only."""

    queryset = Store.objects.none()
    serializer_class = StoreSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = StoreService(repository=StoreDjangoRepository())

    def get_permissions(self):
        if self.action in {"list", "retrieve"}:
            return [IsStaffMember()]
        return [IsAdmin()]

    def list(self, request: Request) -> Response:
        """GET /api/v1/stores/"""
        queryset = self._service.list_stores(self.actor)
        page = self.paginate_queryset(queryset)
        serializer = StoreListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/stores/{pk}/"""
        store = self._service.get_store(self.actor, pk)
        return Response(StoreDetailSerializer(store).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/stores/"""
        serializer = CreateStoreSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        store = self._service.create_store(CreateStoreDTO(**serializer.validated_data))
        return Response(StoreSerializer(store).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/stores/{pk}/"""
        serializer = UpdateStoreSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        store = self._service.update_store(pk, UpdateStoreDTO(**serializer.validated_data))
        return Response(StoreSerializer(store).data)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/stores/{pk}/"""
        return self.partial_update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/stores/{pk}/ (deactivates)."""
        self._service.deactivate_store(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
