"""Store service layer."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from django.db import transaction

from modules.accounts.permissions import ensure_store_access, resolve_store_scope
from modules.stores.exceptions import StoreHasActiveOrders, StoreNotFound
from modules.stores.models import Store

if TYPE_CHECKING:
    from modules.accounts.dtos import Actor
    from modules.stores.dtos import CreateStoreDTO, UpdateStoreDTO
    from modules.stores.repositories.interfaces import IStoreRepository

logger = structlog.get_logger(__name__)


class StoreService:
    def __init__(self, repository: IStoreRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_stores(self, actor: Actor):
        """Admins see every store, everyone else only their own."""
        scope = resolve_store_scope(actor)
        filters = {"id": scope} if scope is not None else None
        return self._repo.list_with_stats(filters).order_by("name")

    def get_store(self, actor: Actor, id: str) -> Store:
        ensure_store_access(actor, id)
        if self._repo.get_by_id(id) is None:
            raise StoreNotFound()
        return self._repo.list_with_stats({"id": id}).first()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_store(self, dto: CreateStoreDTO) -> Store:
        store = self._repo.save(
            Store(name=dto.name, address=dto.address, phone=dto.phone)
        )
        logger.info("store.created", store_id=str(store.id))
        return store

    @transaction.atomic
    def update_store(self, id: str, dto: UpdateStoreDTO) -> Store:
        store = self._repo.get_by_id(id)
        if store is None:
            raise StoreNotFound()
        for field in ("name", "address", "phone", "is_active"):
            value = getattr(dto, field)
            if value is not None:
                setattr(store, field, value)
        self._repo.save(store)
        logger.info("store.updated", store_id=str(store.id))
        return store

    @transaction.atomic
    def deactivate_store(self, id: str) -> None:
        """Soft delete: refused while the store has orders in flight."""
        store = self._repo.get_by_id(id)
        if store is None:
            raise StoreNotFound()
        log = logger.bind(store_id=str(store.id))
        active = self._repo.active_order_count(id)
        if active:
            log.warning("store.deactivate_refused", active_orders=active)
            raise StoreHasActiveOrders(
                f"Store has {active} active order(s); complete or cancel them first."
            )
        store.is_active = False
        self._repo.save(store)
        log.info("store.deactivated")
