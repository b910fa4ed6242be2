"""Store repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.stores.models import Store


class IStoreRepository(IRepository["Store"]):
    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Store]":
        """List stores with optional filters."""

    @abstractmethod
    def list_with_stats(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Store]":
        """Stores annotated with staff counts, order count and delivered sales."""

    @abstractmethod
    def active_order_count(self, id: str) -> int:
        """Orders of the store that have not reached a terminal status."""
