"""User repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.accounts.models import User


class IUserRepository(IRepository["User"]):
    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[User]":
        """List users with optional filters."""

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        """Retrieve a user by (case-insensitive) email."""

    @abstractmethod
    def create_user(self, password: str, **fields: Any) -> User:
        """Create a user with a hashed password."""

    @abstractmethod
    def with_delivery_stats(self, id: str) -> Optional[User]:
        """Retrieve a user annotated with delivery counts and average time."""

    @abstractmethod
    def pending_delivery_count(self, id: str) -> int:
        """Deliveries assigned to the user that are not yet delivered."""

    @abstractmethod
    def active_delivery_boys(self, store_id: str) -> "models.QuerySet[User]":
        """Active delivery partners of a store."""
