"""Customer repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.accounts.models import User
    from modules.customers.models import Customer, DueClearance


class ICustomerRepository(IRepository["Customer"]):
    """Repository contract for the Customer aggregate."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Customer]":
        """List customers with optional filters."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Customer]:
        """Fetch and row-lock a customer inside the current transaction."""

    @abstractmethod
    def create_profile(
        self, user: User, store_id: Any, apartment: str = "", address: str = ""
    ) -> Customer:
        """Create the profile of a freshly created customer user."""

    @abstractmethod
    def add_clearance(self, customer: Customer, **fields: Any) -> DueClearance:
        """Record a dues payment."""

    @abstractmethod
    def order_count(self, id: str) -> int:
        """Number of orders placed by the customer, in any status."""
