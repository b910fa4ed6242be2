"""Order repository interface.

Extends ``IRepository[Order]`` with the writes the lifecycle needs: order
creation with items, item replacement, delivery records and returns.
The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Delivery, Order, Return


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes ``OrderItem``, ``Delivery`` and ``Return``
    children.
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with its relations loaded."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Fetch and row-lock an order inside the current transaction."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Order]":
        """List orders with optional filters."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items.

        ``data`` holds the order fields plus ``items``: a list of dicts with
        ``description`` and ``quantity``.
        """

    @abstractmethod
    def replace_items(self, order: Order, items: List[Dict[str, Any]]) -> None:
        """Delete the order's items and insert ``items`` in their place."""

    @abstractmethod
    def create_delivery(
        self, order: Order, delivery_partner_id: Any, assigned_at: datetime
    ) -> Delivery:
        """Open the delivery record of an assignment."""

    @abstractmethod
    def current_delivery(self, order: Order) -> Optional[Delivery]:
        """The most recent delivery record of ``order``, row-locked."""

    @abstractmethod
    def add_return(self, order: Order, **fields: Any) -> Return:
        """Record a refund against ``order``."""

    @abstractmethod
    def list_returns(self, order: Order) -> "models.QuerySet[Return]":
        """Returns of ``order``, newest first."""

    @abstractmethod
    def delete(self, order: Order) -> None:
        """Delete the order together with its items and delivery records."""
