"""Customer domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import ConflictingState, NotFound


class CustomerNotFound(NotFound):
    default_detail = "Customer not found."


class CustomerHasOrders(ConflictingState):
    """A customer with order history cannot be deleted."""

    default_detail = "Customer has orders and cannot be deleted."
