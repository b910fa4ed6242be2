"""Order domain exceptions.

Raised by the Service Layer when business rules are violated and rendered
by the project exception handler.
"""

from __future__ import annotations

from typing import Iterable

from modules.core.exceptions import ConflictingState, InvalidAmount, NotFound


class OrderNotFound(NotFound):
    default_detail = "Order not found."


class InvalidTransition(ConflictingState):
    """The order is not in a status the requested action starts from."""

    def __init__(self, action: str, current: str, required: Iterable[str]) -> None:
        self.current = current
        self.required = sorted(required)
        super().__init__(
            f"Cannot {action.replace('_', ' ')} an order in status {current}; "
            f"requires {' or '.join(self.required)}.",
            code="invalid_transition",
            attr="status",
        )


class DeliveryPartnerNotFound(NotFound):
    """Unknown, inactive, wrong role or from another store."""

    default_detail = "Delivery partner not found or not available for this store."


class RefundExceedsInvoice(InvalidAmount):
    default_detail = "Refund amount cannot exceed the invoice amount."
