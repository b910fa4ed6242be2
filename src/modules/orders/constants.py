"""Order domain constants.

Defines the status, payment and source choices, the lifecycle actions and
the status each action may start from.
"""

from enum import StrEnum

from django.db import models


class OrderStatus(models.TextChoices):
    CREATED = "CREATED", "Created"
    ASSIGNED = "ASSIGNED", "Assigned"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY", "Out for delivery"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"
    RETURNED = "RETURNED", "Returned"
    PARTIAL_RETURNED = "PARTIAL_RETURNED", "Partially returned"


class PaymentMethod(models.TextChoices):
    CASH = "CASH", "Cash"
    CARD = "CARD", "Card"
    UPI = "UPI", "UPI"
    CUSTOMER_CREDIT = "CUSTOMER_CREDIT", "Customer credit"


class ClearanceMethod(models.TextChoices):
    """Methods accepted when a customer pays off dues."""

    CASH = "CASH", "Cash"
    CARD = "CARD", "Card"
    UPI = "UPI", "UPI"


class PaymentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PAID = "PAID", "Paid"
    REFUNDED = "REFUNDED", "Refunded"


class OrderSource(models.TextChoices):
    ONLINE = "ONLINE", "Online"
    WALK_IN = "WALK_IN", "Walk-in"
    CALL_WHATSAPP = "CALL_WHATSAPP", "Call / WhatsApp"


class ReturnType(models.TextChoices):
    FULL = "FULL", "Full"
    PARTIAL = "PARTIAL", "Partial"


class OrderAction(StrEnum):
    CREATE = "create"
    ASSIGN = "assign"
    START_DELIVERY = "start_delivery"
    DELIVER = "deliver"
    CANCEL = "cancel"
    RETURN = "return"
    EDIT = "edit"
    DELETE = "delete"
    VIEW = "view"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.CREATED: {OrderStatus.ASSIGNED, OrderStatus.CANCELLED},
    OrderStatus.ASSIGNED: {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED},
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED, OrderStatus.PARTIAL_RETURNED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.RETURNED: set(),
    OrderStatus.PARTIAL_RETURNED: set(),
}

# Status an order must be in for each action.
ACTION_SOURCE_STATES: dict[str, frozenset[str]] = {
    OrderAction.ASSIGN: frozenset({OrderStatus.CREATED}),
    OrderAction.START_DELIVERY: frozenset({OrderStatus.ASSIGNED}),
    OrderAction.DELIVER: frozenset({OrderStatus.OUT_FOR_DELIVERY}),
    OrderAction.CANCEL: frozenset({OrderStatus.CREATED, OrderStatus.ASSIGNED}),
    OrderAction.RETURN: frozenset({OrderStatus.DELIVERED}),
    OrderAction.EDIT: frozenset(
        {OrderStatus.CREATED, OrderStatus.ASSIGNED, OrderStatus.OUT_FOR_DELIVERY}
    ),
    OrderAction.DELETE: frozenset({OrderStatus.CANCELLED}),
}

# Terminal with respect to forward progress.
TERMINAL_STATES: frozenset[str] = frozenset(
    {
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
        OrderStatus.RETURNED,
        OrderStatus.PARTIAL_RETURNED,
    }
)

ACTIVE_STATUSES: frozenset[str] = frozenset(
    {OrderStatus.CREATED, OrderStatus.ASSIGNED, OrderStatus.OUT_FOR_DELIVERY}
)

IN_DELIVERY_STATUSES: frozenset[str] = frozenset(
    {OrderStatus.ASSIGNED, OrderStatus.OUT_FOR_DELIVERY}
)

# Orders whose invoice counts towards gross sales.
SALES_STATUSES: frozenset[str] = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.RETURNED, OrderStatus.PARTIAL_RETURNED}
)

ORDER_NUMBER_MAX_RETRIES = 5


class OrderEvent(StrEnum):
    CREATED = "order-created"
    UPDATED = "order-updated"
    ASSIGNED = "order-assigned"
    OUT_FOR_DELIVERY = "order-out-for-delivery"
    DELIVERED = "order-delivered"
    CANCELLED = "order-cancelled"
    RETURNED = "order-returned"
