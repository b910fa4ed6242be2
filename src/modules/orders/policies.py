"""Who may perform which action on an order.

Every lifecycle entry point goes through ``can_transition``; status
preconditions are checked separately by the service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from modules.accounts.constants import Role
from modules.core.exceptions import AccessDenied
from modules.orders.constants import OrderAction

if TYPE_CHECKING:
    from modules.accounts.dtos import Actor
    from modules.orders.models import Order


def _same(a, b) -> bool:
    return a is not None and b is not None and str(a) == str(b)


def _manages_store(actor: Actor, order: Order) -> bool:
    return actor.is_admin or (actor.is_manager and _same(actor.store_id, order.store_id))


def _is_assigned_partner(actor: Actor, order: Order) -> bool:
    return actor.is_delivery_boy and _same(actor.user_id, order.delivery_partner_id)


def _owns_order(actor: Actor, order: Order) -> bool:
    return actor.is_customer and _same(actor.customer_id, order.customer_id)


def can_transition(actor: Actor, order: Order, action: OrderAction | str) -> bool:
    action = OrderAction(action)

    if action == OrderAction.DELETE:
        return actor.role == Role.ADMIN

    if action == OrderAction.CREATE:
        if actor.is_customer:
            return _owns_order(actor, order) and _same(actor.store_id, order.store_id)
        return _manages_store(actor, order)

    if action in (OrderAction.START_DELIVERY, OrderAction.DELIVER):
        return _is_assigned_partner(actor, order) or _manages_store(actor, order)

    if action == OrderAction.VIEW:
        return (
            _manages_store(actor, order)
            or _is_assigned_partner(actor, order)
            or _owns_order(actor, order)
        )

    # assign, cancel, return, edit
    return _manages_store(actor, order)


def ensure_can(actor: Actor, order: Order, action: OrderAction | str) -> None:
    if not can_transition(actor, order, action):
        raise AccessDenied("Access denied to this order.")
