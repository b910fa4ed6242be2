"""Store domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import ConflictingState, NotFound


class StoreNotFound(NotFound):
    default_detail = "Store not found."


class StoreHasActiveOrders(ConflictingState):
    """A store cannot be deactivated while orders are still in flight."""

    default_detail = "Store has active orders."
