"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  The service
owns the transaction boundary; row locks taken here with
``select_for_update()`` are held until it commits.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Prefetch

from modules.orders.models import Delivery, Order, OrderItem, Return
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def _base_queryset(self) -> "models.QuerySet[Order]":
        return Order.objects.select_related(
            "customer__user", "store", "delivery_partner"
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Returns ``None`` for non-existent or malformed IDs."""
        try:
            return (
                self._base_queryset()
                .prefetch_related(
                    "items",
                    Prefetch(
                        "deliveries",
                        queryset=Delivery.objects.select_related("delivery_partner"),
                    ),
                )
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Order]":
        """List orders with optional Django ORM look-ups.

        Examples of valid filters::

            {"store_id": store.id, "status__in": ["CREATED", "ASSIGNED"]}
            {"created_at__date__gte": date(2024, 1, 1)}
        """
        queryset = self._base_queryset().prefetch_related("items")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list_returns(self, order: Order) -> "models.QuerySet[Return]":
        return order.returns.select_related("processed_by").order_by("-processed_at")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, entity: Order) -> Order:
        entity.save()
        return entity

    def create(self, data: Dict[str, Any]) -> Order:
        items = data.pop("items", [])
        order = Order(**data)
        order.save()
        OrderItem.objects.bulk_create(
            [OrderItem(order=order, **item) for item in items]
        )
        logger.info(
            "order.persisted", order_id=str(order.id), item_count=len(items)
        )
        return order

    def replace_items(self, order: Order, items: List[Dict[str, Any]]) -> None:
        OrderItem.objects.filter(order=order).delete()
        OrderItem.objects.bulk_create(
            [OrderItem(order=order, **item) for item in items]
        )

    def create_delivery(
        self, order: Order, delivery_partner_id: Any, assigned_at: datetime
    ) -> Delivery:
        return Delivery.objects.create(
            order=order,
            delivery_partner_id=delivery_partner_id,
            assigned_at=assigned_at,
        )

    def current_delivery(self, order: Order) -> Optional[Delivery]:
        return (
            Delivery.objects.select_for_update()
            .filter(order=order)
            .order_by("-assigned_at")
            .first()
        )

    def add_return(self, order: Order, **fields: Any) -> Return:
        return Return.objects.create(order=order, **fields)

    def delete(self, order: Order) -> None:
        OrderItem.objects.filter(order=order).delete()
        Delivery.objects.filter(order=order).delete()
        order.delete()
