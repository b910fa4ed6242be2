"""Django ORM implementation of the Store repository."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Count, DecimalField, OuterRef, Q, Subquery, Sum, Value
from django.db.models.functions import Coalesce

from modules.accounts.constants import Role
from modules.stores.models import Store
from modules.stores.repositories.interfaces import IStoreRepository

logger = structlog.get_logger(__name__)


class StoreDjangoRepository(IStoreRepository):
    def get_by_id(self, id: str) -> Optional[Store]:
        try:
            return Store.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Store]":
        queryset = Store.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list_with_stats(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Store]":
        """Counts use subqueries so the joins cannot multiply each other."""
        from modules.orders.constants import SALES_STATUSES
        from modules.orders.models import Order

        sales = (
            Order.objects.filter(store=OuterRef("pk"), status__in=SALES_STATUSES)
            .order_by()
            .values("store")
            .annotate(total=Sum("invoice_amount"))
            .values("total")
        )
        orders = (
            Order.objects.filter(store=OuterRef("pk"))
            .order_by()
            .values("store")
            .annotate(total=Count("id"))
            .values("total")
        )
        money = DecimalField(max_digits=12, decimal_places=2)
        return self.list(filters).annotate(
            manager_count=Count(
                "staff",
                filter=Q(staff__role=Role.STORE_MANAGER, staff__is_active=True),
                distinct=True,
            ),
            delivery_boy_count=Count(
                "staff",
                filter=Q(staff__role=Role.DELIVERY_BOY, staff__is_active=True),
                distinct=True,
            ),
            order_count=Coalesce(Subquery(orders), Value(0)),
            total_sales=Coalesce(
                Subquery(sales, output_field=money),
                Value(Decimal("0.00")),
                output_field=money,
            ),
        )

    def save(self, entity: Store) -> Store:
        entity.save()
        logger.info("store.saved", store_id=str(entity.id))
        return entity

    def active_order_count(self, id: str) -> int:
        from modules.orders.constants import ACTIVE_STATUSES
        from modules.orders.models import Order

        return Order.objects.filter(store_id=id, status__in=ACTIVE_STATUSES).count()
