"""Django ORM implementation of the Customer repository.

Methods return ``None`` for missing or malformed IDs; the Service Layer
decides how to translate a missing entity into an error.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models

from modules.accounts.models import User
from modules.customers.models import Customer, DueClearance
from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerDjangoRepository(ICustomerRepository):
    """Concrete Customer repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Customer]:
        try:
            return (
                Customer.objects.select_related("user", "store").filter(id=id).first()
            )
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Customer]:
        try:
            return Customer.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Customer]":
        """List customers with optional Django ORM look-ups.

        Examples of valid filters::

            {"store_id": store.id}
            {"user__name__icontains": "asha"}
        """
        queryset = Customer.objects.select_related("user", "store")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def save(self, entity: Customer) -> Customer:
        is_new = entity._state.adding
        entity.save()
        logger.info("customer.saved", customer_id=str(entity.id), is_new=is_new)
        return entity

    def create_profile(
        self, user: User, store_id: Any, apartment: str = "", address: str = ""
    ) -> Customer:
        customer = Customer.objects.create(
            user=user, store_id=store_id, apartment=apartment, address=address
        )
        logger.info("customer.profile_created", customer_id=str(customer.id))
        return customer

    def add_clearance(self, customer: Customer, **fields: Any) -> DueClearance:
        if fields.get("cleared_date") is None:
            fields.pop("cleared_date", None)
        return DueClearance.objects.create(customer=customer, **fields)

    def order_count(self, id: str) -> int:
        from modules.orders.models import Order

        return Order.objects.filter(customer_id=id).count()
