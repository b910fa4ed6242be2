"""Django ORM implementation of the User repository."""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Avg, Count, Q

from modules.accounts.constants import Role
from modules.accounts.models import User
from modules.accounts.repositories.interfaces import IUserRepository

logger = structlog.get_logger(__name__)


class UserDjangoRepository(IUserRepository):
    def get_by_id(self, id: str) -> Optional[User]:
        try:
            return User.objects.select_related("store").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[User]":
        queryset = User.objects.select_related("store")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def save(self, entity: User) -> User:
        entity.save()
        logger.info("user.saved", user_id=str(entity.id))
        return entity

    def get_by_email(self, email: str) -> Optional[User]:
        return User.objects.filter(email__iexact=email).first()

    def create_user(self, password: str, **fields: Any) -> User:
        email = fields.pop("email")
        user = User.objects.create_user(email, password, **fields)
        logger.info("user.created", user_id=str(user.id), role=user.role)
        return user

    def with_delivery_stats(self, id: str) -> Optional[User]:
        from modules.orders.constants import IN_DELIVERY_STATUSES

        try:
            return (
                User.objects.select_related("store")
                .annotate(
                    total_deliveries=Count("deliveries", distinct=True),
                    completed_deliveries=Count(
                        "deliveries",
                        filter=Q(deliveries__delivered_at__isnull=False),
                        distinct=True,
                    ),
                    pending_deliveries=Count(
                        "deliveries",
                        filter=Q(deliveries__order__status__in=IN_DELIVERY_STATUSES),
                        distinct=True,
                    ),
                    avg_delivery_minutes=Avg("deliveries__delivery_time_minutes"),
                )
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def pending_delivery_count(self, id: str) -> int:
        from modules.orders.constants import IN_DELIVERY_STATUSES
        from modules.orders.models import Order

        return Order.objects.filter(
            delivery_partner_id=id, status__in=IN_DELIVERY_STATUSES
        ).count()

    def active_delivery_boys(self, store_id: str) -> "models.QuerySet[User]":
        return User.objects.filter(
            role=Role.DELIVERY_BOY, store_id=store_id, is_active=True
        ).order_by("name")
