"""Customer service layer (Use Cases).

Business rules enforced here:
- A customer is a ``User`` with role ``CUSTOMER`` plus a profile, created
  in one transaction.
- Email stays unique across all users.
- Clearing dues records the payment and lowers ``total_dues``, clamped at
  zero, under a row lock.
- Customers with order history cannot be deleted.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.db import transaction

from modules.accounts.constants import Role
from modules.accounts.exceptions import EmailAlreadyRegistered
from modules.accounts.permissions import ensure_store_access, resolve_store_scope
from modules.core.exceptions import AccessDenied, NotFound, ValidationFailed
from modules.core.hooks import run_after_commit
from modules.customers.exceptions import CustomerHasOrders, CustomerNotFound

if TYPE_CHECKING:
    from modules.accounts.dtos import Actor
    from modules.accounts.repositories.interfaces import IUserRepository
    from modules.core.cache import ReportCache
    from modules.customers.dtos import (
        ClearDuesDTO,
        CreateCustomerDTO,
        UpdateCustomerDTO,
    )
    from modules.customers.models import Customer, DueClearance
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.stores.repositories.interfaces import IStoreRepository

logger = structlog.get_logger(__name__)

RECENT_ACTIVITY_LIMIT = 10


class CustomerService:
    """Application service for Customer use-cases.

    Receives its repositories and the report cache via constructor injection.
    """

    def __init__(
        self,
        customer_repository: ICustomerRepository,
        user_repository: IUserRepository,
        store_repository: IStoreRepository,
        cache: Optional[ReportCache] = None,
    ) -> None:
        self._repo = customer_repository
        self._users = user_repository
        self._stores = store_repository
        self._cache = cache

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_customers(self, actor: Actor, store_id: Optional[str] = None):
        """Customers visible to ``actor``, newest first."""
        if actor.is_customer:
            raise AccessDenied()
        scope = resolve_store_scope(actor, store_id)
        filters: Dict[str, Any] = {}
        if scope is not None:
            filters["store_id"] = scope
        return self._repo.list(filters)

    def get_customer(self, actor: Actor, id: str) -> Customer:
        """A customer with ``recent_orders`` and ``recent_clearances`` attached.

        Customers may only read their own profile.
        """
        customer = self._repo.get_by_id(id)
        if not customer:
            raise CustomerNotFound()
        if actor.is_customer:
            if str(actor.customer_id) != str(customer.id):
                raise AccessDenied("Access denied to this customer.")
        else:
            ensure_store_access(actor, customer.store_id)

        customer.recent_orders = list(
            customer.orders.order_by("-created_at")[:RECENT_ACTIVITY_LIMIT]
        )
        customer.recent_clearances = list(
            customer.due_clearances.select_related("created_by").order_by(
                "-cleared_date"
            )[:RECENT_ACTIVITY_LIMIT]
        )
        return customer

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_customer(self, actor: Actor, dto: CreateCustomerDTO) -> Customer:
        """Create the user account and the profile together.

        Managers always create into their own store.
        """
        log = logger.bind(email=dto.email)
        store_id = resolve_store_scope(actor, dto.store_id)
        if store_id is None:
            raise ValidationFailed("Store is required.", attr="store_id")
        if not self._stores.get_by_id(str(store_id)):
            raise NotFound("Store not found.", attr="store_id")
        if self._users.get_by_email(dto.email):
            log.warning("customer.duplicate_email")
            raise EmailAlreadyRegistered(attr="email")

        user = self._users.create_user(
            dto.password,
            email=dto.email,
            name=dto.name,
            phone=dto.phone,
            role=Role.CUSTOMER,
            store_id=store_id,
        )
        customer = self._repo.create_profile(
            user=user,
            store_id=store_id,
            apartment=dto.apartment,
            address=dto.address,
        )
        log.info("customer.created", customer_id=str(customer.id))
        return customer

    @transaction.atomic
    def update_customer(
        self, actor: Actor, id: str, dto: UpdateCustomerDTO
    ) -> Customer:
        customer = self._repo.get_by_id(id)
        if not customer:
            raise CustomerNotFound()
        ensure_store_access(actor, customer.store_id)
        log = logger.bind(customer_id=str(customer.id))

        user = customer.user
        if dto.email is not None and dto.email != user.email:
            existing = self._users.get_by_email(dto.email)
            if existing and existing.pk != user.pk:
                log.warning("customer.duplicate_email")
                raise EmailAlreadyRegistered(attr="email")

        for field in ("name", "phone", "email"):
            value = getattr(dto, field)
            if value is not None:
                setattr(user, field, value)
        for field in ("apartment", "address"):
            value = getattr(dto, field)
            if value is not None:
                setattr(customer, field, value)

        self._users.save(user)
        customer = self._repo.save(customer)
        log.info("customer.updated")
        return customer

    @transaction.atomic
    def clear_dues(
        self, actor: Actor, id: str, dto: ClearDuesDTO, cleared_by: Any = None
    ) -> tuple[Customer, DueClearance]:
        """Record a dues payment and lower the balance, never below zero."""
        customer = self._repo.get_for_update(id)
        if not customer:
            raise CustomerNotFound()
        ensure_store_access(actor, customer.store_id)
        log = logger.bind(customer_id=str(customer.id), amount=str(dto.amount))

        clearance = self._repo.add_clearance(
            customer,
            amount=dto.amount,
            payment_method=dto.payment_method,
            cleared_date=dto.cleared_date,
            notes=dto.notes,
            created_by=cleared_by,
        )
        previous = customer.total_dues
        customer.total_dues = max(Decimal("0.00"), previous - dto.amount)
        customer.save(update_fields=["total_dues", "updated_at"])

        store_id = customer.store_id
        if self._cache is not None:
            cache = self._cache

            def invalidate_reports() -> None:
                cache.invalidate_store(store_id)

            run_after_commit(invalidate_reports)
        log.info(
            "customer.dues_cleared",
            previous_dues=str(previous),
            total_dues=str(customer.total_dues),
        )
        return customer, clearance

    @transaction.atomic
    def delete_customer(self, id: str) -> None:
        """Delete the customer and their login.  Refused once orders exist."""
        customer = self._repo.get_by_id(id)
        if not customer:
            raise CustomerNotFound()
        log = logger.bind(customer_id=str(customer.id))
        if self._repo.order_count(id):
            log.warning("customer.delete_refused")
            raise CustomerHasOrders()
        customer.user.delete()
        log.info("customer.deleted")
