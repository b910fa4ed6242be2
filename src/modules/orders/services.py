"""Order service layer (Use Cases).

Orchestrates the order lifecycle.  Every command runs in one transaction
that row-locks the order (and the customer, when aggregates change), checks
the actor against ``policies.can_transition`` and the current status against
the state machine, applies the change, and registers the cache invalidation
and event publication as post-commit hooks.

Business rules enforced:
- Status only moves along ``VALID_TRANSITIONS``; anything else is a
  ``conflicting_state`` error and leaves the order untouched.
- Assignment needs an active delivery partner of the order's store.
- Delivery on customer credit adds the invoice to the customer's dues.
- Refunds never exceed the invoice; dues reductions clamp at zero.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.db import transaction
from django.utils import timezone

from modules.accounts.constants import Role
from modules.accounts.permissions import ensure_store_access, resolve_store_scope
from modules.core.exceptions import InvalidAmount, NotFound, ValidationFailed
from modules.core.hooks import run_after_commit
from modules.customers.exceptions import CustomerNotFound
from modules.orders.constants import (
    ACTION_SOURCE_STATES,
    OrderAction,
    OrderEvent,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ReturnType,
)
from modules.orders.exceptions import (
    DeliveryPartnerNotFound,
    InvalidTransition,
    OrderNotFound,
    RefundExceedsInvoice,
)
from modules.orders.models import Order
from modules.orders.policies import ensure_can

if TYPE_CHECKING:
    from modules.accounts.dtos import Actor
    from modules.accounts.repositories.interfaces import IUserRepository
    from modules.core.cache import ReportCache
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.orders.dtos import (
        AssignOrderDTO,
        CancelOrderDTO,
        CreateOrderDTO,
        DeliverOrderDTO,
        EditOrderDTO,
        OrderQueryDTO,
        ReturnOrderDTO,
    )
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.realtime.dispatch import EventDispatcher
    from modules.stores.repositories.interfaces import IStoreRepository

logger = structlog.get_logger(__name__)

ZERO = Decimal("0.00")


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def event_payload(order: Order) -> Dict[str, Any]:
    """JSON-safe snapshot of an order for realtime subscribers."""
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "status": order.status,
        "store_id": str(order.store_id),
        "customer_id": str(order.customer_id),
        "source": order.source,
        "invoice_number": order.invoice_number,
        "invoice_amount": str(order.invoice_amount),
        "total_items": order.total_items,
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "delivery_partner_id": (
            str(order.delivery_partner_id) if order.delivery_partner_id else None
        ),
        "assigned_at": _iso(order.assigned_at),
        "out_for_delivery_at": _iso(order.out_for_delivery_at),
        "delivered_at": _iso(order.delivered_at),
        "notes": order.notes,
        "created_at": _iso(order.created_at),
        "updated_at": _iso(order.updated_at),
    }


class OrderService:
    """Application service for the order lifecycle.

    Receives repositories, the report cache and the event dispatcher via
    constructor injection.  ``cache`` and ``events`` may be ``None``, in
    which case the matching side effect is skipped.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        customer_repository: ICustomerRepository,
        user_repository: IUserRepository,
        store_repository: IStoreRepository,
        cache: Optional[ReportCache] = None,
        events: Optional[EventDispatcher] = None,
    ) -> None:
        self._orders = order_repository
        self._customers = customer_repository
        self._users = user_repository
        self._stores = store_repository
        self._cache = cache
        self._events = events

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lock(self, id: str) -> Order:
        order = self._orders.get_for_update(id)
        if not order:
            raise OrderNotFound()
        return order

    def _check_status(
        self, order: Order, action: OrderAction, target: Optional[str] = None
    ) -> None:
        allowed = ACTION_SOURCE_STATES[action]
        ok = order.can_transition_to(target) if target else order.status in allowed
        if not ok:
            logger.warning(
                "order.invalid_transition",
                order_id=str(order.id),
                action=str(action),
                status=order.status,
            )
            raise InvalidTransition(str(action), order.status, allowed)

    def _after_commit(self, order: Order, event: Optional[OrderEvent]) -> None:
        """Invalidate the store's reports and publish ``event`` once committed."""
        store_id = order.store_id
        payload = event_payload(order)
        hooks = []

        if self._cache is not None:
            cache = self._cache

            def invalidate_reports() -> None:
                cache.invalidate_store(store_id)

            hooks.append(invalidate_reports)

        if self._events is not None and event is not None:
            events = self._events

            def publish_event() -> None:
                events.dispatch(str(event), payload, store_id)

            hooks.append(publish_event)

        run_after_commit(*hooks)

    def _reload(self, order: Order) -> Order:
        return self._orders.get_by_id(str(order.id)) or order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_orders(self, actor: Actor, query: OrderQueryDTO):
        """Orders visible to ``actor`` matching ``query``.

        Admins see every store (optionally one), managers their store,
        delivery partners the orders assigned to them and customers their
        own orders.
        """
        filters: Dict[str, Any] = {}
        if actor.is_admin or actor.is_manager:
            scope = resolve_store_scope(actor, query.store_id)
            if scope is not None:
                filters["store_id"] = scope
        elif actor.is_delivery_boy:
            filters["delivery_partner_id"] = actor.user_id
        elif actor.customer_id is not None:
            filters["customer_id"] = actor.customer_id
        else:
            return self._orders.list().none()

        if query.statuses:
            filters["status__in"] = [str(s) for s in query.statuses]
        if query.customer_id and not actor.is_customer:
            filters["customer_id"] = query.customer_id
        if query.start_date:
            filters["created_at__date__gte"] = query.start_date
        if query.end_date:
            filters["created_at__date__lte"] = query.end_date
        return self._orders.list(filters)

    def get_order(self, actor: Actor, id: str) -> Order:
        order = self._orders.get_by_id(id)
        if not order:
            raise OrderNotFound()
        ensure_can(actor, order, OrderAction.VIEW)
        return order

    def list_returns(self, actor: Actor, id: str):
        order = self.get_order(actor, id)
        return self._orders.list_returns(order)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, actor: Actor, dto: CreateOrderDTO) -> Order:
        """Create an order in CREATED and count it on the customer.

        Managers and customers always order into their own store; naming
        another store is denied.
        """
        log = logger.bind(customer_id=str(dto.customer_id), actor=str(actor.user_id))

        if actor.is_admin:
            store_id = dto.store_id
        else:
            store_id = resolve_store_scope(actor, dto.store_id)

        customer = self._customers.get_for_update(str(dto.customer_id))
        if not customer:
            raise CustomerNotFound(attr="customer_id")
        if not actor.is_admin:
            ensure_store_access(actor, customer.store_id)
        if store_id is None:
            store_id = customer.store_id
        if not self._stores.get_by_id(str(store_id)):
            raise NotFound("Store not found.", attr="store_id")
        if str(customer.store_id) != str(store_id):
            raise ValidationFailed(
                "Customer does not belong to this store.", attr="customer_id"
            )

        ensure_can(
            actor,
            Order(customer_id=customer.id, store_id=store_id),
            OrderAction.CREATE,
        )

        order = self._orders.create(
            {
                "customer_id": customer.id,
                "store_id": store_id,
                "source": dto.source,
                "invoice_number": dto.invoice_number,
                "invoice_amount": dto.invoice_amount,
                "total_items": dto.total_items,
                "notes": dto.notes,
                "items": [item.model_dump() for item in dto.items],
            }
        )
        customer.total_orders += 1
        customer.save(update_fields=["total_orders"])

        self._after_commit(order, OrderEvent.CREATED)
        log.info("order.created", order_id=str(order.id), store_id=str(store_id))
        return self._reload(order)

    @transaction.atomic
    def edit_order(self, actor: Actor, id: str, dto: EditOrderDTO) -> Order:
        order = self._lock(id)
        ensure_can(actor, order, OrderAction.EDIT)
        self._check_status(order, OrderAction.EDIT)

        for field in ("invoice_number", "invoice_amount", "total_items", "notes"):
            value = getattr(dto, field)
            if value is not None:
                setattr(order, field, value)
        self._orders.save(order)
        if dto.items is not None:
            self._orders.replace_items(order, [item.model_dump() for item in dto.items])

        self._after_commit(order, OrderEvent.UPDATED)
        logger.info("order.edited", order_id=str(order.id))
        return self._reload(order)

    @transaction.atomic
    def delete_order(self, actor: Actor, id: str) -> None:
        order = self._lock(id)
        ensure_can(actor, order, OrderAction.DELETE)
        self._check_status(order, OrderAction.DELETE)
        self._after_commit(order, None)
        self._orders.delete(order)
        logger.info("order.deleted", order_id=str(id))

    @transaction.atomic
    def assign(self, actor: Actor, id: str, dto: AssignOrderDTO) -> Order:
        """CREATED -> ASSIGNED and open the delivery record."""
        order = self._lock(id)
        ensure_can(actor, order, OrderAction.ASSIGN)
        self._check_status(order, OrderAction.ASSIGN, OrderStatus.ASSIGNED)
        log = logger.bind(order_id=str(order.id), partner_id=str(dto.delivery_partner_id))

        partner = self._users.get_by_id(str(dto.delivery_partner_id))
        if (
            partner is None
            or partner.role != Role.DELIVERY_BOY
            or not partner.is_active
            or str(partner.store_id) != str(order.store_id)
        ):
            log.warning("order.assign_partner_rejected")
            raise DeliveryPartnerNotFound(attr="delivery_partner_id")

        now = timezone.now()
        order.status = OrderStatus.ASSIGNED
        order.delivery_partner_id = partner.id
        order.assigned_at = now
        self._orders.save(order)
        self._orders.create_delivery(order, partner.id, now)

        self._after_commit(order, OrderEvent.ASSIGNED)
        log.info("order.assigned")
        return self._reload(order)

    @transaction.atomic
    def start_delivery(self, actor: Actor, id: str) -> Order:
        """ASSIGNED -> OUT_FOR_DELIVERY."""
        order = self._lock(id)
        ensure_can(actor, order, OrderAction.START_DELIVERY)
        self._check_status(
            order, OrderAction.START_DELIVERY, OrderStatus.OUT_FOR_DELIVERY
        )

        now = timezone.now()
        order.status = OrderStatus.OUT_FOR_DELIVERY
        order.out_for_delivery_at = now
        self._orders.save(order)
        delivery = self._orders.current_delivery(order)
        if delivery is not None:
            delivery.out_for_delivery_at = now
            delivery.save(update_fields=["out_for_delivery_at"])

        self._after_commit(order, OrderEvent.OUT_FOR_DELIVERY)
        logger.info("order.out_for_delivery", order_id=str(order.id))
        return self._reload(order)

    @transaction.atomic
    def deliver(self, actor: Actor, id: str, dto: DeliverOrderDTO) -> Order:
        """OUT_FOR_DELIVERY -> DELIVERED, settling payment on the customer."""
        order = self._lock(id)
        ensure_can(actor, order, OrderAction.DELIVER)
        self._check_status(order, OrderAction.DELIVER, OrderStatus.DELIVERED)
        log = logger.bind(order_id=str(order.id), payment_method=str(dto.payment_method))

        now = timezone.now()
        order.status = OrderStatus.DELIVERED
        order.delivered_at = now
        order.payment_method = dto.payment_method
        order.payment_status = PaymentStatus.PAID
        self._orders.save(order)

        delivery = self._orders.current_delivery(order)
        if delivery is not None:
            delivery.delivered_at = now
            delivery.delivery_time_minutes = int(
                (now - delivery.assigned_at).total_seconds() // 60
            )
            delivery.save(update_fields=["delivered_at", "delivery_time_minutes"])

        customer = self._customers.get_for_update(str(order.customer_id))
        customer.total_sales += order.invoice_amount
        if dto.payment_method == PaymentMethod.CUSTOMER_CREDIT:
            customer.total_dues += order.invoice_amount
        customer.save(update_fields=["total_sales", "total_dues"])

        self._after_commit(order, OrderEvent.DELIVERED)
        log.info("order.delivered")
        return self._reload(order)

    @transaction.atomic
    def cancel(self, actor: Actor, id: str, dto: CancelOrderDTO) -> Order:
        """CREATED/ASSIGNED -> CANCELLED.  Customer aggregates are untouched."""
        order = self._lock(id)
        ensure_can(actor, order, OrderAction.CANCEL)
        self._check_status(order, OrderAction.CANCEL, OrderStatus.CANCELLED)

        order.status = OrderStatus.CANCELLED
        if dto.reason:
            order.notes = "\n".join(
                part for part in (order.notes, f"Cancellation reason: {dto.reason}") if part
            )
        self._orders.save(order)

        self._after_commit(order, OrderEvent.CANCELLED)
        logger.info("order.cancelled", order_id=str(order.id))
        return self._reload(order)

    @transaction.atomic
    def process_return(
        self,
        actor: Actor,
        id: str,
        dto: ReturnOrderDTO,
        processed_by: Any = None,
    ) -> Order:
        """DELIVERED -> RETURNED (whole invoice) or PARTIAL_RETURNED.

        The return type follows from the amount; an explicit type that
        disagrees with it is rejected.
        """
        order = self._lock(id)
        ensure_can(actor, order, OrderAction.RETURN)
        self._check_status(order, OrderAction.RETURN, OrderStatus.RETURNED)
        log = logger.bind(order_id=str(order.id), refund_amount=str(dto.refund_amount))

        amount = dto.refund_amount
        if amount > order.invoice_amount:
            log.warning("order.refund_exceeds_invoice")
            raise RefundExceedsInvoice(attr="refund_amount")
        return_type = ReturnType.FULL if amount == order.invoice_amount else ReturnType.PARTIAL
        if dto.return_type is not None and dto.return_type != return_type:
            raise InvalidAmount(
                "A full return must refund the whole invoice amount."
                if dto.return_type == ReturnType.FULL
                else "A partial return must refund less than the invoice amount.",
                attr="refund_amount",
            )

        now = timezone.now()
        self._orders.add_return(
            order,
            return_type=return_type,
            refund_amount=amount,
            refund_method=dto.refund_method,
            reason=dto.reason,
            processed_by=processed_by,
            processed_at=now,
        )
        order.status = (
            OrderStatus.RETURNED
            if return_type == ReturnType.FULL
            else OrderStatus.PARTIAL_RETURNED
        )
        order.payment_status = PaymentStatus.REFUNDED
        self._orders.save(order)

        customer = self._customers.get_for_update(str(order.customer_id))
        customer.total_sales -= amount
        paid_on_credit = order.payment_method == PaymentMethod.CUSTOMER_CREDIT
        refund_on_credit = dto.refund_method == PaymentMethod.CUSTOMER_CREDIT
        if (paid_on_credit and not refund_on_credit) or refund_on_credit:
            customer.total_dues = max(ZERO, customer.total_dues - amount)
        customer.save(update_fields=["total_sales", "total_dues"])

        self._after_commit(order, OrderEvent.RETURNED)
        log.info("order.returned", return_type=str(return_type))
        return self._reload(order)
