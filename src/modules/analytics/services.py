"""Aggregate reports over orders, deliveries and customers.

Every report is scoped with ``resolve_store_scope`` and served through the
read-through ``ReportCache``; the order lifecycle invalidates the affected
store after each committed transition.

Gross sales count the invoice of delivered and returned orders; net sales
subtract the refunds recorded against those orders.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

import structlog
from django.db.models import Avg, Count, Q, QuerySet, Sum
from django.db.models.functions import TruncDate, TruncWeek
from django.utils import timezone

from modules.accounts.permissions import resolve_store_scope
from modules.customers.models import Customer
from modules.orders.constants import ACTIVE_STATUSES, SALES_STATUSES, OrderStatus
from modules.orders.models import Delivery, Order, Return

if TYPE_CHECKING:
    from modules.accounts.dtos import Actor
    from modules.analytics.dtos import ReportQueryDTO
    from modules.core.cache import ReportCache

logger = structlog.get_logger(__name__)

ZERO = Decimal("0.00")
CENT = Decimal("0.01")
DAILY_SALES_DEFAULT_DAYS = 30
RECENT_ORDERS_LIMIT = 10

SALES = Q(status__in=SALES_STATUSES)
RETURNED = Q(status__in=[OrderStatus.RETURNED, OrderStatus.PARTIAL_RETURNED])


def _money(value: Optional[Decimal]) -> Decimal:
    return (value or ZERO).quantize(CENT)


def _percentage(part: int, total: int) -> int:
    return round(part * 100 / total) if total else 0


class AnalyticsService:
    def __init__(self, cache: Optional[ReportCache] = None) -> None:
        self._cache = cache

    def _report(
        self,
        name: str,
        store_id,
        compute: Callable[[], Dict[str, Any]],
        **params: Any,
    ) -> Dict[str, Any]:
        logger.debug("analytics.report_requested", report=name, store_id=str(store_id))
        if self._cache is None:
            return compute()
        return self._cache.get_or_compute(name, compute, store_id=store_id, params=params)

    @staticmethod
    def _orders(store_id) -> QuerySet:
        orders = Order.objects.all()
        if store_id:
            orders = orders.filter(store_id=store_id)
        return orders

    @staticmethod
    def _refunds_by(orders: QuerySet, bucket) -> Dict[Any, Decimal]:
        rows = (
            Return.objects.filter(order__in=orders.values("id"))
            .annotate(bucket=bucket)
            .values("bucket")
            .annotate(total=Sum("refund_amount"))
            .order_by()
        )
        return {row["bucket"]: row["total"] for row in rows}

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def dashboard(self, actor: Actor, query: ReportQueryDTO) -> Dict[str, Any]:
        """Today's sales and orders, orders in flight, dues and recent orders."""
        store_id = resolve_store_scope(actor, query.store_id)
        today = timezone.localdate()

        def compute() -> Dict[str, Any]:
            orders = self._orders(store_id)
            todays = orders.filter(created_at__date=today)
            gross = todays.aggregate(total=Sum("invoice_amount", filter=SALES))["total"]
            refunds = Return.objects.filter(order__in=todays.values("id")).aggregate(
                total=Sum("refund_amount")
            )["total"]

            active = {status.lower(): 0 for status in sorted(ACTIVE_STATUSES)}
            for row in (
                orders.filter(status__in=ACTIVE_STATUSES)
                .values("status")
                .annotate(count=Count("id"))
                .order_by()
            ):
                active[row["status"].lower()] = row["count"]

            customers = Customer.objects.all()
            if store_id:
                customers = customers.filter(store_id=store_id)
            dues = customers.aggregate(total=Sum("total_dues"))["total"]

            recent = [
                {
                    "id": row["id"],
                    "order_number": row["order_number"],
                    "status": row["status"],
                    "invoice_amount": row["invoice_amount"],
                    "customer_name": row["customer__user__name"],
                    "store_name": row["store__name"],
                    "created_at": row["created_at"],
                }
                for row in orders.order_by("-created_at").values(
                    "id",
                    "order_number",
                    "status",
                    "invoice_amount",
                    "customer__user__name",
                    "store__name",
                    "created_at",
                )[:RECENT_ORDERS_LIMIT]
            ]
            return {
                "stats": {
                    "today_sales": _money(gross) - _money(refunds),
                    "today_orders": todays.count(),
                    "active_orders": active,
                    "total_dues": _money(dues),
                },
                "recent_orders": recent,
            }

        return self._report("dashboard", store_id, compute, day=today)

    def daily_sales(self, actor: Actor, query: ReportQueryDTO) -> Dict[str, Any]:
        store_id = resolve_store_scope(actor, query.store_id)
        end = query.end_date or timezone.localdate()
        start = query.start_date or end - timedelta(days=DAILY_SALES_DEFAULT_DAYS)

        def compute() -> Dict[str, Any]:
            orders = self._orders(store_id).filter(created_at__date__range=(start, end))
            refunds = self._refunds_by(orders, TruncDate("order__created_at"))
            rows = (
                orders.annotate(day=TruncDate("created_at"))
                .values("day")
                .annotate(
                    total_orders=Count("id"),
                    gross_sales=Sum("invoice_amount", filter=SALES),
                    delivered_orders=Count("id", filter=Q(status=OrderStatus.DELIVERED)),
                    cancelled_orders=Count("id", filter=Q(status=OrderStatus.CANCELLED)),
                    returned_orders=Count("id", filter=RETURNED),
                )
                .order_by("day")
            )
            sales: List[Dict[str, Any]] = []
            for row in rows:
                gross = _money(row["gross_sales"])
                refunded = _money(refunds.get(row["day"]))
                sales.append(
                    {
                        "date": row["day"],
                        "total_orders": row["total_orders"],
                        "gross_sales": gross,
                        "total_refunds": refunded,
                        "net_sales": gross - refunded,
                        "delivered_orders": row["delivered_orders"],
                        "cancelled_orders": row["cancelled_orders"],
                        "returned_orders": row["returned_orders"],
                    }
                )
            return {"start_date": start, "end_date": end, "sales": sales}

        return self._report("daily-sales", store_id, compute, start=start, end=end)

    def weekly_sales(self, actor: Actor, query: ReportQueryDTO) -> Dict[str, Any]:
        store_id = resolve_store_scope(actor, query.store_id)
        weeks = query.weeks

        def compute() -> Dict[str, Any]:
            since = timezone.now() - timedelta(weeks=weeks)
            orders = self._orders(store_id).filter(created_at__gte=since)
            refunds = self._refunds_by(orders, TruncWeek("order__created_at"))
            rows = (
                orders.annotate(week=TruncWeek("created_at"))
                .values("week")
                .annotate(
                    total_orders=Count("id"),
                    gross_sales=Sum("invoice_amount", filter=SALES),
                )
                .order_by("week")
            )
            sales = []
            for row in rows:
                gross = _money(row["gross_sales"])
                refunded = _money(refunds.get(row["week"]))
                net = gross - refunded
                sales.append(
                    {
                        "week": row["week"].date(),
                        "total_orders": row["total_orders"],
                        "gross_sales": gross,
                        "total_refunds": refunded,
                        "net_sales": net,
                        "average_order_value": (net / row["total_orders"]).quantize(CENT)
                        if row["total_orders"]
                        else ZERO,
                    }
                )
            return {"weeks": weeks, "sales": sales}

        return self._report("weekly-sales", store_id, compute, weeks=weeks)

    def delivery_performance(self, actor: Actor, query: ReportQueryDTO) -> Dict[str, Any]:
        """Completed deliveries and average delivery time per partner."""
        store_id = resolve_store_scope(actor, query.store_id)
        partner_id = query.delivery_partner_id

        def compute() -> Dict[str, Any]:
            deliveries = Delivery.objects.filter(delivered_at__isnull=False)
            if store_id:
                deliveries = deliveries.filter(order__store_id=store_id)
            if partner_id:
                deliveries = deliveries.filter(delivery_partner_id=partner_id)
            rows = (
                deliveries.values("delivery_partner_id", "delivery_partner__name")
                .annotate(
                    total_deliveries=Count("id"),
                    average_minutes=Avg("delivery_time_minutes"),
                )
                .order_by("-total_deliveries", "delivery_partner__name")
            )
            return {
                "partners": [
                    {
                        "delivery_partner_id": row["delivery_partner_id"],
                        "name": row["delivery_partner__name"],
                        "total_deliveries": row["total_deliveries"],
                        "average_delivery_minutes": round(row["average_minutes"] or 0),
                    }
                    for row in rows
                ]
            }

        return self._report(
            "delivery-performance", store_id, compute, partner=partner_id
        )

    def top_customers(self, actor: Actor, query: ReportQueryDTO) -> Dict[str, Any]:
        store_id = resolve_store_scope(actor, query.store_id)
        limit = query.limit

        def compute() -> Dict[str, Any]:
            customers = Customer.objects.all()
            if store_id:
                customers = customers.filter(store_id=store_id)
            rows = customers.order_by("-total_sales", "-total_orders").values(
                "id",
                "user__name",
                "user__email",
                "total_orders",
                "total_sales",
                "total_dues",
            )[:limit]
            return {
                "customers": [
                    {
                        "id": row["id"],
                        "name": row["user__name"],
                        "email": row["user__email"],
                        "total_orders": row["total_orders"],
                        "total_sales": row["total_sales"],
                        "total_dues": row["total_dues"],
                    }
                    for row in rows
                ]
            }

        return self._report("top-customers", store_id, compute, limit=limit)

    def payment_methods(self, actor: Actor, query: ReportQueryDTO) -> Dict[str, Any]:
        store_id = resolve_store_scope(actor, query.store_id)

        def compute() -> Dict[str, Any]:
            rows = list(
                self._orders(store_id)
                .filter(SALES, payment_method__isnull=False)
                .values("payment_method")
                .annotate(count=Count("id"), total_amount=Sum("invoice_amount"))
                .order_by("payment_method")
            )
            total = sum(row["count"] for row in rows)
            return {
                "breakdown": [
                    {
                        "payment_method": row["payment_method"],
                        "count": row["count"],
                        "total_amount": _money(row["total_amount"]),
                        "percentage": _percentage(row["count"], total),
                    }
                    for row in rows
                ]
            }

        return self._report("payment-methods", store_id, compute)

    def order_sources(self, actor: Actor, query: ReportQueryDTO) -> Dict[str, Any]:
        store_id = resolve_store_scope(actor, query.store_id)

        def compute() -> Dict[str, Any]:
            rows = list(
                self._orders(store_id)
                .values("source")
                .annotate(
                    count=Count("id"),
                    total_sales=Sum("invoice_amount", filter=SALES),
                )
                .order_by("source")
            )
            total = sum(row["count"] for row in rows)
            return {
                "breakdown": [
                    {
                        "source": row["source"],
                        "count": row["count"],
                        "total_sales": _money(row["total_sales"]),
                        "percentage": _percentage(row["count"], total),
                    }
                    for row in rows
                ]
            }

        return self._report("order-sources", store_id, compute)
