"""Unit tests for the analytics reports."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from django.utils import timezone

from modules.analytics.dtos import ReportQueryDTO
from modules.analytics.services import AnalyticsService
from modules.core.clients import clients
from modules.core.exceptions import AccessDenied
from modules.orders.constants import OrderSource, PaymentMethod
from modules.orders.dtos import (
    AssignOrderDTO,
    CancelOrderDTO,
    DeliverOrderDTO,
    ReturnOrderDTO,
)
from modules.orders.models import Order

pytestmark = pytest.mark.unit


@pytest.fixture()
def admin(actor_for, admin_user):
    return actor_for(admin_user)


@pytest.fixture()
def service():
    return AnalyticsService(cache=clients.cache)


@pytest.fixture()
def delivered(order_service, admin, make_order, delivery_boy):
    def run(amount="100.00", method=PaymentMethod.CASH, **overrides):
        order = make_order(invoice_amount=amount, **overrides)
        order_service.assign(admin, order.id, AssignOrderDTO(delivery_partner_id=delivery_boy.id))
        order_service.start_delivery(admin, order.id)
        return order_service.deliver(admin, order.id, DeliverOrderDTO(payment_method=method))

    return run


@pytest.fixture()
def activity(order_service, admin, make_order, delivered, other_customer):
    """Two sales (one partly refunded), one cancelled, one open, one in another store."""
    delivered("100.00", PaymentMethod.CASH)
    refunded = delivered("200.00", PaymentMethod.CUSTOMER_CREDIT, source=OrderSource.ONLINE)
    order_service.process_return(
        admin,
        refunded.id,
        ReturnOrderDTO(refund_amount=Decimal("50.00"), refund_method=PaymentMethod.CASH),
    )
    cancelled = make_order("30.00")
    order_service.cancel(admin, cancelled.id, CancelOrderDTO())
    make_order("40.00")
    make_order("999.00", target_customer=other_customer)


class TestDashboard:
    def test_store_figures(self, service, admin, store, activity):
        report = service.dashboard(admin, ReportQueryDTO(store_id=store.id))
        stats = report["stats"]

        assert stats["today_sales"] == Decimal("250.00")
        assert stats["today_orders"] == 4
        assert stats["active_orders"] == {"assigned": 0, "created": 1, "out_for_delivery": 0}
        assert stats["total_dues"] == Decimal("150.00")
        assert len(report["recent_orders"]) == 4

    def test_admin_without_store_sees_everything(self, service, admin, activity):
        report = service.dashboard(admin, ReportQueryDTO())
        assert report["stats"]["today_orders"] == 5
        assert report["stats"]["active_orders"]["created"] == 2

    def test_manager_other_store_denied(self, service, actor_for, manager, other_store):
        with pytest.raises(AccessDenied):
            service.dashboard(actor_for(manager), ReportQueryDTO(store_id=other_store.id))

    def test_served_from_cache_until_invalidated(
        self, service, actor_for, manager, make_order, store
    ):
        actor = actor_for(manager)
        assert service.dashboard(actor, ReportQueryDTO())["stats"]["today_orders"] == 0

        make_order()
        assert service.dashboard(actor, ReportQueryDTO())["stats"]["today_orders"] == 0

        clients.cache.invalidate_store(store.id)
        assert service.dashboard(actor, ReportQueryDTO())["stats"]["today_orders"] == 1


class TestSalesReports:
    def test_daily_sales(self, service, admin, store, activity):
        report = service.daily_sales(admin, ReportQueryDTO(store_id=store.id))

        assert len(report["sales"]) == 1
        day = report["sales"][0]
        assert day["date"] == timezone.localdate()
        assert day["total_orders"] == 4
        assert day["gross_sales"] == Decimal("300.00")
        assert day["total_refunds"] == Decimal("50.00")
        assert day["net_sales"] == Decimal("250.00")
        assert day["delivered_orders"] == 1
        assert day["cancelled_orders"] == 1
        assert day["returned_orders"] == 1

    def test_daily_sales_range_excludes_older_orders(self, service, admin, store, make_order):
        old = make_order()
        Order.objects.filter(id=old.id).update(created_at=timezone.now() - timedelta(days=45))

        report = service.daily_sales(admin, ReportQueryDTO(store_id=store.id))

        assert report["sales"] == []

    def test_weekly_sales(self, service, admin, store, activity):
        report = service.weekly_sales(admin, ReportQueryDTO(store_id=store.id, weeks=2))

        assert report["weeks"] == 2
        week = report["sales"][-1]
        assert week["net_sales"] == Decimal("250.00")
        assert week["average_order_value"] == Decimal("62.50")


class TestBreakdowns:
    def test_payment_methods(self, service, admin, store, activity):
        rows = service.payment_methods(admin, ReportQueryDTO(store_id=store.id))["breakdown"]

        assert {r["payment_method"]: (r["count"], r["total_amount"], r["percentage"]) for r in rows} == {
            "CASH": (1, Decimal("100.00"), 50),
            "CUSTOMER_CREDIT": (1, Decimal("200.00"), 50),
        }

    def test_order_sources(self, service, admin, store, activity):
        rows = service.order_sources(admin, ReportQueryDTO(store_id=store.id))["breakdown"]
        by_source = {r["source"]: r for r in rows}

        assert by_source["WALK_IN"]["count"] == 3
        assert by_source["WALK_IN"]["total_sales"] == Decimal("100.00")
        assert by_source["ONLINE"]["total_sales"] == Decimal("200.00")
        assert by_source["WALK_IN"]["percentage"] == 75

    def test_delivery_performance(self, service, admin, store, activity, delivery_boy):
        partners = service.delivery_performance(admin, ReportQueryDTO(store_id=store.id))["partners"]

        assert partners == [
            {
                "delivery_partner_id": delivery_boy.id,
                "name": "Ravi Rider",
                "total_deliveries": 2,
                "average_delivery_minutes": 0,
            }
        ]

    def test_top_customers(self, service, admin, activity, customer, other_customer):
        rows = service.top_customers(admin, ReportQueryDTO(limit=1))["customers"]

        assert len(rows) == 1
        assert rows[0]["id"] == customer.id
        assert rows[0]["total_sales"] == Decimal("250.00")
        assert rows[0]["total_dues"] == Decimal("150.00")
