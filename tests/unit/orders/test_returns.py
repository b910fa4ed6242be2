"""Unit tests for returns on delivered orders.

Covers:
- Full and partial returns derived from the refund amount.
- Refunds above the invoice rejected with the order unchanged.
- Sales and dues adjustments for each payment/refund method pairing.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.core.exceptions import InvalidAmount
from modules.orders.constants import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ReturnType,
)
from modules.orders.dtos import AssignOrderDTO, DeliverOrderDTO, ReturnOrderDTO
from modules.orders.exceptions import InvalidTransition, RefundExceedsInvoice
from modules.orders.models import Return

pytestmark = pytest.mark.unit


@pytest.fixture()
def admin(actor_for, admin_user):
    return actor_for(admin_user)


@pytest.fixture()
def deliver(order_service, admin, make_order, delivery_boy):
    """Drive a fresh order to DELIVERED with ``payment_method``."""

    def run(payment_method=PaymentMethod.CASH, invoice_amount="100.00"):
        order = make_order(invoice_amount=invoice_amount)
        order_service.assign(admin, order.id, AssignOrderDTO(delivery_partner_id=delivery_boy.id))
        order_service.start_delivery(admin, order.id)
        return order_service.deliver(admin, order.id, DeliverOrderDTO(payment_method=payment_method))

    return run


def _refund(amount, method=PaymentMethod.CASH, **extra):
    return ReturnOrderDTO(refund_amount=Decimal(amount), refund_method=method, **extra)


class TestReturnType:
    def test_full_refund_returns_order(self, order_service, admin, deliver, admin_user):
        order = deliver()

        order = order_service.process_return(
            admin, order.id, _refund("100.00", reason="Damaged"), processed_by=admin_user
        )

        assert order.status == OrderStatus.RETURNED
        assert order.payment_status == PaymentStatus.REFUNDED
        record = Return.objects.get(order=order)
        assert record.return_type == ReturnType.FULL
        assert record.refund_amount == Decimal("100.00")
        assert record.processed_by_id == admin_user.id
        assert record.reason == "Damaged"

    def test_smaller_refund_is_partial(self, order_service, admin, deliver):
        order = deliver()

        order = order_service.process_return(admin, order.id, _refund("0.01"))

        assert order.status == OrderStatus.PARTIAL_RETURNED
        assert Return.objects.get(order=order).return_type == ReturnType.PARTIAL

    @pytest.mark.parametrize("return_type", [ReturnType.FULL, ReturnType.PARTIAL, None])
    def test_refund_above_invoice_rejected(self, order_service, admin, deliver, customer, return_type):
        order = deliver()

        with pytest.raises(RefundExceedsInvoice) as exc_info:
            order_service.process_return(
                admin, order.id, _refund("100.01", return_type=return_type)
            )

        assert exc_info.value.kind == "invalid_amount"
        order.refresh_from_db()
        customer.refresh_from_db()
        assert order.status == OrderStatus.DELIVERED
        assert customer.total_sales == Decimal("100.00")
        assert not Return.objects.exists()

    def test_full_type_with_partial_amount_rejected(self, order_service, admin, deliver):
        order = deliver()
        with pytest.raises(InvalidAmount):
            order_service.process_return(
                admin, order.id, _refund("40.00", return_type=ReturnType.FULL)
            )

    def test_partial_type_with_full_amount_rejected(self, order_service, admin, deliver):
        order = deliver()
        with pytest.raises(InvalidAmount):
            order_service.process_return(
                admin, order.id, _refund("100.00", return_type=ReturnType.PARTIAL)
            )

    def test_only_delivered_orders(self, order_service, admin, make_order):
        order = make_order()
        with pytest.raises(InvalidTransition):
            order_service.process_return(admin, order.id, _refund("10.00"))

    def test_returned_order_cannot_be_returned_again(self, order_service, admin, deliver):
        order = deliver()
        order_service.process_return(admin, order.id, _refund("30.00"))
        with pytest.raises(InvalidTransition):
            order_service.process_return(admin, order.id, _refund("30.00"))


class TestCustomerAdjustments:
    def test_credit_order_fully_refunded_in_cash(self, order_service, admin, deliver, customer):
        order = deliver(PaymentMethod.CUSTOMER_CREDIT)
        customer.refresh_from_db()
        assert (customer.total_sales, customer.total_dues) == (Decimal("100.00"), Decimal("100.00"))

        order_service.process_return(admin, order.id, _refund("100.00", PaymentMethod.CASH))

        customer.refresh_from_db()
        assert customer.total_sales == Decimal("0.00")
        assert customer.total_dues == Decimal("0.00")

    def test_cash_order_refunded_in_cash_keeps_dues(self, order_service, admin, deliver, customer):
        customer.total_dues = Decimal("50.00")
        customer.save()
        order = deliver(PaymentMethod.CASH)

        order_service.process_return(admin, order.id, _refund("60.00", PaymentMethod.CASH))

        customer.refresh_from_db()
        assert customer.total_sales == Decimal("40.00")
        assert customer.total_dues == Decimal("50.00")

    def test_refund_to_credit_reduces_dues(self, order_service, admin, deliver, customer):
        customer.total_dues = Decimal("80.00")
        customer.save()
        order = deliver(PaymentMethod.UPI)

        order_service.process_return(
            admin, order.id, _refund("30.00", PaymentMethod.CUSTOMER_CREDIT)
        )

        customer.refresh_from_db()
        assert customer.total_dues == Decimal("50.00")

    def test_dues_reduction_clamps_at_zero(self, order_service, admin, deliver, customer):
        order = deliver(PaymentMethod.CARD)

        order_service.process_return(
            admin, order.id, _refund("100.00", PaymentMethod.CUSTOMER_CREDIT)
        )

        customer.refresh_from_db()
        assert customer.total_dues == Decimal("0.00")

    def test_credit_order_partially_refunded(self, order_service, admin, deliver, customer):
        order = deliver(PaymentMethod.CUSTOMER_CREDIT, invoice_amount="200.00")

        order_service.process_return(admin, order.id, _refund("50.00", PaymentMethod.CARD))

        customer.refresh_from_db()
        assert customer.total_sales == Decimal("150.00")
        assert customer.total_dues == Decimal("150.00")


class TestListReturns:
    def test_lists_returns_of_order(self, order_service, admin, deliver):
        order = deliver()
        order_service.process_return(admin, order.id, _refund("25.00"))

        returns = list(order_service.list_returns(admin, order.id))

        assert [r.refund_amount for r in returns] == [Decimal("25.00")]
