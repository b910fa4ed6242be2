from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.orders.constants import OrderSource, OrderStatus
from modules.orders.dtos import CreateOrderDTO, OrderItemDTO, OrderQueryDTO, ReturnOrderDTO

pytestmark = pytest.mark.unit


class TestCreateOrderDTO:
    def _data(self, **overrides):
        data = {
            "customer_id": uuid4(),
            "source": OrderSource.ONLINE,
            "invoice_amount": Decimal("10.00"),
            "total_items": 1,
            "items": [{"description": "Bread", "quantity": 1}],
        }
        data.update(overrides)
        return data

    def test_valid(self):
        dto = CreateOrderDTO(**self._data())
        assert dto.items == [OrderItemDTO(description="Bread", quantity=1)]
        assert dto.store_id is None

    def test_items_required(self):
        with pytest.raises(ValidationError):
            CreateOrderDTO(**self._data(items=[]))

    @pytest.mark.parametrize("amount", ["0", "-1.00"])
    def test_invoice_must_be_positive(self, amount):
        with pytest.raises(ValidationError):
            CreateOrderDTO(**self._data(invoice_amount=Decimal(amount)))

    def test_item_quantity_at_least_one(self):
        with pytest.raises(ValidationError):
            OrderItemDTO(description="Bread", quantity=0)

    def test_frozen(self):
        dto = CreateOrderDTO(**self._data())
        with pytest.raises(ValidationError):
            dto.total_items = 5


class TestOrderQueryDTO:
    def test_csv_statuses(self):
        dto = OrderQueryDTO(statuses="created, assigned")
        assert dto.statuses == [OrderStatus.CREATED, OrderStatus.ASSIGNED]

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            OrderQueryDTO(statuses="LOST")

    def test_date_range_order(self):
        with pytest.raises(ValidationError):
            OrderQueryDTO(start_date=date(2026, 2, 1), end_date=date(2026, 1, 1))


class TestReturnOrderDTO:
    def test_refund_must_be_positive(self):
        with pytest.raises(ValidationError):
            ReturnOrderDTO(refund_amount=Decimal("0"), refund_method="CASH")
