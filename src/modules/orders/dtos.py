"""Order DTOs for the Service Layer.

Pydantic v2 contracts between the API layer (DRF Serializers) and
``OrderService``.  DTOs are immutable (``frozen=True``).

- ``OrderItemDTO``: a free-text line item.
- ``CreateOrderDTO`` / ``EditOrderDTO``: order creation and edit.
- ``AssignOrderDTO``, ``DeliverOrderDTO``, ``CancelOrderDTO``,
  ``ReturnOrderDTO``: lifecycle transition input.
- ``OrderQueryDTO``: list filters.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.orders.constants import OrderSource, OrderStatus, PaymentMethod, ReturnType


class OrderItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str = Field(min_length=1, max_length=255)
    quantity: int = Field(ge=1)


class CreateOrderDTO(BaseModel):
    """Order creation.

    ``store_id`` may be omitted: managers and customers always use their
    own store and admins default to the customer's store.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: UUID
    store_id: Optional[UUID] = None
    source: OrderSource
    invoice_number: str = ""
    invoice_amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    total_items: int = Field(ge=1)
    items: List[OrderItemDTO]
    notes: str = ""

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(cls, v: List[OrderItemDTO]) -> List[OrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v


class EditOrderDTO(BaseModel):
    """Partial edit; ``items``, when given, replace the existing items."""

    model_config = ConfigDict(frozen=True)

    invoice_number: Optional[str] = None
    invoice_amount: Optional[Decimal] = Field(
        default=None, gt=0, max_digits=12, decimal_places=2
    )
    total_items: Optional[int] = Field(default=None, ge=1)
    items: Optional[List[OrderItemDTO]] = None
    notes: Optional[str] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: Optional[List[OrderItemDTO]]
    ) -> Optional[List[OrderItemDTO]]:
        if v is not None and not v:
            raise ValueError("Order must have at least one item.")
        return v


class AssignOrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    delivery_partner_id: UUID


class DeliverOrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    payment_method: PaymentMethod


class CancelOrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: Optional[str] = None


class ReturnOrderDTO(BaseModel):
    """A refund against a delivered order.

    ``return_type`` is optional; when omitted it follows from the amount.
    """

    model_config = ConfigDict(frozen=True)

    return_type: Optional[ReturnType] = None
    refund_amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    refund_method: PaymentMethod
    reason: str = ""


class OrderQueryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    statuses: List[OrderStatus] = Field(default_factory=list)
    store_id: Optional[UUID] = None
    customer_id: Optional[UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("statuses", mode="before")
    @classmethod
    def split_csv(cls, v):
        if isinstance(v, str):
            return [part.strip().upper() for part in v.split(",") if part.strip()]
        return v or []

    @model_validator(mode="after")
    def check_range(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date.")
        return self
