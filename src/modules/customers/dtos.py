"""Customer DTOs for the Service Layer.

Pydantic v2 contracts between the DRF serializers and ``CustomerService``.
DTOs are immutable (``frozen=True``).

- ``CreateCustomerDTO``: user account plus profile, created together.
- ``UpdateCustomerDTO``: partial update of contact and address fields.
- ``ClearDuesDTO``: a payment against outstanding dues.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from modules.orders.constants import ClearanceMethod


class CreateCustomerDTO(BaseModel):
    """Customer registration.

    ``password`` is optional: walk-in customers often never log in, and an
    account without one gets an unusable password.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=2)
    phone: str = Field(min_length=10)
    email: EmailStr
    password: Optional[str] = None
    store_id: Optional[UUID] = None
    apartment: str = ""
    address: str = ""

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class UpdateCustomerDTO(BaseModel):
    """Partial update: only supplied fields are applied."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = Field(default=None, min_length=2)
    phone: Optional[str] = Field(default=None, min_length=10)
    email: Optional[EmailStr] = None
    apartment: Optional[str] = None
    address: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class ClearDuesDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    payment_method: ClearanceMethod
    cleared_date: Optional[datetime] = None
    notes: str = ""
