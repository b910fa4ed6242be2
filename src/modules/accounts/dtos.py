"""Account DTOs for the Service Layer.

Pydantic v2 contracts between the DRF serializers and the services.
DTOs are immutable (``frozen=True``).

- ``Actor``: the acting identity, resolved once per request.
- ``CreateStaffDTO`` / ``UpdateStaffDTO``: staff administration input.
- ``RegisterUserDTO``: admin registration of any role.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator, model_validator

from modules.accounts.constants import STAFF_ROLES, STORE_BOUND_ROLES, Role

if TYPE_CHECKING:
    from modules.accounts.models import User


class Actor(BaseModel):
    """Who is performing the request, with their store binding."""

    model_config = ConfigDict(frozen=True)

    user_id: UUID
    role: Role
    store_id: Optional[UUID] = None
    customer_id: Optional[UUID] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_manager(self) -> bool:
        return self.role == Role.STORE_MANAGER

    @property
    def is_delivery_boy(self) -> bool:
        return self.role == Role.DELIVERY_BOY

    @property
    def is_customer(self) -> bool:
        return self.role == Role.CUSTOMER

    @classmethod
    def from_user(cls, user: User) -> Actor:
        customer_id = None
        if user.role == Role.CUSTOMER:
            from modules.customers.models import Customer

            customer_id = (
                Customer.objects.filter(user_id=user.id)
                .values_list("id", flat=True)
                .first()
            )
        return cls(
            user_id=user.id,
            role=user.role,
            store_id=user.store_id,
            customer_id=customer_id,
        )


class CreateStaffDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: EmailStr
    password: str
    name: str
    phone: str = ""
    role: Role
    store_id: Optional[UUID] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @model_validator(mode="after")
    def check_role_and_store(self) -> Self:
        if self.role not in STAFF_ROLES:
            raise ValueError("Role must be ADMIN, STORE_MANAGER or DELIVERY_BOY.")
        if self.role in STORE_BOUND_ROLES and self.store_id is None:
            raise ValueError("Store is required for this role.")
        return self


class UpdateStaffDTO(BaseModel):
    """Partial update: only supplied fields are applied."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[Role] = None
    store_id: Optional[UUID] = None
    is_active: Optional[bool] = None

    @field_validator("role")
    @classmethod
    def staff_role_only(cls, v: Optional[Role]) -> Optional[Role]:
        if v is not None and v not in STAFF_ROLES:
            raise ValueError("Role must be ADMIN, STORE_MANAGER or DELIVERY_BOY.")
        return v


class RegisterUserDTO(BaseModel):
    """Registration of any role; customers also get a profile."""

    model_config = ConfigDict(frozen=True)

    email: EmailStr
    password: str
    name: str
    phone: str = ""
    role: Role
    store_id: Optional[UUID] = None
    apartment: str = ""
    address: str = ""

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @model_validator(mode="after")
    def store_required_for_bound_roles(self) -> Self:
        if self.role in STORE_BOUND_ROLES and self.store_id is None:
            raise ValueError("Store is required for this role.")
        return self
