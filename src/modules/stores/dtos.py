"""Store DTOs for the Service Layer."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class CreateStoreDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    address: str
    phone: str = ""

    @field_validator("name", "address")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Must not be blank.")
        return v.strip()


class UpdateStoreDTO(BaseModel):
    """All fields optional; only supplied fields are applied."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None
