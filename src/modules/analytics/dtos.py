"""Report query parameters, validated before the service sees them."""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ReportQueryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    store_id: Optional[UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    weeks: int = Field(default=4, ge=1, le=52)
    limit: int = Field(default=10, ge=1, le=100)
    delivery_partner_id: Optional[UUID] = None

    @model_validator(mode="after")
    def check_range(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date.")
        return self
