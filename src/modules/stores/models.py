from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class Store(BaseModel):
    """Physical location scoping staff, customers and orders."""

    name = models.CharField(max_length=255)
    address = models.TextField()
    phone = models.CharField(max_length=20, blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "stores"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_active"], name="stores_active_idx"),
        ]

    def __str__(self) -> str:
        return self.name
