"""Customer profile and due clearances.

Business rules implemented:
- Every customer is a ``User`` with role ``CUSTOMER`` plus this profile,
  created together in one transaction.
- ``total_orders``, ``total_sales`` and ``total_dues`` are running
  aggregates maintained by the order lifecycle.
- ``total_dues`` never goes negative: reductions are clamped at zero and a
  check constraint backs that up at the database level.
- Each dues payment is recorded as a ``DueClearance``.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import ClearanceMethod


class Customer(BaseModel):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="customer_profile",
    )
    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.PROTECT,
        related_name="customers",
    )
    apartment = models.CharField(max_length=100, blank=True, default="")
    address = models.TextField(blank=True, default="")
    total_orders = models.PositiveIntegerField(default=0)
    total_sales = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    total_dues = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["store", "-created_at"], name="customers_store_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_dues__gte=0),
                name="customers_dues_non_negative",
            ),
        ]

    @property
    def name(self) -> str:
        return self.user.name

    @property
    def email(self) -> str:
        return self.user.email

    @property
    def phone(self) -> str:
        return self.user.phone

    def __str__(self) -> str:
        return f"{self.user.name} ({self.apartment or 'no apartment'})"


class DueClearance(BaseModel):
    """A payment against a customer's outstanding dues."""

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.CASCADE,
        related_name="due_clearances",
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(max_length=20, choices=ClearanceMethod.choices)
    cleared_date = models.DateTimeField(default=timezone.now)
    notes = models.TextField(blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        db_table = "due_clearances"
        ordering = ["-cleared_date"]

    def __str__(self) -> str:
        return f"{self.customer_id}: {self.amount} ({self.payment_method})"
