"""Customer DRF serializers for API input/output.

Input serializers handle request parsing only; business rules live in
``CustomerService``, which receives Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from modules.customers.models import Customer, DueClearance
from modules.orders.constants import ClearanceMethod

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateCustomerSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=255)
    phone = serializers.CharField(min_length=10, max_length=20)
    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        min_length=6,
        required=False,
        allow_null=True,
        default=None,
        trim_whitespace=False,
    )
    store_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    apartment = serializers.CharField(max_length=100, required=False, default="", allow_blank=True)
    address = serializers.CharField(required=False, default="", allow_blank=True)


class UpdateCustomerSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=255, required=False)
    phone = serializers.CharField(min_length=10, max_length=20, required=False)
    email = serializers.EmailField(required=False)
    apartment = serializers.CharField(max_length=100, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)


class ClearDuesSerializer(serializers.Serializer):
    amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.01")
    )
    payment_method = serializers.ChoiceField(choices=ClearanceMethod.choices)
    cleared_date = serializers.DateTimeField(required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, default="", allow_blank=True)


# ---------------------------------------------------------------------------
# Output Serializers
# ---------------------------------------------------------------------------


class CustomerSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="user.name", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)
    phone = serializers.CharField(source="user.phone", read_only=True)
    user_id = serializers.UUIDField(read_only=True)
    store_name = serializers.CharField(source="store.name", read_only=True)

    class Meta:
        model = Customer
        fields = [
            "id",
            "user_id",
            "name",
            "email",
            "phone",
            "store_id",
            "store_name",
            "apartment",
            "address",
            "total_orders",
            "total_sales",
            "total_dues",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class DueClearanceSerializer(serializers.ModelSerializer):
    created_by_name = serializers.CharField(
        source="created_by.name", read_only=True, default=None
    )

    class Meta:
        model = DueClearance
        fields = [
            "id",
            "amount",
            "payment_method",
            "cleared_date",
            "notes",
            "created_by_id",
            "created_by_name",
            "created_at",
        ]
        read_only_fields = fields


class CustomerOrderSummarySerializer(serializers.Serializer):
    id = serializers.UUIDField()
    order_number = serializers.CharField()
    status = serializers.CharField()
    invoice_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    payment_method = serializers.CharField(allow_null=True)
    payment_status = serializers.CharField()
    created_at = serializers.DateTimeField()
    delivered_at = serializers.DateTimeField(allow_null=True)


class CustomerDetailSerializer(CustomerSerializer):
    recent_orders = CustomerOrderSummarySerializer(many=True, read_only=True)
    recent_clearances = DueClearanceSerializer(many=True, read_only=True)

    class Meta(CustomerSerializer.Meta):
        fields = CustomerSerializer.Meta.fields + ["recent_orders", "recent_clearances"]
        read_only_fields = fields
