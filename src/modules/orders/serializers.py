"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from modules.orders.constants import OrderSource, PaymentMethod, ReturnType
from modules.orders.models import Delivery, Order, OrderItem, Return

MONEY = {"max_digits": 12, "decimal_places": 2, "min_value": Decimal("0.01")}

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class OrderItemInputSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255)
    quantity = serializers.IntegerField(min_value=1)


class CreateOrderSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    store_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    source = serializers.ChoiceField(choices=OrderSource.choices)
    invoice_number = serializers.CharField(
        max_length=50, required=False, default="", allow_blank=True
    )
    invoice_amount = serializers.DecimalField(**MONEY)
    total_items = serializers.IntegerField(min_value=1)
    items = OrderItemInputSerializer(many=True, allow_empty=False)
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class EditOrderSerializer(serializers.Serializer):
    invoice_number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    invoice_amount = serializers.DecimalField(required=False, **MONEY)
    total_items = serializers.IntegerField(min_value=1, required=False)
    items = OrderItemInputSerializer(many=True, allow_empty=False, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class AssignOrderSerializer(serializers.Serializer):
    delivery_partner_id = serializers.UUIDField()


class DeliverOrderSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ReturnOrderSerializer(serializers.Serializer):
    return_type = serializers.ChoiceField(
        choices=ReturnType.choices, required=False, allow_null=True
    )
    refund_amount = serializers.DecimalField(**MONEY)
    refund_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    reason = serializers.CharField(required=False, default="", allow_blank=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ["id", "description", "quantity"]
        read_only_fields = fields


class DeliverySerializer(serializers.ModelSerializer):
    delivery_partner_name = serializers.CharField(
        source="delivery_partner.name", read_only=True
    )

    class Meta:
        model = Delivery
        fields = [
            "id",
            "delivery_partner_id",
            "delivery_partner_name",
            "assigned_at",
            "out_for_delivery_at",
            "delivered_at",
            "delivery_time_minutes",
        ]
        read_only_fields = fields


class ReturnSerializer(serializers.ModelSerializer):
    processed_by_name = serializers.CharField(
        source="processed_by.name", read_only=True, default=None
    )

    class Meta:
        model = Return
        fields = [
            "id",
            "order_id",
            "return_type",
            "refund_amount",
            "refund_method",
            "reason",
            "processed_by_id",
            "processed_by_name",
            "processed_at",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Order row with the customer, store and partner names."""

    customer_name = serializers.CharField(source="customer.user.name", read_only=True)
    customer_phone = serializers.CharField(source="customer.user.phone", read_only=True)
    apartment = serializers.CharField(source="customer.apartment", read_only=True)
    store_name = serializers.CharField(source="store.name", read_only=True)
    delivery_partner_name = serializers.CharField(
        source="delivery_partner.name", read_only=True, default=None
    )

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "customer_name",
            "customer_phone",
            "apartment",
            "store_id",
            "store_name",
            "source",
            "status",
            "invoice_number",
            "invoice_amount",
            "total_items",
            "payment_method",
            "payment_status",
            "delivery_partner_id",
            "delivery_partner_name",
            "assigned_at",
            "out_for_delivery_at",
            "delivered_at",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderSerializer(OrderListSerializer):
    """Full order with items and the delivery record."""

    items = OrderItemSerializer(many=True, read_only=True)
    delivery = serializers.SerializerMethodField()

    class Meta(OrderListSerializer.Meta):
        fields = OrderListSerializer.Meta.fields + ["items", "delivery"]
        read_only_fields = fields

    def get_delivery(self, obj: Order) -> dict | None:
        deliveries = sorted(
            obj.deliveries.all(), key=lambda d: d.assigned_at, reverse=True
        )
        return DeliverySerializer(deliveries[0]).data if deliveries else None
