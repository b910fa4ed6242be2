"""Store DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.stores.models import Store

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateStoreSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    address = serializers.CharField()
    phone = serializers.CharField(max_length=20, required=False, default="", allow_blank=True)


class UpdateStoreSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    address = serializers.CharField(required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)


# ---------------------------------------------------------------------------
# Output Serializers
# ---------------------------------------------------------------------------


class StoreSerializer(serializers.ModelSerializer):
    class Meta:
        model = Store
        fields = ["id", "name", "address", "phone", "is_active", "created_at", "updated_at"]
        read_only_fields = fields


class StoreListSerializer(StoreSerializer):
    """Store with the stats annotated by ``list_with_stats``."""

    manager_count = serializers.IntegerField(read_only=True)
    delivery_boy_count = serializers.IntegerField(read_only=True)
    order_count = serializers.IntegerField(read_only=True)
    total_sales = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta(StoreSerializer.Meta):
        fields = StoreSerializer.Meta.fields + [
            "manager_count",
            "delivery_boy_count",
            "order_count",
            "total_sales",
        ]
        read_only_fields = fields


class StaffSummarySerializer(serializers.Serializer):
    id = serializers.UUIDField()
    name = serializers.CharField()
    email = serializers.EmailField()
    phone = serializers.CharField()
    role = serializers.CharField()
    is_active = serializers.BooleanField()


class StoreDetailSerializer(StoreListSerializer):
    staff = serializers.SerializerMethodField()
    customer_count = serializers.SerializerMethodField()

    class Meta(StoreListSerializer.Meta):
        fields = StoreListSerializer.Meta.fields + ["staff", "customer_count"]
        read_only_fields = fields

    def get_staff(self, obj: Store) -> list[dict]:
        staff = obj.staff.filter(is_active=True).exclude(role="CUSTOMER").order_by("name")
        return StaffSummarySerializer(staff, many=True).data

    def get_customer_count(self, obj: Store) -> int:
        return obj.customers.count()
