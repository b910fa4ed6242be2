"""Account DRF serializers (auth and staff)."""

from __future__ import annotations

from rest_framework import serializers

from modules.accounts.constants import Role
from modules.accounts.models import User

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True, trim_whitespace=False)
    new_password = serializers.CharField(
        write_only=True, min_length=6, trim_whitespace=False
    )


class ResetPasswordSerializer(serializers.Serializer):
    password = serializers.CharField(write_only=True, min_length=6, trim_whitespace=False)


class CreateStaffSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6, trim_whitespace=False)
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=20, required=False, default="", allow_blank=True)
    role = serializers.ChoiceField(
        choices=[Role.ADMIN, Role.STORE_MANAGER, Role.DELIVERY_BOY]
    )
    store_id = serializers.UUIDField(required=False, allow_null=True, default=None)


class UpdateStaffSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    role = serializers.ChoiceField(
        choices=[Role.ADMIN, Role.STORE_MANAGER, Role.DELIVERY_BOY], required=False
    )
    store_id = serializers.UUIDField(required=False)
    is_active = serializers.BooleanField(required=False)


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6, trim_whitespace=False)
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=20, required=False, default="", allow_blank=True)
    role = serializers.ChoiceField(choices=Role.choices)
    store_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    apartment = serializers.CharField(required=False, default="", allow_blank=True)
    address = serializers.CharField(required=False, default="", allow_blank=True)


# ---------------------------------------------------------------------------
# Output Serializers
# ---------------------------------------------------------------------------


class UserSerializer(serializers.ModelSerializer):
    store_name = serializers.CharField(source="store.name", read_only=True, default=None)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "name",
            "phone",
            "role",
            "store_id",
            "store_name",
            "is_active",
            "last_login",
            "created_at",
        ]
        read_only_fields = fields


class StaffDetailSerializer(UserSerializer):
    """Staff member with the delivery stats from ``with_delivery_stats``."""

    total_deliveries = serializers.IntegerField(read_only=True)
    completed_deliveries = serializers.IntegerField(read_only=True)
    pending_deliveries = serializers.IntegerField(read_only=True)
    avg_delivery_minutes = serializers.SerializerMethodField()

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + [
            "total_deliveries",
            "completed_deliveries",
            "pending_deliveries",
            "avg_delivery_minutes",
        ]
        read_only_fields = fields

    def get_avg_delivery_minutes(self, obj: User) -> int | None:
        value = getattr(obj, "avg_delivery_minutes", None)
        return round(value) if value is not None else None
