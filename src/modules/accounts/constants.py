"""Account domain constants."""

from django.db import models


class Role(models.TextChoices):
    ADMIN = "ADMIN", "Admin"
    STORE_MANAGER = "STORE_MANAGER", "Store manager"
    DELIVERY_BOY = "DELIVERY_BOY", "Delivery partner"
    CUSTOMER = "CUSTOMER", "Customer"


STAFF_ROLES: frozenset[str] = frozenset(
    {Role.ADMIN, Role.STORE_MANAGER, Role.DELIVERY_BOY}
)

# Roles bound to exactly one store.
STORE_BOUND_ROLES: frozenset[str] = frozenset(
    {Role.STORE_MANAGER, Role.DELIVERY_BOY, Role.CUSTOMER}
)
