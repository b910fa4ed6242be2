"""Role guards and store scoping shared by every module.

``ActorMixin`` resolves the acting identity once per request.  The scope
helpers fail closed: a store-bound actor naming another store is denied,
never silently narrowed to their own.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from rest_framework.permissions import BasePermission

from modules.accounts.constants import Role
from modules.accounts.dtos import Actor
from modules.core.exceptions import AccessDenied


def get_actor(request) -> Actor:
    actor = getattr(request, "_actor", None)
    if actor is None:
        actor = Actor.from_user(request.user)
        request._actor = actor
    return actor


class ActorMixin:
    @property
    def actor(self) -> Actor:
        return get_actor(self.request)


class HasRole(BasePermission):
    allowed_roles: tuple[str, ...] = ()

    def has_permission(self, request, view) -> bool:
        user = request.user
        return bool(
            user and user.is_authenticated and user.role in self.allowed_roles
        )


class IsAdmin(HasRole):
    allowed_roles = (Role.ADMIN,)


class IsAdminOrManager(HasRole):
    allowed_roles = (Role.ADMIN, Role.STORE_MANAGER)


class IsStaffMember(HasRole):
    allowed_roles = (Role.ADMIN, Role.STORE_MANAGER, Role.DELIVERY_BOY)


def _same(a: Optional[UUID | str], b: Optional[UUID | str]) -> bool:
    return a is not None and b is not None and str(a) == str(b)


def ensure_store_access(actor: Actor, store_id: Optional[UUID | str]) -> None:
    """Raise ``AccessDenied`` unless ``actor`` may act on ``store_id``."""
    if actor.is_admin:
        return
    if not _same(actor.store_id, store_id):
        raise AccessDenied("Access denied to this store.")


def resolve_store_scope(
    actor: Actor, requested: Optional[UUID | str] = None
) -> Optional[UUID | str]:
    """Store a query should be confined to; ``None`` means every store.

    Admins get what they asked for.  Everyone else gets their own store,
    and asking for a different one is denied.
    """
    if actor.is_admin:
        return requested or None
    if actor.store_id is None:
        raise AccessDenied("Account is not bound to a store.")
    if requested and not _same(requested, actor.store_id):
        raise AccessDenied("Access denied to this store.")
    return actor.store_id
