"""Unit tests for actor resolution and store scoping."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.accounts.constants import Role
from modules.accounts.dtos import Actor
from modules.accounts.permissions import ensure_store_access, resolve_store_scope
from modules.core.exceptions import AccessDenied

pytestmark = pytest.mark.unit


class TestActor:
    def test_from_manager(self, manager):
        actor = Actor.from_user(manager)
        assert actor.role == Role.STORE_MANAGER
        assert actor.store_id == manager.store_id
        assert actor.customer_id is None
        assert actor.is_manager and not actor.is_admin

    def test_from_customer_resolves_profile(self, customer):
        actor = Actor.from_user(customer.user)
        assert actor.is_customer
        assert actor.customer_id == customer.id

    def test_admin_has_no_store(self, admin_user):
        actor = Actor.from_user(admin_user)
        assert actor.is_admin
        assert actor.store_id is None


class TestResolveStoreScope:
    def test_admin_without_request_sees_all(self, admin_user):
        assert resolve_store_scope(Actor.from_user(admin_user)) is None

    def test_admin_gets_requested_store(self, admin_user, store):
        assert resolve_store_scope(Actor.from_user(admin_user), store.id) == store.id

    def test_manager_confined_to_own_store(self, manager):
        assert resolve_store_scope(Actor.from_user(manager)) == manager.store_id

    def test_manager_naming_own_store(self, manager):
        actor = Actor.from_user(manager)
        assert resolve_store_scope(actor, str(manager.store_id)) == manager.store_id

    def test_manager_naming_other_store_denied(self, manager, other_store):
        with pytest.raises(AccessDenied):
            resolve_store_scope(Actor.from_user(manager), other_store.id)

    def test_unbound_actor_denied(self):
        actor = Actor(user_id=uuid4(), role=Role.STORE_MANAGER)
        with pytest.raises(AccessDenied):
            resolve_store_scope(actor)


class TestEnsureStoreAccess:
    def test_admin_passes(self, admin_user, store):
        ensure_store_access(Actor.from_user(admin_user), store.id)

    def test_same_store_passes(self, delivery_boy, store):
        ensure_store_access(Actor.from_user(delivery_boy), store.id)

    def test_other_store_denied(self, delivery_boy, other_store):
        with pytest.raises(AccessDenied):
            ensure_store_access(Actor.from_user(delivery_boy), other_store.id)

    def test_missing_store_denied(self, manager):
        with pytest.raises(AccessDenied):
            ensure_store_access(Actor.from_user(manager), None)
