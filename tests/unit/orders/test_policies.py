"""Unit tests for the centralized order policy."""

from __future__ import annotations

import pytest

from modules.core.exceptions import AccessDenied
from modules.orders.constants import OrderAction
from modules.orders.models import Order
from modules.orders.policies import can_transition, ensure_can

pytestmark = pytest.mark.unit

STAFF_ACTIONS = [
    OrderAction.ASSIGN,
    OrderAction.CANCEL,
    OrderAction.RETURN,
    OrderAction.EDIT,
]


@pytest.fixture()
def order(customer, delivery_boy):
    return Order(
        customer_id=customer.id,
        store_id=customer.store_id,
        delivery_partner_id=delivery_boy.id,
    )


class TestAdmin:
    @pytest.mark.parametrize("action", list(OrderAction))
    def test_admin_may_do_everything(self, actor_for, admin_user, order, action):
        assert can_transition(actor_for(admin_user), order, action)


class TestManager:
    @pytest.mark.parametrize("action", STAFF_ACTIONS + [OrderAction.CREATE, OrderAction.VIEW])
    def test_own_store(self, actor_for, manager, order, action):
        assert can_transition(actor_for(manager), order, action)

    @pytest.mark.parametrize("action", list(OrderAction))
    def test_other_store_denied(self, actor_for, other_manager, order, action):
        assert not can_transition(actor_for(other_manager), order, action)

    def test_delete_is_admin_only(self, actor_for, manager, order):
        assert not can_transition(actor_for(manager), order, OrderAction.DELETE)


class TestDeliveryPartner:
    @pytest.mark.parametrize(
        "action", [OrderAction.START_DELIVERY, OrderAction.DELIVER, OrderAction.VIEW]
    )
    def test_assigned_partner(self, actor_for, delivery_boy, order, action):
        assert can_transition(actor_for(delivery_boy), order, action)

    @pytest.mark.parametrize("action", STAFF_ACTIONS + [OrderAction.CREATE])
    def test_assigned_partner_cannot_manage(self, actor_for, delivery_boy, order, action):
        assert not can_transition(actor_for(delivery_boy), order, action)

    def test_unassigned_partner_denied(self, actor_for, store, order):
        from modules.accounts.constants import Role
        from modules.accounts.models import User

        stranger = User.objects.create_user(
            "stranger@example.com", password="Passw0rd!", name="Stranger",
            role=Role.DELIVERY_BOY, store=store,
        )
        assert not can_transition(actor_for(stranger), order, OrderAction.DELIVER)
        assert not can_transition(actor_for(stranger), order, OrderAction.VIEW)


class TestCustomer:
    def test_views_own_order(self, actor_for, customer, order):
        assert can_transition(actor_for(customer.user), order, OrderAction.VIEW)

    def test_creates_own_order(self, actor_for, customer, order):
        assert can_transition(actor_for(customer.user), order, OrderAction.CREATE)

    @pytest.mark.parametrize("action", STAFF_ACTIONS + [OrderAction.DELIVER])
    def test_cannot_drive_lifecycle(self, actor_for, customer, order, action):
        assert not can_transition(actor_for(customer.user), order, action)

    def test_other_customer_cannot_view(self, actor_for, other_customer, order):
        assert not can_transition(actor_for(other_customer.user), order, OrderAction.VIEW)


class TestEnsureCan:
    def test_raises_access_denied(self, actor_for, other_manager, order):
        with pytest.raises(AccessDenied):
            ensure_can(actor_for(other_manager), order, OrderAction.ASSIGN)

    def test_accepts_string_action(self, actor_for, manager, order):
        ensure_can(actor_for(manager), order, "cancel")
