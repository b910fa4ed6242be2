from decimal import Decimal

import pytest

from django.core.cache import cache
from rest_framework.test import APIClient

from modules.accounts.constants import Role
from modules.accounts.dtos import Actor
from modules.accounts.models import User
from modules.accounts.repositories.django_repository import UserDjangoRepository
from modules.core.clients import clients
from modules.customers.models import Customer
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.constants import OrderSource
from modules.orders.dtos import CreateOrderDTO, OrderItemDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.stores.models import Store
from modules.stores.repositories.django_repository import StoreDjangoRepository

PASSWORD = "Passw0rd!"


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _reset_side_channels():
    """Fresh cache and an empty in-memory publisher for every test."""
    cache.clear()
    if not clients.started:
        clients.start()
    clients.publisher.reset()
    yield
    clients.publisher.reset()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Stores and users
# ---------------------------------------------------------------------------


@pytest.fixture()
def store():
    return Store.objects.create(name="Downtown", address="12 Market Street", phone="5550100001")


@pytest.fixture()
def other_store():
    return Store.objects.create(name="Riverside", address="48 River Road", phone="5550100002")


def _user(email, role, store=None, **extra):
    return User.objects.create_user(
        email, password=PASSWORD, name=extra.pop("name", email.split("@")[0]),
        role=role, store=store, **extra
    )


@pytest.fixture()
def admin_user():
    return User.objects.create_superuser("admin@example.com", password=PASSWORD)


@pytest.fixture()
def manager(store):
    return _user("manager@example.com", Role.STORE_MANAGER, store)


@pytest.fixture()
def other_manager(other_store):
    return _user("manager2@example.com", Role.STORE_MANAGER, other_store)


@pytest.fixture()
def delivery_boy(store):
    return _user("rider@example.com", Role.DELIVERY_BOY, store, name="Ravi Rider")


@pytest.fixture()
def other_delivery_boy(other_store):
    return _user("rider2@example.com", Role.DELIVERY_BOY, other_store)


@pytest.fixture()
def inactive_delivery_boy(store):
    return _user("rider3@example.com", Role.DELIVERY_BOY, store, is_active=False)


@pytest.fixture()
def customer(store):
    user = _user("asha@example.com", Role.CUSTOMER, store, name="Asha Verma", phone="9800000001")
    return Customer.objects.create(user=user, store=store, apartment="A-101")


@pytest.fixture()
def other_customer(other_store):
    user = _user("kabir@example.com", Role.CUSTOMER, other_store, name="Kabir Shah")
    return Customer.objects.create(user=user, store=other_store, apartment="C-110")


@pytest.fixture()
def actor_for():
    return Actor.from_user


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------


@pytest.fixture()
def client_for():
    """Build an APIClient force-authenticated as ``user``."""

    def build(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return build


@pytest.fixture()
def admin_client(client_for, admin_user):
    return client_for(admin_user)


@pytest.fixture()
def manager_client(client_for, manager):
    return client_for(manager)


@pytest.fixture()
def rider_client(client_for, delivery_boy):
    return client_for(delivery_boy)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def order_service():
    return OrderService(
        order_repository=OrderDjangoRepository(),
        customer_repository=CustomerDjangoRepository(),
        user_repository=UserDjangoRepository(),
        store_repository=StoreDjangoRepository(),
        cache=clients.cache,
        events=clients.events,
    )


@pytest.fixture()
def make_order(order_service, admin_user, customer):
    """Create an order through the lifecycle engine as the admin."""

    def build(invoice_amount="100.00", target_customer=None, **overrides):
        target = target_customer or customer
        dto = CreateOrderDTO(
            customer_id=target.id,
            store_id=target.store_id,
            source=overrides.pop("source", OrderSource.WALK_IN),
            invoice_number=overrides.pop("invoice_number", "INV-1001"),
            invoice_amount=Decimal(invoice_amount),
            total_items=overrides.pop("total_items", 2),
            items=overrides.pop(
                "items",
                [
                    OrderItemDTO(description="Milk 1L", quantity=1),
                    OrderItemDTO(description="Bread", quantity=1),
                ],
            ),
            **overrides,
        )
        return order_service.create_order(Actor.from_user(admin_user), dto)

    return build
