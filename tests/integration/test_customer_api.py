"""Integration tests for Customer API endpoints."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.accounts.models import User
from modules.customers.models import Customer, DueClearance

pytestmark = pytest.mark.integration

CUSTOMERS_URL = "/api/v1/customers/"


@pytest.fixture()
def customer_payload():
    return {
        "name": "Neha Kapoor",
        "phone": "9811122233",
        "email": "Neha@Example.com",
        "apartment": "B-12",
    }


@pytest.fixture()
def indebted(customer):
    Customer.objects.filter(id=customer.id).update(total_dues=Decimal("300.00"))
    customer.refresh_from_db()
    return customer


class TestCreateCustomer:
    def test_manager_creates_into_own_store(self, manager_client, customer_payload, store):
        response = manager_client.post(CUSTOMERS_URL, customer_payload, format="json")

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "neha@example.com"
        assert data["store_id"] == str(store.id)
        assert data["total_dues"] == "0.00"
        user = User.objects.get(email="neha@example.com")
        assert user.role == "CUSTOMER"
        assert not user.has_usable_password()

    def test_password_enables_login(self, manager_client, api_client, customer_payload):
        customer_payload["password"] = "Secret12"
        manager_client.post(CUSTOMERS_URL, customer_payload, format="json")

        response = api_client.post(
            "/api/v1/auth/login",
            {"email": "neha@example.com", "password": "Secret12"},
            format="json",
        )

        assert response.status_code == 200

    def test_admin_must_name_store(self, admin_client, customer_payload):
        response = admin_client.post(CUSTOMERS_URL, customer_payload, format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "store_id"

    def test_duplicate_email(self, manager_client, customer_payload, customer):
        customer_payload["email"] = customer.user.email
        response = manager_client.post(CUSTOMERS_URL, customer_payload, format="json")
        assert response.status_code == 409

    def test_rider_cannot_create(self, rider_client, customer_payload):
        response = rider_client.post(CUSTOMERS_URL, customer_payload, format="json")
        assert response.status_code == 403


class TestReadCustomers:
    def test_list_scoped_to_store(self, manager_client, customer, other_customer):
        rows = manager_client.get(CUSTOMERS_URL).json()["results"]
        assert [row["id"] for row in rows] == [str(customer.id)]

    def test_search(self, admin_client, customer, other_customer):
        rows = admin_client.get(CUSTOMERS_URL, {"search": "kabir"}).json()["results"]
        assert [row["id"] for row in rows] == [str(other_customer.id)]

    def test_has_dues_filter(self, manager_client, indebted):
        assert manager_client.get(CUSTOMERS_URL, {"has_dues": "true"}).json()["count"] == 1
        assert manager_client.get(CUSTOMERS_URL, {"has_dues": "false"}).json()["count"] == 0

    def test_detail_includes_recent_activity(self, manager_client, customer, make_order):
        make_order()

        response = manager_client.get(f"{CUSTOMERS_URL}{customer.id}/")

        assert response.status_code == 200
        data = response.json()
        assert len(data["recent_orders"]) == 1
        assert data["recent_clearances"] == []

    def test_customer_reads_own_profile(self, client_for, customer):
        response = client_for(customer.user).get(f"{CUSTOMERS_URL}{customer.id}/")
        assert response.status_code == 200

    def test_customer_cannot_read_others(self, client_for, customer, other_customer):
        response = client_for(customer.user).get(f"{CUSTOMERS_URL}{other_customer.id}/")
        assert response.status_code == 403

    def test_customer_cannot_list(self, client_for, customer):
        assert client_for(customer.user).get(CUSTOMERS_URL).status_code == 403


class TestUpdateAndDelete:
    def test_update_contact(self, manager_client, customer):
        response = manager_client.patch(
            f"{CUSTOMERS_URL}{customer.id}/",
            {"name": "Asha V.", "apartment": "A-102"},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Asha V."
        assert response.json()["apartment"] == "A-102"

    def test_delete_without_orders(self, admin_client, customer):
        user_id = customer.user_id

        assert admin_client.delete(f"{CUSTOMERS_URL}{customer.id}/").status_code == 204
        assert not User.objects.filter(id=user_id).exists()

    def test_delete_refused_with_orders(self, admin_client, customer, make_order):
        make_order()
        assert admin_client.delete(f"{CUSTOMERS_URL}{customer.id}/").status_code == 409

    def test_manager_cannot_delete(self, manager_client, customer):
        assert manager_client.delete(f"{CUSTOMERS_URL}{customer.id}/").status_code == 403


class TestClearDues:
    def test_records_clearance(self, manager_client, manager, indebted):
        response = manager_client.post(
            f"{CUSTOMERS_URL}{indebted.id}/clear-dues/",
            {"amount": "120.00", "payment_method": "UPI", "notes": "Paid at counter"},
            format="json",
        )

        assert response.status_code == 201
        data = response.json()
        assert data["customer"]["total_dues"] == "180.00"
        assert data["clearance"]["amount"] == "120.00"
        assert data["clearance"]["created_by_id"] == str(manager.id)
        assert DueClearance.objects.filter(customer=indebted).count() == 1

    def test_overpayment_clamps_at_zero(self, manager_client, indebted):
        response = manager_client.post(
            f"{CUSTOMERS_URL}{indebted.id}/clear-dues/",
            {"amount": "500.00", "payment_method": "CASH"},
            format="json",
        )

        assert response.status_code == 201
        assert response.json()["customer"]["total_dues"] == "0.00"
        assert response.json()["clearance"]["amount"] == "500.00"

    def test_credit_is_not_a_clearance_method(self, manager_client, indebted):
        response = manager_client.post(
            f"{CUSTOMERS_URL}{indebted.id}/clear-dues/",
            {"amount": "10.00", "payment_method": "CUSTOMER_CREDIT"},
            format="json",
        )
        assert response.status_code == 400

    def test_zero_amount_rejected(self, manager_client, indebted):
        response = manager_client.post(
            f"{CUSTOMERS_URL}{indebted.id}/clear-dues/",
            {"amount": "0", "payment_method": "CASH"},
            format="json",
        )
        assert response.status_code == 400

    def test_other_store_manager_denied(self, client_for, other_manager, indebted):
        response = client_for(other_manager).post(
            f"{CUSTOMERS_URL}{indebted.id}/clear-dues/",
            {"amount": "10.00", "payment_method": "CASH"},
            format="json",
        )
        assert response.status_code == 403
