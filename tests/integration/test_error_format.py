"""Integration tests for standardized error responses."""

import pytest

pytestmark = pytest.mark.integration


def assert_standard(data):
    assert "type" in data
    assert "errors" in data
    assert isinstance(data["errors"], list)
    assert data["errors"]
    for error in data["errors"]:
        assert set(error) == {"code", "detail", "attr"}


class TestStandardizedErrors:
    def test_auth_error_has_standard_format(self, api_client):
        response = api_client.get("/api/v1/customers/")

        assert response.status_code == 401
        data = response.json()
        assert_standard(data)
        assert data["type"] == "authentication_error"

    def test_validation_error_has_standard_format(self, manager_client):
        response = manager_client.post(
            "/api/v1/customers/", data="{", content_type="application/json"
        )

        assert response.status_code == 400
        data = response.json()
        assert_standard(data)
        assert data["type"] == "validation_error"

    def test_field_errors_carry_attr(self, manager_client):
        response = manager_client.post(
            "/api/v1/customers/", {"name": "A"}, format="json"
        )

        assert response.status_code == 400
        attrs = {error["attr"] for error in response.json()["errors"]}
        assert {"name", "phone", "email"} <= attrs

    def test_nested_errors_carry_dotted_attr(self, manager_client, customer):
        response = manager_client.post(
            "/api/v1/orders/",
            {
                "customer_id": str(customer.id),
                "source": "ONLINE",
                "invoice_amount": "10.00",
                "total_items": 1,
                "items": [{"description": "Tea", "quantity": 0}],
            },
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "items.0.quantity"

    def test_permission_error_has_standard_format(self, rider_client):
        response = rider_client.get("/api/v1/analytics/dashboard/")

        assert response.status_code == 403
        data = response.json()
        assert_standard(data)
        assert data["type"] == "access_denied"

    def test_not_found_has_standard_format(self, manager_client):
        response = manager_client.get(
            "/api/v1/customers/00000000-0000-0000-0000-000000000000/"
        )

        assert response.status_code == 404
        data = response.json()
        assert_standard(data)
        assert data["type"] == "not_found"

    def test_conflict_has_standard_format(self, admin_client, make_order):
        order = make_order()

        response = admin_client.delete(f"/api/v1/orders/{order.id}/")

        assert response.status_code == 409
        assert_standard(response.json())

    def test_method_not_allowed(self, manager_client):
        response = manager_client.delete("/api/v1/customers/")

        assert response.status_code == 405
        assert response.json()["type"] == "method_not_allowed"
