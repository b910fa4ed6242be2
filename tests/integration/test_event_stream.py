"""Integration tests for the Server-Sent Events stream."""

from __future__ import annotations

import json
from contextlib import contextmanager

import pytest

from django.core.signals import request_finished
from django.db import close_old_connections

from modules.accounts.authentication import issue_token
from modules.core.clients import clients
from modules.realtime.dispatch import broadcast

pytestmark = pytest.mark.integration

STREAM_URL = "/api/v1/events/stream"


@contextmanager
def open_stream(client, params=None, **extra):
    """GET the stream and close it afterwards without dropping the test transaction."""
    response = client.get(STREAM_URL, params or {}, **extra)
    try:
        yield response
    finally:
        request_finished.disconnect(close_old_connections)
        try:
            response.close()
        finally:
            request_finished.connect(close_old_connections)


def read_event(chunks):
    """Next non-comment frame as ``(event, data)``."""
    for chunk in chunks:
        text = chunk.decode()
        if text.startswith(":"):
            continue
        event_line, data_line = text.strip().split("\n")
        return event_line.removeprefix("event: "), json.loads(data_line.removeprefix("data: "))
    return None


class TestEventStream:
    def test_manager_receives_store_events(self, manager_client, store, other_store):
        with open_stream(manager_client) as response:
            assert response.status_code == 200
            assert response["Content-Type"].startswith("text/event-stream")
            assert response["Cache-Control"] == "no-cache"
            chunks = iter(response.streaming_content)
            assert next(chunks) == b": connected\n\n"

            broadcast(clients.publisher, "order-created", {"order_number": "ORD-X"}, other_store.id)
            broadcast(clients.publisher, "order-assigned", {"order_number": "ORD-1"}, store.id)

            assert read_event(chunks) == ("order-assigned", {"order_number": "ORD-1"})

    def test_heartbeat_when_idle(self, manager_client):
        with open_stream(manager_client) as response:
            chunks = iter(response.streaming_content)

            assert next(chunks) == b": connected\n\n"
            assert next(chunks) == b": ping\n\n"

    def test_admin_channel(self, admin_client, store):
        with open_stream(admin_client, {"admin": "1"}) as response:
            chunks = iter(response.streaming_content)
            next(chunks)

            broadcast(clients.publisher, "order-delivered", {"id": "1"}, store.id)

            assert read_event(chunks) == ("order-delivered", {"id": "1"})

    def test_closing_the_stream_unsubscribes(self, manager_client, store):
        with open_stream(manager_client) as response:
            next(iter(response.streaming_content))

        assert clients.publisher.publish(f"store-{store.id}", {"event": "x"}) == 0

    def test_token_in_query_string(self, api_client, manager):
        token = str(issue_token(manager))

        with open_stream(api_client, {"token": token}) as response:
            assert response.status_code == 200

    def test_revoked_token_in_query_string(self, api_client, manager):
        token = str(issue_token(manager))
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        api_client.post("/api/v1/auth/logout")
        api_client.credentials()

        with open_stream(api_client, {"token": token}) as response:
            assert response.status_code == 401

    def test_requires_authentication(self, api_client):
        with open_stream(api_client) as response:
            assert response.status_code == 401

    def test_customer_denied(self, client_for, customer):
        with open_stream(client_for(customer.user)) as response:
            assert response.status_code == 403

    def test_manager_cannot_use_admin_channel(self, manager_client):
        with open_stream(manager_client, {"admin": "1"}) as response:
            assert response.status_code == 403
            assert response.json()["type"] == "access_denied"

    def test_manager_cannot_watch_other_store(self, manager_client, other_store):
        with open_stream(manager_client, {"store": str(other_store.id)}) as response:
            assert response.status_code == 403

    def test_admin_must_choose_a_channel(self, admin_client):
        with open_stream(admin_client) as response:
            assert response.status_code == 400
            assert response.json()["errors"][0]["attr"] == "store"

    def test_invalid_store_id(self, admin_client):
        with open_stream(admin_client, {"store": "nope"}) as response:
            assert response.status_code == 400

    def test_errors_negotiate_event_stream(self, manager_client):
        with open_stream(
            manager_client, {"admin": "1"}, HTTP_ACCEPT="text/event-stream"
        ) as response:
            assert response.status_code == 403
            assert response.content.startswith(b"event: error\n")
