"""Asynchronous realtime tasks."""

import structlog
from celery import shared_task

from modules.core.clients import clients
from modules.realtime.dispatch import broadcast

logger = structlog.get_logger(__name__)


@shared_task(name="realtime.broadcast_event")
def broadcast_event(event, payload, store_id=None):
    """Publish ``event`` to the store and admin channels."""
    if not clients.started:
        clients.start()
    broadcast(clients.publisher, event, payload, store_id)
    return {"event": event, "store_id": store_id}
