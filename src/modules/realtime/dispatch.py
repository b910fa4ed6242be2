"""Routes order events to their channels.

Each event goes to the store's channel and to the admin channel.  With
``use_queue`` the fan-out is handed to the ``broadcast_event`` Celery task
so the request never waits on the broker; otherwise it is published inline.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog

logger = structlog.get_logger(__name__)

ADMIN_CHANNEL = "admin"


def store_channel(store_id: UUID | str) -> str:
    return f"store-{store_id}"


def channels_for(store_id: Optional[UUID | str]) -> List[str]:
    channels = [ADMIN_CHANNEL]
    if store_id:
        channels.insert(0, store_channel(store_id))
    return channels


def broadcast(publisher, event: str, payload: Dict[str, Any], store_id=None) -> None:
    message = {"event": event, "data": payload}
    for channel in channels_for(store_id):
        publisher.publish(channel, message)
    logger.info("realtime.broadcast", event_name=event, store_id=str(store_id))


class EventDispatcher:
    def __init__(self, publisher, use_queue: bool = False) -> None:
        self._publisher = publisher
        self._use_queue = use_queue

    def dispatch(
        self, event: str, payload: Dict[str, Any], store_id: Optional[UUID | str] = None
    ) -> None:
        if self._use_queue:
            from modules.realtime.tasks import broadcast_event

            broadcast_event.delay(event, payload, str(store_id) if store_id else None)
            return
        broadcast(self._publisher, event, payload, store_id)
