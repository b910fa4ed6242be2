"""Process-wide client container.

Built once in ``CoreConfig.ready()`` and closed at interpreter exit.  Views
pass the clients into the services they construct; nothing else reaches
for a global connection.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from django.conf import settings
from django.utils.module_loading import import_string

from modules.core.cache import ReportCache

logger = structlog.get_logger(__name__)


class Clients:
    def __init__(self) -> None:
        self.publisher: Optional[Any] = None
        self.cache: Optional[ReportCache] = None
        self.events: Optional[Any] = None

    @property
    def started(self) -> bool:
        return self.publisher is not None

    def start(self) -> None:
        if self.started:
            return
        from modules.realtime.dispatch import EventDispatcher

        publisher_class = import_string(settings.REALTIME_PUBLISHER)
        self.publisher = publisher_class()
        self.cache = ReportCache()
        self.events = EventDispatcher(
            self.publisher, use_queue=settings.REALTIME_DISPATCH_ASYNC
        )
        logger.info("clients.started", publisher=settings.REALTIME_PUBLISHER)

    def close(self) -> None:
        if not self.started:
            return
        try:
            self.publisher.close()
        except Exception:
            logger.warning("clients.close_failed", exc_info=True)
        self.publisher = None
        self.cache = None
        self.events = None
        logger.info("clients.closed")


clients = Clients()
