"""Server-Sent Events stream of order events.

``GET /api/v1/events/stream?store=<id>`` streams the events of one store;
``?admin=1`` streams the cross-store admin channel.  Browsers' EventSource
cannot set headers, so the bearer token may also be passed as ``?token=``.
"""

from __future__ import annotations

import json
from uuid import UUID

import structlog
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.http import StreamingHttpResponse
from rest_framework.renderers import BaseRenderer, JSONRenderer
from rest_framework.request import Request
from rest_framework.views import APIView

from modules.accounts.authentication import QueryParamJWTAuthentication
from modules.accounts.permissions import ActorMixin, IsStaffMember, resolve_store_scope
from modules.core.clients import clients
from modules.core.exceptions import AccessDenied, ValidationFailed
from modules.realtime.dispatch import ADMIN_CHANNEL, store_channel

logger = structlog.get_logger(__name__)


class EventStreamRenderer(BaseRenderer):
    """Lets clients negotiate ``text/event-stream``; errors become an SSE frame."""

    media_type = "text/event-stream"
    format = "sse"
    charset = "utf-8"

    def render(self, data, accepted_media_type=None, renderer_context=None):
        if data is None:
            return b""
        return format_event("error", data).encode(self.charset)


def format_event(event: str, data) -> str:
    return f"event: {event}\ndata: {json.dumps(data, cls=DjangoJSONEncoder)}\n\n"


def stream(subscription):
    log = logger.bind(channels=subscription.channels)
    log.info("realtime.stream_opened")
    try:
        yield ": connected\n\n"
        for message in subscription:
            if message is None:
                yield ": ping\n\n"
                continue
            yield format_event(message.get("event", "message"), message.get("data"))
    finally:
        subscription.close()
        log.info("realtime.stream_closed")


class EventStreamView(ActorMixin, APIView):
    authentication_classes = [QueryParamJWTAuthentication]
    permission_classes = [IsStaffMember]
    renderer_classes = [JSONRenderer, EventStreamRenderer]

    def _channels(self, request: Request) -> list[str]:
        if request.query_params.get("admin") in ("1", "true"):
            if not self.actor.is_admin:
                raise AccessDenied("Only admins may subscribe to the admin channel.")
            return [ADMIN_CHANNEL]

        requested = request.query_params.get("store")
        if requested:
            try:
                requested = UUID(requested)
            except ValueError:
                raise ValidationFailed("Invalid store id.", attr="store")
        store_id = resolve_store_scope(self.actor, requested)
        if store_id is None:
            raise ValidationFailed("store or admin=1 is required.", attr="store")
        return [store_channel(store_id)]

    def get(self, request: Request) -> StreamingHttpResponse:
        """GET /api/v1/events/stream"""
        channels = self._channels(request)
        if not clients.started:
            clients.start()
        subscription = clients.publisher.subscribe(
            channels, timeout=settings.REALTIME_STREAM_HEARTBEAT_SECONDS
        )
        response = StreamingHttpResponse(
            stream(subscription), content_type="text/event-stream"
        )
        response["Cache-Control"] = "no-cache"
        response["X-Accel-Buffering"] = "no"
        return response
