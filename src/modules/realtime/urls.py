from django.urls import re_path

from modules.realtime.views import EventStreamView

urlpatterns = [
    re_path(r"^events/stream/?$", EventStreamView.as_view(), name="event-stream"),
]
