"""Integration tests for the Celery configuration."""

import pytest

from modules.core.clients import clients

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def _celery_eager(settings):
    """Run tasks synchronously inside the test process."""
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True


class TestCeleryConfig:
    """Celery loads its configuration through Django."""

    def test_celery_app_is_importable(self):
        from config.celery import app

        assert app.main == "delivery_hub"

    def test_celery_app_exported_from_init(self):
        from config import celery_app

        assert celery_app.main == "delivery_hub"

    def test_celery_broker_url_configured(self, settings):
        assert settings.CELERY_BROKER_URL

    def test_celery_serializer_is_json(self, settings):
        assert settings.CELERY_TASK_SERIALIZER == "json"
        assert settings.CELERY_RESULT_SERIALIZER == "json"
        assert settings.CELERY_ACCEPT_CONTENT == ["json"]

    def test_celery_timezone_matches_django(self, settings):
        assert settings.CELERY_TIMEZONE == settings.TIME_ZONE

    def test_broadcast_task_registered(self):
        from config.celery import app

        app.loader.import_default_modules()
        assert "realtime.broadcast_event" in app.tasks


class TestBroadcastTask:
    def test_runs_eagerly(self):
        from modules.realtime.tasks import broadcast_event

        result = broadcast_event.delay("order-cancelled", {"id": "9"}, "5")

        assert result.successful()
        assert [channel for channel, _ in clients.publisher.published] == ["store-5", "admin"]
