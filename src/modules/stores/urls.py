"""Store URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.stores.views import StoreViewSet

router = DefaultRouter(trailing_slash=True)
router.register("stores", StoreViewSet, basename="store")

urlpatterns = router.urls
