"""Account URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter, SimpleRouter

from modules.accounts.views import AuthViewSet, StaffViewSet

# /api/v1/auth/login and /api/v1/auth/login/ both resolve. The router
# constructor only takes a boolean, so the optional slash is set afterwards.
auth_router = SimpleRouter()
auth_router.trailing_slash = "/?"
auth_router.register("auth", AuthViewSet, basename="auth")

router = DefaultRouter(trailing_slash=True)
router.register("staff", StaffViewSet, basename="staff")

urlpatterns = auth_router.urls + router.urls
