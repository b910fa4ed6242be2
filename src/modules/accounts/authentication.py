"""Bearer-token authentication with a revocation denylist.

Logout stores the token's ``jti`` in the cache until the token would have
expired anyway.  A revoked token is rejected with 401.  If the cache cannot
be read the token is rejected as well: revocation must fail closed.
"""

from __future__ import annotations

import time
from typing import Optional

import structlog
from django.conf import settings
from django.core.cache import cache
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken
from rest_framework_simplejwt.tokens import AccessToken, Token

logger = structlog.get_logger(__name__)


def _denylist_key(jti: str) -> str:
    return f"{settings.TOKEN_DENYLIST_PREFIX}:{jti}"


def issue_token(user) -> AccessToken:
    """Access token carrying the role and store binding as claims."""
    token = AccessToken.for_user(user)
    token["role"] = user.role
    token["store_id"] = str(user.store_id) if user.store_id else None
    token["email"] = user.email
    return token


def revoke_token(token: Token) -> None:
    remaining = int(token["exp"] - time.time())
    if remaining <= 0:
        return
    cache.set(_denylist_key(token["jti"]), True, remaining)
    logger.info("auth.token_revoked", user_id=str(token.get("user_id")))


def is_revoked(jti: str) -> bool:
    return bool(cache.get(_denylist_key(jti)))


class DenylistJWTAuthentication(JWTAuthentication):
    def get_validated_token(self, raw_token: bytes) -> Token:
        token = super().get_validated_token(raw_token)
        jti: Optional[str] = token.get("jti")
        try:
            revoked = jti is None or is_revoked(jti)
        except Exception:
            logger.error("auth.denylist_unavailable", exc_info=True)
            raise AuthenticationFailed("Token could not be verified.")
        if revoked:
            logger.info("auth.revoked_token_used", jti=jti)
            raise InvalidToken("Token has been revoked.")
        return token


class QueryParamJWTAuthentication(DenylistJWTAuthentication):
    """Also accepts ``?token=`` for clients that cannot set headers (EventSource)."""

    def authenticate(self, request):
        result = super().authenticate(request)
        if result is not None:
            return result
        raw_token = request.query_params.get("token")
        if not raw_token:
            return None
        token = self.get_validated_token(raw_token.encode())
        return self.get_user(token), token
