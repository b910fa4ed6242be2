"""Read-through cache for aggregate reports.

Entries are keyed by report name, store scope and a version counter.
Invalidating a store bumps the version of every report for that store and
for the cross-store ``all`` scope, so stale entries are never read again and
simply expire.  Invalidating with no store bumps a global generation that is
part of every key.

The cache is a side channel: any backend error on read, write or
invalidation is logged and the caller falls back to a live query.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping, Optional
from uuid import UUID

import structlog
from django.core.cache import cache as default_cache

logger = structlog.get_logger(__name__)

REPORT_TTLS: dict[str, int] = {
    "dashboard": 30,
    "daily-sales": 300,
    "weekly-sales": 300,
    "payment-methods": 300,
    "order-sources": 300,
    "delivery-performance": 300,
    "top-customers": 600,
}

ALL_STORES = "all"


class ReportCache:
    def __init__(self, backend=None, prefix: str = "cache") -> None:
        self._backend = backend if backend is not None else default_cache
        self._prefix = prefix

    @staticmethod
    def scope(store_id: Optional[UUID | str]) -> str:
        return str(store_id) if store_id else ALL_STORES

    def _version_key(self, report: str, scope: str) -> str:
        return f"{self._prefix}:version:{report}:{scope}"

    def _generation_key(self) -> str:
        return f"{self._prefix}:generation"

    def key(
        self,
        report: str,
        store_id: Optional[UUID | str] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> str:
        scope = self.scope(store_id)
        generation = self._backend.get(self._generation_key()) or 1
        version = self._backend.get(self._version_key(report, scope)) or 1
        suffix = json.dumps(dict(params or {}), sort_keys=True, default=str)
        return f"{self._prefix}:{report}:{scope}:g{generation}:v{version}:{suffix}"

    def get_or_compute(
        self,
        report: str,
        compute: Callable[[], Any],
        store_id: Optional[UUID | str] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Return the cached report, computing and storing it on a miss."""
        if report not in REPORT_TTLS:
            raise KeyError(f"Unknown report {report!r}.")

        log = logger.bind(report=report, scope=self.scope(store_id))
        try:
            key = self.key(report, store_id, params)
            cached = self._backend.get(key)
        except Exception:
            log.warning("cache.read_failed", exc_info=True)
            return compute()

        if cached is not None:
            log.debug("cache.hit")
            return cached

        value = compute()
        try:
            self._backend.set(key, value, REPORT_TTLS[report])
        except Exception:
            log.warning("cache.write_failed", exc_info=True)
        return value

    def _bump(self, key: str) -> None:
        self._backend.add(key, 1, None)
        self._backend.incr(key)

    def invalidate_store(self, store_id: Optional[UUID | str] = None) -> None:
        """Invalidate every report of ``store_id`` and the cross-store set.

        Without a store the whole report set is invalidated.
        """
        try:
            if not store_id:
                self._bump(self._generation_key())
            else:
                for report in REPORT_TTLS:
                    self._bump(self._version_key(report, self.scope(store_id)))
                    self._bump(self._version_key(report, ALL_STORES))
        except Exception:
            logger.warning(
                "cache.invalidate_failed",
                store_id=str(store_id) if store_id else None,
                exc_info=True,
            )
            return
        logger.info(
            "cache.invalidated", store_id=str(store_id) if store_id else None
        )
