"""Post-commit side effects.

Cache invalidation and event publishing must never fail or roll back the
mutation that triggered them.  ``run_after_commit`` registers each hook
with ``transaction.on_commit`` separately and wraps it, so a failing hook
is logged and the remaining hooks still run.
"""

from __future__ import annotations

from typing import Callable

import structlog
from django.db import transaction

logger = structlog.get_logger(__name__)

Hook = Callable[[], None]


def _guarded(name: str, hook: Hook) -> Hook:
    def run() -> None:
        try:
            hook()
        except Exception:
            logger.exception("hook.failed", hook=name)

    return run


def run_after_commit(*hooks: Hook, using: str | None = None) -> None:
    """Schedule ``hooks`` to run, independently, once the transaction commits.

    Outside an atomic block the hooks run immediately.
    """
    for hook in hooks:
        name = getattr(hook, "__name__", repr(hook))
        transaction.on_commit(_guarded(name, hook), using=using)
