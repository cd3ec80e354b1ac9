"""Live query subscriptions.

Services call :func:`notify_changed` after each write; a subscription
re-runs its query and pushes the fresh snapshot to its callback, the way a
realtime listener would. Delivery is synchronous and in-process.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from blinker import Namespace

logger = logging.getLogger(__name__)

T = TypeVar("T")

_signals = Namespace()
ledger_changed = _signals.signal("ledger-changed")

Unsubscribe = Callable[[], None]


def notify_changed(collection: str, **keys: Any) -> None:
    ledger_changed.send(collection, **keys)


def subscribe(
    collection: str,
    fetch: Callable[[], T],
    on_snapshot: Callable[[T], None],
    *,
    where: Callable[[dict], bool] | None = None,
) -> Unsubscribe:
    """Push ``fetch()`` to ``on_snapshot`` now and after every change to ``collection``.

    ``where`` filters change notifications by their keyword keys, e.g. only
    the day record a screen is showing. Returns a callable that stops delivery.
    A subscriber that raises on a later change is logged, not propagated to
    the writer.
    """

    def _receiver(sender, **keys):
        if where is not None and not where(keys):
            return
        # the write that triggered this has already been committed
        try:
            on_snapshot(fetch())
        except Exception:
            logger.exception("subscriber of %s failed on change %s", collection, keys)

    ledger_changed.connect(_receiver, sender=collection, weak=False)
    on_snapshot(fetch())

    def unsubscribe() -> None:
        ledger_changed.disconnect(_receiver, sender=collection)
        logger.debug("unsubscribed from %s", collection)

    return unsubscribe
