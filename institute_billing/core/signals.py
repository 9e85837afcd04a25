"""Billing view invalidation signal.

After an invoice is created or rewritten, cached billing displays for that
student are stale. The host registers listeners (cache purge, page
revalidation, websocket push) with :func:`on_billing_stale`; the billing
core only calls :func:`notify_billing_stale`.
"""

import logging
from collections.abc import Awaitable, Callable
from uuid import UUID

logger = logging.getLogger(__name__)

BillingStaleListener = Callable[[UUID], Awaitable[None]]

_listeners: list[BillingStaleListener] = []


def on_billing_stale(listener: BillingStaleListener) -> BillingStaleListener:
    """Register a listener. Usable as a decorator."""
    if listener not in _listeners:
        _listeners.append(listener)
    return listener


def remove_listener(listener: BillingStaleListener) -> None:
    if listener in _listeners:
        _listeners.remove(listener)


async def notify_billing_stale(student_id: UUID) -> None:
    """Tell every listener the student's billing view changed.

    A failing listener is logged and skipped; invoice writes never fail
    because of it.
    """
    logger.debug("Billing view stale for student %s", student_id)
    for listener in list(_listeners):
        try:
            await listener(student_id)
        except Exception:
            logger.exception("Billing stale listener %r failed for student %s", listener, student_id)
