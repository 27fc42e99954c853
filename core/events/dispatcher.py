"""
RentOps Event Bus — Dispatcher
===============================
Announces an accepted order operation to whoever listens: audit
trails, client notifications, the quote mailer.

Handlers run one after another in subscription order. A handler that
raises is logged and recorded in the DispatchResult; the remaining
handlers still run, and the order change that produced the event
stands.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

from core.events.envelope import DomainEvent
from core.events.registry import SubscriberRegistry

logger = logging.getLogger("rentops.events")


@dataclass(frozen=True)
class SubscriberFailure:
    handler: str
    subscriber: str
    error_type: str
    error: str


@dataclass(frozen=True)
class DispatchResult:
    event_type: str
    event_id: str
    notified: int = 0
    failures: Tuple[SubscriberFailure, ...] = ()

    @property
    def failed(self) -> int:
        return len(self.failures)


def _handler_name(handler) -> str:
    return getattr(handler, "__qualname__", None) or type(handler).__name__


def dispatch(event: DomainEvent, registry: SubscriberRegistry) -> DispatchResult:
    """Deliver `event` to every matching subscriber. Never raises."""
    event_id = str(event.event_id)
    notified = 0
    failures = []

    for handler, subscriber in registry.get_subscribers(event.event_type):
        try:
            handler(event)
        except Exception as exc:
            name = _handler_name(handler)
            failures.append(SubscriberFailure(
                handler=name,
                subscriber=subscriber,
                error_type=type(exc).__name__,
                error=str(exc),
            ))
            logger.error(
                f"{subscriber} handler {name} failed on {event.event_type} "
                f"for {event.aggregate_id}: {exc}",
                exc_info=True,
            )
        else:
            notified += 1

    if notified or failures:
        logger.info(
            f"{event.event_type} for {event.aggregate_id}: "
            f"{notified} notified, {len(failures)} failed"
        )
    return DispatchResult(
        event_type=event.event_type,
        event_id=event_id,
        notified=notified,
        failures=tuple(failures),
    )
