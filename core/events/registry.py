"""
RentOps Event Bus — Subscriber Registry
========================================
Controls which handlers receive which events.

Rules:
- Event types must follow dotted area.subject.action format
- A subscription ending in ".*" receives every event type under that
  prefix (e.g. "orders.order.*" for all status changes)
- Multiple subscribers per event type allowed
- Duplicate handler for same event type forbidden
- In-memory only (no DB, no files)
- Thread-safe
"""

import logging
from threading import Lock
from typing import Callable

from core.events.errors import (
    DuplicateSubscriberError,
    EventBusError,
    InvalidEventTypeFormat,
)

logger = logging.getLogger("rentops.events")

WILDCARD = "*"


class SubscriberRegistry:
    """
    In-memory registry of event subscribers.

    Each entry maps an event type (or wildcard pattern) to a list of
    (handler, subscriber) tuples, in registration order.
    """

    def __init__(self):
        self._subscribers: dict[str, list[tuple[Callable, str]]] = {}
        self._lock = Lock()

    @staticmethod
    def _validate_event_type_format(event_type: str) -> None:
        """Validate dotted area.subject.action format (wildcard tail allowed)."""
        if not event_type or not isinstance(event_type, str):
            raise InvalidEventTypeFormat(event_type or "")

        parts = event_type.strip().split(".")
        if len(parts) < 3 or any(not p for p in parts):
            raise InvalidEventTypeFormat(event_type)
        if WILDCARD in parts[:-1]:
            raise InvalidEventTypeFormat(event_type)

    @staticmethod
    def _matches(pattern: str, event_type: str) -> bool:
        if pattern == event_type:
            return True
        if pattern.endswith("." + WILDCARD):
            return event_type.startswith(pattern[:-1])
        return False

    def register_subscriber(
        self,
        event_type: str,
        handler: Callable,
        subscriber: str,
    ) -> None:
        """
        Register a handler for an event type or wildcard pattern.

        Raises:
            InvalidEventTypeFormat:  Bad event type format
            DuplicateSubscriberError: Handler already registered
        """
        self._validate_event_type_format(event_type)

        if not callable(handler):
            raise EventBusError(
                f"Handler must be callable, got {type(handler)}."
            )

        handler_name = getattr(handler, "__qualname__", str(handler))

        with self._lock:
            bucket = self._subscribers.setdefault(event_type, [])
            for existing_handler, _ in bucket:
                if existing_handler is handler:
                    raise DuplicateSubscriberError(event_type, handler_name)
            bucket.append((handler, subscriber))

        logger.info(
            f"Subscriber registered: {handler_name} → {event_type} "
            f"({subscriber})"
        )

    def get_subscribers(self, event_type: str) -> list[tuple[Callable, str]]:
        """
        All subscribers for a concrete event type: exact matches first,
        then wildcard matches. Empty list if none (not an error).
        """
        with self._lock:
            exact = list(self._subscribers.get(event_type, []))
            wildcard = [
                entry
                for pattern, entries in self._subscribers.items()
                if pattern != event_type and self._matches(pattern, event_type)
                for entry in entries
            ]
        return exact + wildcard

    def has_subscribers(self, event_type: str) -> bool:
        return bool(self.get_subscribers(event_type))

    def subscriber_count(self, event_type: str) -> int:
        return len(self.get_subscribers(event_type))
