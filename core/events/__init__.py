"""
RentOps Event Bus — Public API
===============================
Fire-and-forget distribution of accepted order operations.
The operation is accepted before it is announced.
"""

from core.events.dispatcher import DispatchResult, SubscriberFailure, dispatch
from core.events.envelope import DomainEvent
from core.events.errors import (
    DuplicateSubscriberError,
    EventBusError,
    InvalidEventTypeFormat,
)
from core.events.registry import SubscriberRegistry

__all__ = [
    "dispatch",
    "DispatchResult",
    "SubscriberFailure",
    "DomainEvent",
    "SubscriberRegistry",
    "EventBusError",
    "InvalidEventTypeFormat",
    "DuplicateSubscriberError",
]
