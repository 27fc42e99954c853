"""
RentOps Event Bus — Event Envelope
===================================
The immutable record handed to subscribers after an order operation
has been accepted. Subscribers (notifications, audit feeds) read it;
nothing they do can change the operation's outcome.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping


@dataclass(frozen=True)
class DomainEvent:
    """
    Fields:
        event_type:   engine.domain.action[.version], e.g.
                      'orders.order.quoted.v1'
        aggregate_id: Id of the order the event concerns
        actor_id:     Who caused it
        occurred_at:  Acceptance time of the operation
        payload:      JSON-safe details
        event_id:     Unique id (generated when omitted)
    """

    event_type: str
    aggregate_id: str
    actor_id: str
    occurred_at: datetime
    payload: Mapping[str, Any] = field(default_factory=dict)
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self):
        if not self.event_type or not isinstance(self.event_type, str):
            raise ValueError("event_type must be a non-empty string.")
        if not self.aggregate_id:
            raise ValueError("aggregate_id must be non-empty.")
        if not isinstance(self.occurred_at, datetime):
            raise TypeError("occurred_at must be datetime.")
        object.__setattr__(self, "payload", dict(self.payload))

    def to_dict(self) -> dict:
        return {
            "event_id": str(self.event_id),
            "event_type": self.event_type,
            "aggregate_id": self.aggregate_id,
            "actor_id": self.actor_id,
            "occurred_at": self.occurred_at.isoformat(),
            "payload": dict(self.payload),
        }
