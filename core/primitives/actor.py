"""
RentOps Actor Primitive — Who Performed an Action
==================================================
Primitive Layer

The Actor Primitive captures WHO triggered an order operation. It is
threaded explicitly through every core call; nothing reads a "current
session user" from ambient context.

Actor types:
    HUMAN   — A platform user (logistics staff, platform admin, client)
    SYSTEM  — Automated action (auto-advance after reskins, migrations)

RULES (NON-NEGOTIABLE):
- Every status history entry identifies its actor
- Human actors MUST include a user id
- System actors MUST include a component name
- Whether an actor may perform an operation is decided by the
  permission collaborator, never by the actor itself

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ActorType(Enum):
    """The type of entity that performed an action."""
    HUMAN = "HUMAN"
    SYSTEM = "SYSTEM"


@dataclass(frozen=True)
class Actor:
    """
    Identifies who performed an action.

    Fields:
        actor_type:     HUMAN | SYSTEM
        actor_id:       User or component identifier
        display_name:   Human-readable name for audit display
        company_id:     Client company the actor belongs to (None for
                        platform staff and system actors)
        source:         Optional extra context (e.g. "admin-console")
    """
    actor_type: ActorType
    actor_id: str
    display_name: str
    company_id: Optional[str] = None
    source: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.actor_type, ActorType):
            raise ValueError("actor_type must be ActorType enum.")
        if not self.actor_id or not isinstance(self.actor_id, str):
            raise ValueError("actor_id must be a non-empty string.")
        if not self.display_name or not isinstance(self.display_name, str):
            raise ValueError("display_name must be a non-empty string.")

    @property
    def is_human(self) -> bool:
        return self.actor_type == ActorType.HUMAN

    @property
    def is_system(self) -> bool:
        return self.actor_type == ActorType.SYSTEM

    def to_dict(self) -> dict:
        return {
            "actor_type": self.actor_type.value,
            "actor_id": self.actor_id,
            "display_name": self.display_name,
            "company_id": self.company_id,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Actor:
        return cls(
            actor_type=ActorType(data["actor_type"]),
            actor_id=data["actor_id"],
            display_name=data.get("display_name") or data["actor_id"],
            company_id=data.get("company_id"),
            source=data.get("source"),
        )

    @classmethod
    def human(
        cls,
        user_id: str,
        display_name: str,
        company_id: Optional[str] = None,
    ) -> Actor:
        """Factory for human actors."""
        return cls(
            actor_type=ActorType.HUMAN,
            actor_id=user_id,
            display_name=display_name,
            company_id=company_id,
        )

    @classmethod
    def system(cls, component: str) -> Actor:
        """Factory for system actors (automated transitions, jobs)."""
        return cls(
            actor_type=ActorType.SYSTEM,
            actor_id=f"system:{component}",
            display_name=f"System ({component})",
            source=component,
        )
