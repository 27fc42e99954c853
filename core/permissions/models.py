"""
RentOps Permissions - Immutable Role/Assignment Models
======================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.permissions.constants import VALID_PERMISSIONS


@dataclass(frozen=True)
class Role:
    role_id: str
    permissions: tuple[str, ...]

    def __post_init__(self):
        if not self.role_id or not isinstance(self.role_id, str):
            raise ValueError("role_id must be a non-empty string.")

        if not isinstance(self.permissions, tuple):
            raise ValueError("permissions must be a tuple.")

        normalized = tuple(sorted(set(self.permissions)))
        if not normalized:
            raise ValueError("permissions must contain at least one value.")

        for permission in normalized:
            if not isinstance(permission, str) or not permission:
                raise ValueError("permission values must be non-empty strings.")
            if permission not in VALID_PERMISSIONS:
                raise ValueError(
                    f"permission '{permission}' not valid. "
                    f"Must be one of: {sorted(VALID_PERMISSIONS)}"
                )

        object.__setattr__(self, "permissions", normalized)


@dataclass(frozen=True)
class RoleAssignment:
    """
    Grants a role to an actor. company_id scopes the grant to one
    client company; None grants platform-wide.
    """
    actor_id: str
    role_id: str
    company_id: Optional[str] = None

    def __post_init__(self):
        if not self.actor_id or not isinstance(self.actor_id, str):
            raise ValueError("actor_id must be a non-empty string.")

        if not self.role_id or not isinstance(self.role_id, str):
            raise ValueError("role_id must be a non-empty string.")

    def applies_to(self, company_id: Optional[str]) -> bool:
        return self.company_id is None or self.company_id == company_id
