"""
RentOps Permissions - Checker Protocol and In-Memory Checker
============================================================
Authentication and role storage live outside the order core. The
core only asks one question: can this actor perform this permission?
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol

from core.permissions.models import Role, RoleAssignment
from core.primitives.actor import Actor


class PermissionChecker(Protocol):
    def can_perform(
        self,
        actor: Actor,
        permission_key: str,
        company_id: Optional[str] = None,
    ) -> bool:
        """
        company_id is the company owning the record acted on; None
        falls back to the company the actor acts for.
        """
        ...


class InMemoryPermissionChecker:
    """
    Deterministic in-memory checker used for bootstrap/tests.

    A company-scoped assignment only applies to records owned by that
    company.
    """

    def __init__(
        self,
        roles: Iterable[Role] | None = None,
        assignments: Iterable[RoleAssignment] | None = None,
    ):
        self._roles: dict[str, Role] = {}
        self._assignments_by_actor: dict[str, list[RoleAssignment]] = {}

        for role in roles or ():
            if role.role_id in self._roles:
                raise ValueError(f"Duplicate role_id '{role.role_id}'.")
            self._roles[role.role_id] = role

        for assignment in assignments or ():
            if assignment.role_id not in self._roles:
                raise ValueError(
                    f"Assignment references unknown role '{assignment.role_id}'."
                )
            self._assignments_by_actor.setdefault(
                assignment.actor_id, []
            ).append(assignment)

    def get_role(self, role_id: str) -> Role | None:
        return self._roles.get(role_id)

    def permissions_for(
        self, actor: Actor, company_id: Optional[str] = None
    ) -> frozenset[str]:
        scope = company_id if company_id is not None else actor.company_id
        granted: set[str] = set()
        for assignment in self._assignments_by_actor.get(actor.actor_id, ()):
            if assignment.applies_to(scope):
                granted.update(self._roles[assignment.role_id].permissions)
        return frozenset(granted)

    def can_perform(
        self,
        actor: Actor,
        permission_key: str,
        company_id: Optional[str] = None,
    ) -> bool:
        return permission_key in self.permissions_for(actor, company_id)
