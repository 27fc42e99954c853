"""
Tests for core.permissions — roles, scoped assignments, operation registry.
"""

import pytest

from core.permissions import (
    PERMISSION_INVOICES_GENERATE,
    PERMISSION_ORDERS_SUBMIT,
    PERMISSION_QUOTES_RESPOND,
    InMemoryPermissionChecker,
    Role,
    RoleAssignment,
    resolve_required_permission,
)
from core.primitives.actor import Actor


def _checker():
    return InMemoryPermissionChecker(
        roles=(
            Role("client", (PERMISSION_ORDERS_SUBMIT, PERMISSION_QUOTES_RESPOND)),
            Role("finance", (PERMISSION_INVOICES_GENERATE,)),
        ),
        assignments=(
            RoleAssignment("client-1", "client", company_id="acme"),
            RoleAssignment("finance-1", "finance"),
        ),
    )


class TestRole:
    def test_unknown_permission_rejected(self):
        with pytest.raises(ValueError, match="not valid"):
            Role("x", ("orders:teleport",))

    def test_permissions_normalized(self):
        role = Role("x", (PERMISSION_QUOTES_RESPOND, PERMISSION_ORDERS_SUBMIT,
                          PERMISSION_ORDERS_SUBMIT))
        assert role.permissions == (PERMISSION_ORDERS_SUBMIT, PERMISSION_QUOTES_RESPOND)

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            Role("x", ())


class TestInMemoryPermissionChecker:
    def test_company_scoped_grant(self):
        checker = _checker()
        own = Actor.human("client-1", "Client", company_id="acme")
        other = Actor.human("client-1", "Client", company_id="globex")
        assert checker.can_perform(own, PERMISSION_ORDERS_SUBMIT)
        assert not checker.can_perform(other, PERMISSION_ORDERS_SUBMIT)

    def test_target_company_governs_scoped_grant(self):
        checker = _checker()
        client = Actor.human("client-1", "Client", company_id="acme")
        assert checker.can_perform(client, PERMISSION_ORDERS_SUBMIT, company_id="acme")
        assert not checker.can_perform(
            client, PERMISSION_ORDERS_SUBMIT, company_id="globex",
        )

    def test_platform_grant_covers_every_company(self):
        finance = Actor.human("finance-1", "Finance")
        assert _checker().can_perform(
            finance, PERMISSION_INVOICES_GENERATE, company_id="globex",
        )

    def test_platform_grant(self):
        checker = _checker()
        finance = Actor.human("finance-1", "Finance")
        assert checker.can_perform(finance, PERMISSION_INVOICES_GENERATE)
        assert not checker.can_perform(finance, PERMISSION_ORDERS_SUBMIT)

    def test_unknown_actor_has_nothing(self):
        assert _checker().permissions_for(Actor.human("nobody", "Nobody")) == frozenset()

    def test_assignment_to_unknown_role(self):
        with pytest.raises(ValueError, match="unknown role"):
            InMemoryPermissionChecker(
                roles=(), assignments=(RoleAssignment("a", "ghost"),),
            )


class TestOperationRegistry:
    def test_resolves_known_operation(self):
        assert resolve_required_permission("orders.invoice.issue") == PERMISSION_INVOICES_GENERATE

    def test_unknown_operation(self):
        assert resolve_required_permission("orders.teleport") is None
