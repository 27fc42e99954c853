"""
Tests for core.primitives.workflow — graph definitions.
"""

import pytest

from core.primitives.workflow import WorkflowDefinition


def _definition(**overrides):
    params = dict(
        name="Ticket",
        initial_state="OPEN",
        terminal_states=frozenset({"DONE"}),
        transitions={
            "OPEN": frozenset({"WORKING"}),
            "WORKING": frozenset({"REVIEW"}),
            "REVIEW": frozenset({"DONE"}),
            "DONE": frozenset(),
        },
        edge_permissions={("REVIEW", "DONE"): "tickets:close"},
        revision_edges={("REVIEW", "WORKING"): "tickets:reopen"},
    )
    params.update(overrides)
    return WorkflowDefinition(**params)


class TestWorkflowDefinition:
    def test_forward_edges(self):
        wf = _definition()
        assert wf.is_valid_transition("OPEN", "WORKING")
        assert not wf.is_valid_transition("OPEN", "DONE")

    def test_revision_edge_is_not_forward(self):
        wf = _definition()
        assert wf.is_revision_edge("REVIEW", "WORKING")
        assert not wf.is_valid_transition("REVIEW", "WORKING")
        assert wf.revision_permission("REVIEW", "WORKING") == "tickets:reopen"

    def test_required_permission(self):
        wf = _definition()
        assert wf.required_permission("REVIEW", "DONE") == "tickets:close"
        assert wf.required_permission("OPEN", "WORKING") is None

    def test_reachable_from(self):
        wf = _definition()
        assert wf.reachable_from("WORKING") == frozenset({"WORKING", "REVIEW", "DONE"})

    def test_adjacency_sorted(self):
        assert _definition().adjacency()["OPEN"] == ("WORKING",)

    def test_undeclared_target_rejected(self):
        with pytest.raises(ValueError, match="undeclared"):
            _definition(transitions={
                "OPEN": frozenset({"NOWHERE"}),
                "DONE": frozenset(),
            })

    def test_terminal_with_edges_rejected(self):
        with pytest.raises(ValueError, match="Terminal"):
            _definition(terminal_states=frozenset({"REVIEW"}))

    def test_permission_on_unknown_edge_rejected(self):
        with pytest.raises(ValueError, match="unknown edge"):
            _definition(edge_permissions={("OPEN", "DONE"): "x:y"})
