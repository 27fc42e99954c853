"""
RentOps Workflow Primitive — Data-Driven State Machine Graph
=============================================================
Primitive Layer

The Workflow Primitive describes a lifecycle as a directed graph:
state → frozenset(allowed next states). Per-edge metadata (the
permission an actor needs to take the edge) lives on the graph
instead of in scattered conditionals.

Used by:
    Orders Engine — order lifecycle (DRAFT → ... → CLOSED | DECLINED)

RULES (NON-NEGOTIABLE):
- Definitions are immutable (frozen)
- Every transition target must itself be a declared state
- Terminal states have no outgoing edges
- Revision edges (explicit back-edges, e.g. "return for revision")
  are kept apart from forward edges and are never implied by them

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

Edge = Tuple[str, str]


@dataclass(frozen=True)
class WorkflowDefinition:
    """
    Defines the valid states and transitions for a workflow type.

    Fields:
        name:             Identifier for this workflow type (e.g. "Order")
        initial_state:    Starting state for all new instances
        terminal_states:  States from which no further transitions are allowed
        transitions:      {from_state → frozenset(allowed_to_states)}
        edge_permissions: {(from_state, to_state) → permission key}
        revision_edges:   {(from_state, to_state) → permission key} for
                          explicit back-edges outside the forward graph
    """
    name: str
    initial_state: str
    terminal_states: FrozenSet[str]
    transitions: Mapping[str, FrozenSet[str]]
    edge_permissions: Mapping[Edge, str] = field(default_factory=dict)
    revision_edges: Mapping[Edge, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.name:
            raise ValueError("Workflow name must be non-empty.")
        if not self.initial_state:
            raise ValueError("initial_state must be non-empty.")
        if self.initial_state not in self.transitions:
            raise ValueError(
                f"initial_state '{self.initial_state}' not in transitions."
            )
        states = frozenset(self.transitions)
        for from_state, targets in self.transitions.items():
            unknown = set(targets) - states
            if unknown:
                raise ValueError(
                    f"State '{from_state}' points at undeclared states "
                    f"{sorted(unknown)}."
                )
        for terminal in self.terminal_states:
            if self.transitions.get(terminal):
                raise ValueError(
                    f"Terminal state '{terminal}' must have no outgoing edges."
                )
        for edge in self.edge_permissions:
            if not self.is_valid_transition(*edge):
                raise ValueError(f"Permission declared for unknown edge {edge}.")
        for from_state, to_state in self.revision_edges:
            if from_state not in states or to_state not in states:
                raise ValueError(
                    f"Revision edge {(from_state, to_state)} uses undeclared states."
                )

    @property
    def states(self) -> FrozenSet[str]:
        return frozenset(self.transitions)

    def is_valid_transition(self, from_state: str, to_state: str) -> bool:
        """Check if a forward transition is allowed by this definition."""
        allowed = self.transitions.get(from_state, frozenset())
        return to_state in allowed

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states

    def allowed_next_states(self, from_state: str) -> FrozenSet[str]:
        return self.transitions.get(from_state, frozenset())

    def required_permission(self, from_state: str, to_state: str) -> Optional[str]:
        return self.edge_permissions.get((from_state, to_state))

    def is_revision_edge(self, from_state: str, to_state: str) -> bool:
        return (from_state, to_state) in self.revision_edges

    def revision_permission(self, from_state: str, to_state: str) -> Optional[str]:
        return self.revision_edges.get((from_state, to_state))

    def reachable_from(self, state: str) -> FrozenSet[str]:
        """All states reachable from `state` along forward edges (inclusive)."""
        seen = {state}
        frontier = [state]
        while frontier:
            current = frontier.pop()
            for nxt in self.allowed_next_states(current):
                if nxt not in seen:
                    seen.add(nxt)
                    frontier.append(nxt)
        return frozenset(seen)

    def adjacency(self) -> Dict[str, Tuple[str, ...]]:
        """Deterministic, sorted view of the graph (for display and tests)."""
        return {
            state: tuple(sorted(self.transitions[state]))
            for state in sorted(self.transitions)
        }
