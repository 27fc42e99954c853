"""
RentOps Orders Engine — Order State Machine
============================================
The order lifecycle as a data-driven graph. Each forward edge carries
the permission an actor needs to take it; the only back-edge
(PENDING_APPROVAL → PRICING_REVIEW, "return to logistics") is a
revision edge that transition() never accepts.

    DRAFT → SUBMITTED → PRICING_REVIEW → QUOTED | PENDING_APPROVAL
    PENDING_APPROVAL → QUOTED
    QUOTED → CONFIRMED | DECLINED (terminal)
    CONFIRMED → IN_PREPARATION → READY_FOR_DELIVERY → IN_TRANSIT
      → DELIVERED → IN_USE → AWAITING_RETURN → CLOSED (terminal)

All functions here are pure. They take the acting Actor and the
acceptance time explicitly and return a new Order.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import FrozenSet, Optional, Union

from core.permissions import (
    PERMISSION_ORDERS_SUBMIT,
    PERMISSION_ORDERS_UPDATE_STATUS,
    PERMISSION_PRICING_PMG_APPROVE,
    PERMISSION_PRICING_REVIEW,
    PERMISSION_QUOTES_RESPOND,
    PermissionChecker,
)
from core.primitives.actor import Actor
from core.primitives.workflow import WorkflowDefinition
from engines.orders.errors import (
    InvalidTimeWindow,
    InvalidTransition,
    MissingFields,
    OrderLocked,
    TerminalState,
    Unauthorized,
)
from engines.orders.models import OrderStatus, StatusHistoryEntry, TimeWindow
from engines.orders.order import Order

logger = logging.getLogger("rentops.orders")

S = OrderStatus

ORDER_WORKFLOW = WorkflowDefinition(
    name="Order",
    initial_state=S.DRAFT.value,
    terminal_states=frozenset({S.DECLINED.value, S.CLOSED.value}),
    transitions={
        S.DRAFT.value: frozenset({S.SUBMITTED.value}),
        S.SUBMITTED.value: frozenset({S.PRICING_REVIEW.value}),
        S.PRICING_REVIEW.value: frozenset({
            S.QUOTED.value, S.PENDING_APPROVAL.value,
        }),
        S.PENDING_APPROVAL.value: frozenset({S.QUOTED.value}),
        S.QUOTED.value: frozenset({S.CONFIRMED.value, S.DECLINED.value}),
        S.DECLINED.value: frozenset(),
        S.CONFIRMED.value: frozenset({S.IN_PREPARATION.value}),
        S.IN_PREPARATION.value: frozenset({S.READY_FOR_DELIVERY.value}),
        S.READY_FOR_DELIVERY.value: frozenset({S.IN_TRANSIT.value}),
        S.IN_TRANSIT.value: frozenset({S.DELIVERED.value}),
        S.DELIVERED.value: frozenset({S.IN_USE.value}),
        S.IN_USE.value: frozenset({S.AWAITING_RETURN.value}),
        S.AWAITING_RETURN.value: frozenset({S.CLOSED.value}),
        S.CLOSED.value: frozenset(),
    },
    edge_permissions={
        (S.DRAFT.value, S.SUBMITTED.value): PERMISSION_ORDERS_SUBMIT,
        (S.SUBMITTED.value, S.PRICING_REVIEW.value): PERMISSION_PRICING_REVIEW,
        (S.PRICING_REVIEW.value, S.PENDING_APPROVAL.value): PERMISSION_PRICING_REVIEW,
        (S.PRICING_REVIEW.value, S.QUOTED.value): PERMISSION_PRICING_PMG_APPROVE,
        (S.PENDING_APPROVAL.value, S.QUOTED.value): PERMISSION_PRICING_PMG_APPROVE,
        (S.QUOTED.value, S.CONFIRMED.value): PERMISSION_QUOTES_RESPOND,
        (S.QUOTED.value, S.DECLINED.value): PERMISSION_QUOTES_RESPOND,
        (S.CONFIRMED.value, S.IN_PREPARATION.value): PERMISSION_ORDERS_UPDATE_STATUS,
        (S.IN_PREPARATION.value, S.READY_FOR_DELIVERY.value): PERMISSION_ORDERS_UPDATE_STATUS,
        (S.READY_FOR_DELIVERY.value, S.IN_TRANSIT.value): PERMISSION_ORDERS_UPDATE_STATUS,
        (S.IN_TRANSIT.value, S.DELIVERED.value): PERMISSION_ORDERS_UPDATE_STATUS,
        (S.DELIVERED.value, S.IN_USE.value): PERMISSION_ORDERS_UPDATE_STATUS,
        (S.IN_USE.value, S.AWAITING_RETURN.value): PERMISSION_ORDERS_UPDATE_STATUS,
        (S.AWAITING_RETURN.value, S.CLOSED.value): PERMISSION_ORDERS_UPDATE_STATUS,
    },
    revision_edges={
        (S.PENDING_APPROVAL.value, S.PRICING_REVIEW.value): PERMISSION_PRICING_PMG_APPROVE,
    },
)

# Statuses at which delivery / pickup windows may be assigned.
SCHEDULABLE_STATUSES: FrozenSet[OrderStatus] = frozenset(
    OrderStatus(state)
    for state in ORDER_WORKFLOW.reachable_from(S.CONFIRMED.value)
)

RETURN_REASON_MIN_LENGTH = 10


def allowed_targets(order: Order) -> FrozenSet[OrderStatus]:
    return frozenset(
        OrderStatus(state)
        for state in ORDER_WORKFLOW.allowed_next_states(order.status.value)
    )


def _coerce_status(target: Union[OrderStatus, str], current: OrderStatus) -> OrderStatus:
    if isinstance(target, OrderStatus):
        return target
    try:
        return OrderStatus(target)
    except ValueError:
        raise InvalidTransition(
            f"Unknown status '{target}' requested from {current.value}.",
            policy_name="order_transition",
        ) from None


def _append_history(
    order: Order,
    status: OrderStatus,
    actor: Actor,
    at: datetime,
    notes: Optional[str],
) -> Order:
    entry = StatusHistoryEntry(
        status=status, timestamp=at, actor_id=actor.actor_id, notes=notes,
    )
    return replace(
        order,
        status=status,
        status_history=order.status_history + (entry,),
        updated_at=at,
    )


def transition(
    order: Order,
    target: Union[OrderStatus, str],
    actor: Actor,
    *,
    permissions: PermissionChecker,
    at: datetime,
    notes: Optional[str] = None,
) -> Order:
    """
    Move the order to `target` along a forward edge.

    Checked in order: terminal source, edge legality, actor permission.
    No side effects beyond the status change and its history entry.
    """
    current = order.status
    if ORDER_WORKFLOW.is_terminal(current.value):
        raise TerminalState(
            f"Order {order.order_code} is {current.value}; "
            f"no further transitions are allowed.",
            policy_name="order_transition",
        )

    target_status = _coerce_status(target, current)
    if not ORDER_WORKFLOW.is_valid_transition(current.value, target_status.value):
        allowed = sorted(ORDER_WORKFLOW.allowed_next_states(current.value))
        raise InvalidTransition(
            f"Cannot transition from {current.value} to {target_status.value}. "
            f"Allowed: {allowed}.",
            policy_name="order_transition",
        )

    permission = ORDER_WORKFLOW.required_permission(current.value, target_status.value)
    if permission is not None and not permissions.can_perform(
        actor, permission, company_id=order.company_id
    ):
        raise Unauthorized(
            f"Actor '{actor.actor_id}' lacks '{permission}' for "
            f"{current.value} → {target_status.value}.",
            policy_name="order_transition",
        )

    logger.info(
        f"Order {order.order_code}: {current.value} → {target_status.value} "
        f"by {actor.actor_id}"
    )
    return _append_history(order, target_status, actor, at, notes)


def advance_if_allowed(
    order: Order,
    target: OrderStatus,
    actor: Actor,
    *,
    at: datetime,
    notes: Optional[str] = None,
) -> Order:
    """
    System-driven advancement: take the edge when the graph allows it,
    otherwise return the order unchanged. No permission check; only
    callers acting on behalf of the platform use this.
    """
    if not ORDER_WORKFLOW.is_valid_transition(order.status.value, target.value):
        logger.debug(
            f"Order {order.order_code}: no auto-advance "
            f"{order.status.value} → {target.value}"
        )
        return order
    logger.info(
        f"Order {order.order_code}: auto-advanced {order.status.value} → "
        f"{target.value} by {actor.actor_id}"
    )
    return _append_history(order, target, actor, at, notes)


def return_to_logistics(
    order: Order,
    actor: Actor,
    reason: str,
    *,
    permissions: PermissionChecker,
    at: datetime,
) -> Order:
    """
    Send a PENDING_APPROVAL order back to PRICING_REVIEW for revision.
    The reason is recorded as the history note.
    """
    source, target = S.PENDING_APPROVAL, S.PRICING_REVIEW
    if order.status != source:
        raise InvalidTransition(
            f"Only {source.value} orders can be returned to logistics; "
            f"order {order.order_code} is {order.status.value}.",
            policy_name="return_to_logistics",
        )
    cleaned = (reason or "").strip()
    if len(cleaned) < RETURN_REASON_MIN_LENGTH:
        raise MissingFields(
            f"A return reason of at least {RETURN_REASON_MIN_LENGTH} "
            f"characters is required.",
            policy_name="return_to_logistics",
        )
    permission = ORDER_WORKFLOW.revision_permission(source.value, target.value)
    if permission is not None and not permissions.can_perform(
        actor, permission, company_id=order.company_id
    ):
        raise Unauthorized(
            f"Actor '{actor.actor_id}' lacks '{permission}' to return "
            f"order {order.order_code} to logistics.",
            policy_name="return_to_logistics",
        )

    logger.info(
        f"Order {order.order_code} returned to logistics by {actor.actor_id}"
    )
    return _append_history(order, target, actor, at, cleaned)


def assign_time_windows(
    order: Order,
    *,
    delivery_start: Optional[datetime],
    delivery_end: Optional[datetime],
    pickup_start: Optional[datetime],
    pickup_end: Optional[datetime],
    at: datetime,
) -> Order:
    """
    Set delivery and pickup windows together.

    Each window must satisfy start < end. Whether delivery ends before
    pickup starts is deliberately left to the caller.
    """
    if order.status not in SCHEDULABLE_STATUSES:
        raise OrderLocked(
            f"Time windows can only be assigned from CONFIRMED onward; "
            f"order {order.order_code} is {order.status.value}.",
            policy_name="assign_time_windows",
        )

    fields = {
        "delivery_start": delivery_start,
        "delivery_end": delivery_end,
        "pickup_start": pickup_start,
        "pickup_end": pickup_end,
    }
    missing = [name for name, value in fields.items() if value is None]
    if missing:
        raise MissingFields(
            f"Delivery and pickup windows must be set together; "
            f"missing: {', '.join(missing)}.",
            policy_name="assign_time_windows",
        )
    if delivery_start >= delivery_end:
        raise InvalidTimeWindow(
            "Delivery window start must be before its end.",
            policy_name="assign_time_windows",
        )
    if pickup_start >= pickup_end:
        raise InvalidTimeWindow(
            "Pickup window start must be before its end.",
            policy_name="assign_time_windows",
        )

    return replace(
        order,
        delivery_window=TimeWindow(start=delivery_start, end=delivery_end),
        pickup_window=TimeWindow(start=pickup_start, end=pickup_end),
        updated_at=at,
    )
