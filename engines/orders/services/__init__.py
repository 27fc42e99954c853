"""RentOps Orders Engine - application service."""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Callable, Iterable, Mapping, Optional

from core.config import InMemoryPricingConfigStore, PricingConfigStore
from core.events import DomainEvent, SubscriberRegistry, dispatch
from core.permissions import PermissionChecker, resolve_required_permission
from core.primitives.actor import Actor
from core.primitives.money import DecimalInput, Money
from core.time import Clock, SystemClock
from engines.orders import adjustments, financial, ledger, logistics, reskin
from engines.orders import state_machine
from engines.orders.catalog import ServiceCatalog
from engines.orders.errors import MissingFields, OrderError, Unauthorized
from engines.orders.events import (
    ORDERS_LINE_ITEM_ADDED_V1,
    ORDERS_LINE_ITEM_REMOVED_V1,
    ORDERS_LINE_ITEM_REQUEST_APPROVED_V1,
    ORDERS_LINE_ITEM_REQUEST_REJECTED_V1,
    ORDERS_RESKIN_CANCELLED_V1,
    ORDERS_RESKIN_COMPLETED_V1,
    build_invoice_issued_event,
    build_line_item_event,
    build_line_item_request_event,
    build_order_created_event,
    build_payment_recorded_event,
    build_reskin_event,
    build_status_changed_event,
)
from engines.orders.ledger import RequestApproval
from engines.orders.models import (
    BillingMode,
    LineItemCategory,
    OrderStatus,
    TripType,
    TruckLeg,
)
from engines.orders.order import Order, create_order
from engines.orders.policies import DEFAULT_EDITABLE_STATUSES
from engines.orders.rates import BaseRateLookup, TransportRateLookup
from engines.orders.reskin import AssetRegistry

logger = logging.getLogger("rentops.orders")

SubmitRouting = Callable[[Order], OrderStatus]

SUBMIT_TARGETS = frozenset({OrderStatus.PENDING_APPROVAL, OrderStatus.QUOTED})


def route_for_approval(order: Order) -> OrderStatus:
    """Every submission goes through PMG approval."""
    return OrderStatus.PENDING_APPROVAL


def route_direct_to_quote(order: Order) -> OrderStatus:
    """Skip approval and quote the client straight away."""
    return OrderStatus.QUOTED


def _new_id() -> str:
    return uuid.uuid4().hex


class OrderService:
    """
    Entry point for callers (HTTP adapter, jobs). Resolves the
    acceptance time from the clock, checks operation permissions,
    delegates to the pure order functions, then announces the result.

    The service never persists: callers load and save snapshots
    through the repository.
    """

    def __init__(
        self,
        *,
        permissions: PermissionChecker,
        base_rates: BaseRateLookup,
        transport_rates: TransportRateLookup,
        catalog: ServiceCatalog,
        assets: AssetRegistry,
        clock: Clock | None = None,
        event_registry: SubscriberRegistry | None = None,
        config_store: PricingConfigStore | None = None,
        editable_statuses: Iterable[OrderStatus] = DEFAULT_EDITABLE_STATUSES,
        submit_routing: SubmitRouting = route_for_approval,
        reskin_advance_to: Optional[OrderStatus] = None,
        id_factory: Callable[[], str] = _new_id,
    ):
        self._permissions = permissions
        self._base_rates = base_rates
        self._transport_rates = transport_rates
        self._catalog = catalog
        self._assets = assets
        self._clock = clock or SystemClock()
        self._event_registry = event_registry
        self._config_store = config_store or InMemoryPricingConfigStore()
        self._editable_statuses = frozenset(editable_statuses)
        self._submit_routing = submit_routing
        self._reskin_advance_to = reskin_advance_to
        self._id_factory = id_factory

    # ── Plumbing ──────────────────────────────────────────────

    def _now(self) -> datetime:
        return self._clock.now_utc()

    def _authorize(self, actor: Actor, operation: str, company_id: str) -> None:
        permission = resolve_required_permission(operation)
        if permission is None:
            raise ValueError(f"No permission mapping for operation '{operation}'.")
        if not self._permissions.can_perform(actor, permission, company_id=company_id):
            raise Unauthorized(
                f"Actor '{actor.actor_id}' lacks '{permission}' for {operation} "
                f"on company '{company_id}'.",
                policy_name="operation_permission",
            )

    def _require_same_company(self, actor: Actor, order: Order, operation: str) -> None:
        """Company-bound actors only touch their own company's orders."""
        if actor.company_id is not None and actor.company_id != order.company_id:
            raise Unauthorized(
                f"Actor '{actor.actor_id}' of company '{actor.company_id}' "
                f"cannot {operation} on order {order.order_code}.",
                policy_name="company_scope",
            )

    @contextmanager
    def _operation(self, name: str, order: Optional[Order] = None):
        try:
            yield
        except OrderError as exc:
            subject = f"order {order.order_code}" if order is not None else "new order"
            logger.warning(f"{name} rejected for {subject}: [{exc.code}] {exc.message}")
            raise

    def _emit(self, event: DomainEvent) -> None:
        if self._event_registry is None:
            return
        dispatch(event, self._event_registry)

    def _emit_status_change(self, before: Order, after: Order) -> None:
        if len(after.status_history) > len(before.status_history):
            self._emit(build_status_changed_event(after, before.status))

    # ── Lifecycle ─────────────────────────────────────────────

    def create_order(
        self,
        actor: Actor,
        *,
        order_code: str,
        company_id: str,
        order_id: Optional[str] = None,
        **details: Any,
    ) -> Order:
        with self._operation("create_order"):
            self._authorize(actor, "orders.order.create", company_id)
            rules = self._config_store.get_pricing_rules(company_id)
            order = create_order(
                order_id=order_id or self._id_factory(),
                order_code=order_code,
                company_id=company_id,
                actor=actor,
                at=self._now(),
                currency=rules.currency,
                margin_percent=rules.default_margin,
                **details,
            )
        logger.info(f"Order {order.order_code} created by {actor.actor_id}")
        self._emit(build_order_created_event(order))
        return order

    def transition(
        self,
        order: Order,
        target: OrderStatus | str,
        actor: Actor,
        notes: Optional[str] = None,
    ) -> Order:
        with self._operation("transition", order):
            updated = state_machine.transition(
                order, target, actor,
                permissions=self._permissions, at=self._now(), notes=notes,
            )
        self._emit_status_change(order, updated)
        return updated

    def submit_for_approval(
        self, order: Order, actor: Actor, notes: Optional[str] = None
    ) -> Order:
        """
        Leave PRICING_REVIEW for the status chosen by the routing
        policy. The order must be fully priced.
        """
        target = self._submit_routing(order)
        if target not in SUBMIT_TARGETS:
            raise ValueError(
                f"Submit routing returned {target}; expected one of "
                f"{sorted(s.value for s in SUBMIT_TARGETS)}."
            )
        with self._operation("submit_for_approval", order):
            if order.status == OrderStatus.PRICING_REVIEW and order.pricing is None:
                raise MissingFields(
                    f"Order {order.order_code} needs base operations and "
                    f"transport pricing before submission.",
                    policy_name="submit_for_approval",
                )
        return self.transition(order, target, actor, notes=notes)

    def return_to_logistics(self, order: Order, actor: Actor, reason: str) -> Order:
        with self._operation("return_to_logistics", order):
            updated = state_machine.return_to_logistics(
                order, actor, reason,
                permissions=self._permissions, at=self._now(),
            )
        self._emit_status_change(order, updated)
        return updated

    # ── Logistics ─────────────────────────────────────────────

    def assign_time_windows(
        self,
        order: Order,
        actor: Actor,
        *,
        delivery_start: Optional[datetime],
        delivery_end: Optional[datetime],
        pickup_start: Optional[datetime],
        pickup_end: Optional[datetime],
    ) -> Order:
        with self._operation("assign_time_windows", order):
            self._authorize(actor, "orders.windows.assign", order.company_id)
            return state_machine.assign_time_windows(
                order,
                delivery_start=delivery_start,
                delivery_end=delivery_end,
                pickup_start=pickup_start,
                pickup_end=pickup_end,
                at=self._now(),
            )

    def set_job_number(
        self, order: Order, actor: Actor, job_number: Optional[str]
    ) -> Order:
        with self._operation("set_job_number", order):
            self._authorize(actor, "orders.job_number.set", order.company_id)
            return logistics.set_job_number(order, job_number, at=self._now())

    def set_truck_details(
        self,
        order: Order,
        actor: Actor,
        leg: TruckLeg,
        *,
        plate: Optional[str],
        driver_name: Optional[str],
        driver_contact: Optional[str],
        truck_size: Optional[str] = None,
    ) -> Order:
        with self._operation("set_truck_details", order):
            self._authorize(actor, "orders.truck.set", order.company_id)
            return logistics.set_truck_details(
                order, leg,
                plate=plate,
                driver_name=driver_name,
                driver_contact=driver_contact,
                truck_size=truck_size,
                at=self._now(),
            )

    # ── Financial ─────────────────────────────────────────────

    def issue_invoice(self, order: Order, actor: Actor, invoice_number: str) -> Order:
        with self._operation("issue_invoice", order):
            self._authorize(actor, "orders.invoice.issue", order.company_id)
            updated = financial.issue_invoice(order, invoice_number, at=self._now())
        self._emit(build_invoice_issued_event(updated, actor.actor_id))
        return updated

    def record_payment(
        self,
        order: Order,
        actor: Actor,
        *,
        method: Optional[str],
        reference: Optional[str],
        paid_on: Optional[date],
        notes: Optional[str] = None,
    ) -> Order:
        with self._operation("record_payment", order):
            self._authorize(actor, "orders.payment.record", order.company_id)
            updated = financial.record_payment(
                order,
                method=method,
                reference=reference,
                paid_on=paid_on,
                actor=actor,
                at=self._now(),
                notes=notes,
            )
        self._emit(build_payment_recorded_event(updated))
        return updated

    # ── Line items ────────────────────────────────────────────

    def add_catalog_item(
        self,
        order: Order,
        actor: Actor,
        service_type_id: str,
        quantity: DecimalInput,
        billing_mode: BillingMode = BillingMode.BILLABLE,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> Order:
        with self._operation("add_catalog_item", order):
            self._authorize(actor, "orders.line_item.add", order.company_id)
            updated = ledger.add_catalog_item(
                order, service_type_id, quantity, billing_mode,
                catalog=self._catalog,
                line_item_id=self._id_factory(),
                actor=actor,
                at=self._now(),
                metadata=metadata,
                editable_statuses=self._editable_statuses,
            )
        self._emit(build_line_item_event(
            ORDERS_LINE_ITEM_ADDED_V1, updated, updated.line_items[-1], actor.actor_id,
        ))
        return updated

    def add_custom_item(
        self,
        order: Order,
        actor: Actor,
        *,
        description: str,
        category: LineItemCategory,
        quantity: DecimalInput,
        unit: str,
        unit_rate: Money,
        billing_mode: BillingMode = BillingMode.BILLABLE,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> Order:
        with self._operation("add_custom_item", order):
            self._authorize(actor, "orders.line_item.add", order.company_id)
            updated = ledger.add_custom_item(
                order, description, category, quantity, unit, unit_rate, billing_mode,
                line_item_id=self._id_factory(),
                actor=actor,
                at=self._now(),
                metadata=metadata,
                editable_statuses=self._editable_statuses,
            )
        self._emit(build_line_item_event(
            ORDERS_LINE_ITEM_ADDED_V1, updated, updated.line_items[-1], actor.actor_id,
        ))
        return updated

    def request_line_item(
        self,
        order: Order,
        actor: Actor,
        *,
        description: str,
        quantity: DecimalInput,
        category: LineItemCategory = LineItemCategory.OTHER,
        unit: str = ledger.DEFAULT_REQUEST_UNIT,
        notes: Optional[str] = None,
    ) -> Order:
        with self._operation("request_line_item", order):
            self._require_same_company(actor, order, "request_line_item")
            return ledger.request_line_item(
                order,
                request_id=self._id_factory(),
                description=description,
                quantity=quantity,
                category=category,
                unit=unit,
                notes=notes,
                actor=actor,
                at=self._now(),
            )

    def approve_line_item_request(
        self,
        order: Order,
        actor: Actor,
        request_id: str,
        overrides: RequestApproval,
    ) -> Order:
        with self._operation("approve_line_item_request", order):
            self._authorize(actor, "orders.line_item_request.approve", order.company_id)
            updated = ledger.approve_line_item_request(
                order, request_id, overrides,
                line_item_id=self._id_factory(),
                actor=actor,
                at=self._now(),
            )
        self._emit(build_line_item_request_event(
            ORDERS_LINE_ITEM_REQUEST_APPROVED_V1,
            updated,
            updated.find_line_item_request(request_id),
        ))
        return updated

    def reject_line_item_request(
        self, order: Order, actor: Actor, request_id: str, admin_note: str
    ) -> Order:
        with self._operation("reject_line_item_request", order):
            self._authorize(actor, "orders.line_item_request.reject", order.company_id)
            updated = ledger.reject_line_item_request(
                order, request_id, admin_note, actor=actor, at=self._now(),
            )
        self._emit(build_line_item_request_event(
            ORDERS_LINE_ITEM_REQUEST_REJECTED_V1,
            updated,
            updated.find_line_item_request(request_id),
        ))
        return updated

    def remove_line_item(self, order: Order, actor: Actor, line_item_id: str) -> Order:
        with self._operation("remove_line_item", order):
            self._authorize(actor, "orders.line_item.remove", order.company_id)
            item = order.find_line_item(line_item_id)
            updated = ledger.remove_line_item(
                order, line_item_id,
                at=self._now(),
                editable_statuses=self._editable_statuses,
            )
        self._emit(build_line_item_event(
            ORDERS_LINE_ITEM_REMOVED_V1, updated, item, actor.actor_id,
        ))
        return updated

    def update_billing_mode(
        self,
        order: Order,
        actor: Actor,
        line_item_id: str,
        billing_mode: BillingMode,
    ) -> Order:
        with self._operation("update_billing_mode", order):
            self._authorize(actor, "orders.line_item.billing_mode", order.company_id)
            return ledger.update_billing_mode(
                order, line_item_id, billing_mode,
                at=self._now(),
                editable_statuses=self._editable_statuses,
            )

    # ── Pricing ───────────────────────────────────────────────

    def set_base_operations(
        self,
        order: Order,
        actor: Actor,
        volume: DecimalInput,
        *,
        country: str,
        city: str,
    ) -> Order:
        with self._operation("set_base_operations", order):
            self._authorize(actor, "orders.pricing.base_operations", order.company_id)
            return adjustments.set_base_operations(
                order, volume,
                country=country,
                city=city,
                lookup=self._base_rates,
                at=self._now(),
                editable_statuses=self._editable_statuses,
            )

    def set_transport(
        self,
        order: Order,
        actor: Actor,
        *,
        region: str,
        city_id: str,
        trip_type: TripType,
        vehicle_type_id: str,
        area: Optional[str] = None,
        rate_override: Optional[Money] = None,
        override_reason: Optional[str] = None,
    ) -> Order:
        with self._operation("set_transport", order):
            self._authorize(actor, "orders.pricing.transport", order.company_id)
            return adjustments.set_transport(
                order,
                region=region,
                city_id=city_id,
                trip_type=trip_type,
                vehicle_type_id=vehicle_type_id,
                lookup=self._transport_rates,
                at=self._now(),
                area=area,
                rate_override=rate_override,
                override_reason=override_reason,
                editable_statuses=self._editable_statuses,
            )

    def change_vehicle(
        self, order: Order, actor: Actor, vehicle_type_id: str, reason: str
    ) -> Order:
        with self._operation("change_vehicle", order):
            self._authorize(actor, "orders.pricing.vehicle", order.company_id)
            return adjustments.change_vehicle(
                order, vehicle_type_id, reason,
                lookup=self._transport_rates,
                at=self._now(),
                editable_statuses=self._editable_statuses,
            )

    def set_margin(self, order: Order, actor: Actor, percent: DecimalInput) -> Order:
        with self._operation("set_margin", order):
            self._authorize(actor, "orders.pricing.margin", order.company_id)
            return adjustments.set_margin(
                order, percent,
                rules=self._config_store.get_pricing_rules(order.company_id),
                at=self._now(),
                editable_statuses=self._editable_statuses,
            )

    # ── Reskins ───────────────────────────────────────────────

    def request_reskin(
        self,
        order: Order,
        actor: Actor,
        *,
        qr_code: str,
        order_item_id: str,
        target_brand: str,
        client_notes: Optional[str] = None,
    ) -> Order:
        with self._operation("request_reskin", order):
            self._require_same_company(actor, order, "request_reskin")
            asset = self._assets.resolve_asset_by_qr(qr_code)
            return reskin.request_reskin(
                order, asset,
                reskin_id=self._id_factory(),
                order_item_id=order_item_id,
                target_brand=target_brand,
                client_notes=client_notes,
                at=self._now(),
            )

    def complete_reskin(
        self,
        order: Order,
        actor: Actor,
        reskin_id: str,
        *,
        new_asset_name: str,
        completion_photos: Iterable[str],
        cost: Optional[Money],
        completion_notes: Optional[str] = None,
    ) -> Order:
        with self._operation("complete_reskin", order):
            self._authorize(actor, "orders.reskin.complete", order.company_id)
            updated = reskin.complete_reskin(
                order, reskin_id,
                new_asset_name=new_asset_name,
                completion_photos=completion_photos,
                cost=cost,
                completion_notes=completion_notes,
                line_item_id=self._id_factory(),
                assets=self._assets,
                actor=actor,
                at=self._now(),
                advance_to=self._reskin_advance_to,
            )
        self._emit(build_reskin_event(
            ORDERS_RESKIN_COMPLETED_V1, updated, updated.find_reskin(reskin_id),
        ))
        self._emit_status_change(order, updated)
        return updated

    def cancel_reskin(
        self, order: Order, actor: Actor, reskin_id: str, reason: str
    ) -> Order:
        with self._operation("cancel_reskin", order):
            self._authorize(actor, "orders.reskin.cancel", order.company_id)
            updated = reskin.cancel_reskin(
                order, reskin_id, reason,
                assets=self._assets,
                actor=actor,
                at=self._now(),
                advance_to=self._reskin_advance_to,
            )
        self._emit(build_reskin_event(
            ORDERS_RESKIN_CANCELLED_V1, updated, updated.find_reskin(reskin_id),
        ))
        self._emit_status_change(order, updated)
        return updated
