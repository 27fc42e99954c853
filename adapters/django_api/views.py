"""
RentOps Django Adapter Views
============================
Pass-through HTTP views over the order service.

Every write follows the same path: load the snapshot, compare the
caller's expected_version, run one service operation, save with the
loaded version. Order errors map to HTTP through adapters.django_api.errors.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Callable

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from adapters.django_api.errors import error_response, map_order_error, success_response
from adapters.django_api.wiring import build_dependencies
from core.primitives.actor import Actor, ActorType
from core.primitives.money import Money
from engines.orders.errors import ConcurrentModification, OrderError
from engines.orders.ledger import RequestApproval
from engines.orders.models import (
    BillingMode,
    LineItemCategory,
    TripType,
    TruckLeg,
)
from engines.orders.order import Order
from engines.orders.serialization import order_to_dict
from engines.orders.services import OrderService

OrderOperation = Callable[[OrderService, Order, Actor, dict], Order]


# ══════════════════════════════════════════════════════════════
# PARSING
# ══════════════════════════════════════════════════════════════

def _json_error(code: str, message: str, status: int = 400) -> JsonResponse:
    return JsonResponse(
        error_response(code=code, message=message, details={}),
        status=status,
    )


def _method_not_allowed() -> JsonResponse:
    return _json_error(
        "METHOD_NOT_ALLOWED",
        "Method not allowed for this endpoint.",
        status=405,
    )


def _parse_json_body(request: HttpRequest) -> dict[str, Any]:
    if not request.body:
        return {}
    try:
        parsed = json.loads(request.body.decode("utf-8"))
    except Exception as exc:
        raise ValueError("Request body must be valid JSON.") from exc
    if not isinstance(parsed, dict):
        raise ValueError("Request body must be a JSON object.")
    return parsed


def _parse_actor(body: dict[str, Any]) -> Actor:
    actor_payload = body.get("actor")
    if not isinstance(actor_payload, dict):
        raise ValueError("actor must be an object.")
    actor_id = actor_payload["actor_id"]
    return Actor(
        actor_type=ActorType(actor_payload.get("actor_type", ActorType.HUMAN.value)),
        actor_id=actor_id,
        display_name=actor_payload.get("display_name") or actor_id,
        company_id=actor_payload.get("company_id"),
        source="django_api",
    )


def _parse_datetime(value: Any, field_name: str) -> datetime | None:
    if value in (None, ""):
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError as exc:
        raise ValueError(f"{field_name} must be an ISO 8601 datetime.") from exc


def _parse_date(value: Any, field_name: str) -> date | None:
    if value in (None, ""):
        return None
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ValueError(f"{field_name} must be an ISO 8601 date.") from exc


def _parse_money(value: Any, order: Order) -> Money | None:
    if value in (None, ""):
        return None
    if isinstance(value, float):
        raise ValueError("Amounts must be sent as strings, not floats.")
    return Money.of(str(value), order.currency)


def _parse_quantity(value: Any) -> str:
    if isinstance(value, float):
        raise ValueError("quantity must be sent as a string or integer.")
    return str(value)


# ══════════════════════════════════════════════════════════════
# DISPATCH
# ══════════════════════════════════════════════════════════════

def _order_response(order: Order, status: int = 200) -> JsonResponse:
    return JsonResponse(success_response(order_to_dict(order)), status=status)


def _dispatch_order_write(
    request: HttpRequest,
    order_id: str,
    operation: OrderOperation,
) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    try:
        body = _parse_json_body(request)
        actor = _parse_actor(body)
    except (ValueError, KeyError) as exc:
        return _json_error("INVALID_REQUEST", str(exc), status=400)

    deps = build_dependencies()
    try:
        order = deps.repository.get(order_id)
        expected = body.get("expected_version", order.version)
        if expected != order.version:
            raise ConcurrentModification(order.order_id, expected, order.version)
        updated = operation(deps.service, order, actor, body)
        saved = deps.repository.save(updated, order.version)
    except OrderError as exc:
        payload, status = map_order_error(exc)
        return JsonResponse(payload, status=status)
    except (ValueError, KeyError, TypeError) as exc:
        return _json_error("INVALID_REQUEST", str(exc), status=400)
    return _order_response(saved)


# ══════════════════════════════════════════════════════════════
# OPERATIONS
# ══════════════════════════════════════════════════════════════

def _transition(service, order, actor, body):
    return service.transition(order, body["target"], actor, notes=body.get("notes"))


def _submit(service, order, actor, body):
    return service.submit_for_approval(order, actor, notes=body.get("notes"))


def _return_to_logistics(service, order, actor, body):
    return service.return_to_logistics(order, actor, body.get("reason", ""))


def _time_windows(service, order, actor, body):
    return service.assign_time_windows(
        order, actor,
        delivery_start=_parse_datetime(body.get("delivery_start"), "delivery_start"),
        delivery_end=_parse_datetime(body.get("delivery_end"), "delivery_end"),
        pickup_start=_parse_datetime(body.get("pickup_start"), "pickup_start"),
        pickup_end=_parse_datetime(body.get("pickup_end"), "pickup_end"),
    )


def _job_number(service, order, actor, body):
    return service.set_job_number(order, actor, body.get("job_number"))


def _truck(leg: TruckLeg) -> OrderOperation:
    def _operation(service, order, actor, body):
        return service.set_truck_details(
            order, actor, leg,
            plate=body.get("plate"),
            driver_name=body.get("driver_name"),
            driver_contact=body.get("driver_contact"),
            truck_size=body.get("truck_size"),
        )
    return _operation


def _invoice(service, order, actor, body):
    return service.issue_invoice(order, actor, body.get("invoice_number", ""))


def _payment(service, order, actor, body):
    return service.record_payment(
        order, actor,
        method=body.get("method"),
        reference=body.get("reference"),
        paid_on=_parse_date(body.get("paid_on"), "paid_on"),
        notes=body.get("notes"),
    )


def _catalog_item(service, order, actor, body):
    return service.add_catalog_item(
        order, actor,
        body["service_type_id"],
        _parse_quantity(body["quantity"]),
        BillingMode(body.get("billing_mode", BillingMode.BILLABLE.value)),
        metadata=body.get("metadata"),
    )


def _custom_item(service, order, actor, body):
    return service.add_custom_item(
        order, actor,
        description=body.get("description", ""),
        category=LineItemCategory(body.get("category", LineItemCategory.OTHER.value)),
        quantity=_parse_quantity(body["quantity"]),
        unit=body.get("unit", ""),
        unit_rate=_parse_money(body.get("unit_rate"), order),
        billing_mode=BillingMode(body.get("billing_mode", BillingMode.BILLABLE.value)),
        metadata=body.get("metadata"),
    )


def _remove_item(line_item_id: str) -> OrderOperation:
    def _operation(service, order, actor, body):
        return service.remove_line_item(order, actor, line_item_id)
    return _operation


def _billing_mode(line_item_id: str) -> OrderOperation:
    def _operation(service, order, actor, body):
        return service.update_billing_mode(
            order, actor, line_item_id, BillingMode(body["billing_mode"]),
        )
    return _operation


def _request_item(service, order, actor, body):
    return service.request_line_item(
        order, actor,
        description=body.get("description", ""),
        quantity=_parse_quantity(body.get("quantity", 1)),
        category=LineItemCategory(body.get("category", LineItemCategory.OTHER.value)),
        unit=body.get("unit") or "service",
        notes=body.get("notes"),
    )


def _approve_request(request_id: str) -> OrderOperation:
    def _operation(service, order, actor, body):
        quantity = body.get("quantity")
        category = body.get("category")
        overrides = RequestApproval(
            unit_rate=_parse_money(body["unit_rate"], order),
            description=body.get("description"),
            category=LineItemCategory(category) if category else None,
            quantity=_parse_quantity(quantity) if quantity is not None else None,
            unit=body.get("unit"),
            billing_mode=BillingMode(body.get("billing_mode", BillingMode.BILLABLE.value)),
            admin_note=body.get("admin_note"),
        )
        return service.approve_line_item_request(order, actor, request_id, overrides)
    return _operation


def _reject_request(request_id: str) -> OrderOperation:
    def _operation(service, order, actor, body):
        return service.reject_line_item_request(
            order, actor, request_id, body.get("admin_note", ""),
        )
    return _operation


def _base_operations(service, order, actor, body):
    return service.set_base_operations(
        order, actor,
        _parse_quantity(body["volume"]),
        country=body["country"],
        city=body["city"],
    )


def _transport(service, order, actor, body):
    return service.set_transport(
        order, actor,
        region=body["region"],
        city_id=body["city_id"],
        trip_type=TripType(body["trip_type"]),
        vehicle_type_id=body["vehicle_type_id"],
        area=body.get("area"),
        rate_override=_parse_money(body.get("rate_override"), order),
        override_reason=body.get("override_reason"),
    )


def _vehicle(service, order, actor, body):
    return service.change_vehicle(
        order, actor, body.get("vehicle_type_id", ""), body.get("reason", ""),
    )


def _margin(service, order, actor, body):
    return service.set_margin(order, actor, _parse_quantity(body["percent"]))


def _request_reskin(service, order, actor, body):
    return service.request_reskin(
        order, actor,
        qr_code=body["qr_code"],
        order_item_id=body.get("order_item_id", ""),
        target_brand=body.get("target_brand", ""),
        client_notes=body.get("client_notes"),
    )


def _complete_reskin(reskin_id: str) -> OrderOperation:
    def _operation(service, order, actor, body):
        return service.complete_reskin(
            order, actor, reskin_id,
            new_asset_name=body.get("new_asset_name", ""),
            completion_photos=body.get("completion_photos") or (),
            cost=_parse_money(body.get("cost"), order),
            completion_notes=body.get("completion_notes"),
        )
    return _operation


def _cancel_reskin(reskin_id: str) -> OrderOperation:
    def _operation(service, order, actor, body):
        return service.cancel_reskin(order, actor, reskin_id, body.get("reason", ""))
    return _operation


# ══════════════════════════════════════════════════════════════
# VIEWS
# ══════════════════════════════════════════════════════════════

@csrf_exempt
def orders_create_view(request: HttpRequest) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    try:
        body = _parse_json_body(request)
        actor = _parse_actor(body)
        details = {
            key: body[key]
            for key in (
                "contact_name", "contact_email", "contact_phone",
                "venue_name", "venue_city", "venue_address", "job_number",
            )
            if body.get(key) is not None
        }
        for key in ("event_start_date", "event_end_date"):
            if body.get(key):
                details[key] = _parse_date(body[key], key)
    except (ValueError, KeyError) as exc:
        return _json_error("INVALID_REQUEST", str(exc), status=400)

    deps = build_dependencies()
    try:
        order = deps.service.create_order(
            actor,
            order_code=body.get("order_code", ""),
            company_id=body.get("company_id") or actor.company_id or "",
            **details,
        )
        saved = deps.repository.save(order, 0)
    except OrderError as exc:
        payload, status = map_order_error(exc)
        return JsonResponse(payload, status=status)
    return _order_response(saved, status=201)


@csrf_exempt
def order_detail_view(request: HttpRequest, order_id: str) -> JsonResponse:
    if request.method != "GET":
        return _method_not_allowed()
    try:
        order = build_dependencies().repository.get(order_id)
    except OrderError as exc:
        payload, status = map_order_error(exc)
        return JsonResponse(payload, status=status)
    return _order_response(order)


@csrf_exempt
def order_transition_view(request, order_id):
    return _dispatch_order_write(request, order_id, _transition)


@csrf_exempt
def order_submit_view(request, order_id):
    return _dispatch_order_write(request, order_id, _submit)


@csrf_exempt
def order_return_to_logistics_view(request, order_id):
    return _dispatch_order_write(request, order_id, _return_to_logistics)


@csrf_exempt
def order_time_windows_view(request, order_id):
    return _dispatch_order_write(request, order_id, _time_windows)


@csrf_exempt
def order_job_number_view(request, order_id):
    return _dispatch_order_write(request, order_id, _job_number)


@csrf_exempt
def order_truck_view(request, order_id, leg):
    try:
        truck_leg = TruckLeg(leg.upper())
    except ValueError:
        return _json_error("NOT_FOUND", f"Unknown truck leg '{leg}'.", status=404)
    return _dispatch_order_write(request, order_id, _truck(truck_leg))


@csrf_exempt
def order_invoice_view(request, order_id):
    return _dispatch_order_write(request, order_id, _invoice)


@csrf_exempt
def order_payment_view(request, order_id):
    return _dispatch_order_write(request, order_id, _payment)


@csrf_exempt
def order_catalog_item_view(request, order_id):
    return _dispatch_order_write(request, order_id, _catalog_item)


@csrf_exempt
def order_custom_item_view(request, order_id):
    return _dispatch_order_write(request, order_id, _custom_item)


@csrf_exempt
def order_remove_item_view(request, order_id, line_item_id):
    return _dispatch_order_write(request, order_id, _remove_item(line_item_id))


@csrf_exempt
def order_billing_mode_view(request, order_id, line_item_id):
    return _dispatch_order_write(request, order_id, _billing_mode(line_item_id))


@csrf_exempt
def order_request_item_view(request, order_id):
    return _dispatch_order_write(request, order_id, _request_item)


@csrf_exempt
def order_approve_request_view(request, order_id, request_id):
    return _dispatch_order_write(request, order_id, _approve_request(request_id))


@csrf_exempt
def order_reject_request_view(request, order_id, request_id):
    return _dispatch_order_write(request, order_id, _reject_request(request_id))


@csrf_exempt
def order_base_operations_view(request, order_id):
    return _dispatch_order_write(request, order_id, _base_operations)


@csrf_exempt
def order_transport_view(request, order_id):
    return _dispatch_order_write(request, order_id, _transport)


@csrf_exempt
def order_vehicle_view(request, order_id):
    return _dispatch_order_write(request, order_id, _vehicle)


@csrf_exempt
def order_margin_view(request, order_id):
    return _dispatch_order_write(request, order_id, _margin)


@csrf_exempt
def order_request_reskin_view(request, order_id):
    return _dispatch_order_write(request, order_id, _request_reskin)


@csrf_exempt
def order_complete_reskin_view(request, order_id, reskin_id):
    return _dispatch_order_write(request, order_id, _complete_reskin(reskin_id))


@csrf_exempt
def order_cancel_reskin_view(request, order_id, reskin_id):
    return _dispatch_order_write(request, order_id, _cancel_reskin(reskin_id))
