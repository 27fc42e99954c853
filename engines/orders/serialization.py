"""
RentOps Orders Engine — Snapshot Serialization
===============================================
Order ⇄ JSON-safe dict. Decimals travel as strings, datetimes and
dates as ISO 8601, enums by value. The derived pricing breakdown is
included on the way out for readers and ignored on the way in.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from core.primitives.money import DEFAULT_CURRENCY, Money, Percentage, Volume
from engines.orders.models import (
    BaseOperations,
    BillingMode,
    FinancialStatus,
    LineItem,
    LineItemCategory,
    LineItemRequest,
    LineItemRequestStatus,
    LineItemSource,
    OrderStatus,
    PaymentRecord,
    ReskinRequest,
    ReskinStatus,
    StatusHistoryEntry,
    TimeWindow,
    TransportCharge,
    TripType,
    TruckDetails,
)
from engines.orders.order import Order


def _dt(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _parse_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def _money(value: Optional[Money]) -> Optional[dict]:
    return value.to_dict() if value is not None else None


def _parse_money(value: Optional[dict]) -> Optional[Money]:
    return Money.from_dict(value) if value else None


# ══════════════════════════════════════════════════════════════
# ENCODE
# ══════════════════════════════════════════════════════════════

def _window_to_dict(window: Optional[TimeWindow]) -> Optional[dict]:
    if window is None:
        return None
    return {"start": window.start.isoformat(), "end": window.end.isoformat()}


def _truck_to_dict(truck: Optional[TruckDetails]) -> Optional[dict]:
    if truck is None:
        return None
    return {
        "plate": truck.plate,
        "driver_name": truck.driver_name,
        "driver_contact": truck.driver_contact,
        "truck_size": truck.truck_size,
    }


def line_item_to_dict(item: LineItem) -> dict:
    return {
        "line_item_id": item.line_item_id,
        "description": item.description,
        "category": item.category.value,
        "billing_mode": item.billing_mode.value,
        "quantity": str(item.quantity),
        "unit": item.unit,
        "unit_rate": item.unit_rate.to_dict(),
        "line_total": item.line_total.to_dict(),
        "source": item.source.value,
        "metadata": dict(item.metadata),
        "service_type_id": item.service_type_id,
        "reskin_request_id": item.reskin_request_id,
        "added_by": item.added_by,
        "added_at": _dt(item.added_at),
    }


def _request_to_dict(request: LineItemRequest) -> dict:
    return {
        "request_id": request.request_id,
        "order_id": request.order_id,
        "description": request.description,
        "category": request.category.value,
        "quantity": str(request.quantity),
        "unit": request.unit,
        "requested_by": request.requested_by,
        "requested_at": _dt(request.requested_at),
        "status": request.status.value,
        "notes": request.notes,
        "admin_note": request.admin_note,
        "resolved_by": request.resolved_by,
        "resolved_at": _dt(request.resolved_at),
        "line_item_id": request.line_item_id,
    }


def _reskin_to_dict(reskin: ReskinRequest) -> dict:
    return {
        "reskin_id": reskin.reskin_id,
        "order_id": reskin.order_id,
        "order_item_id": reskin.order_item_id,
        "original_asset_id": reskin.original_asset_id,
        "original_asset_name": reskin.original_asset_name,
        "target_brand": reskin.target_brand,
        "client_notes": reskin.client_notes,
        "status": reskin.status.value,
        "new_asset_name": reskin.new_asset_name,
        "new_asset_id": reskin.new_asset_id,
        "completion_photos": list(reskin.completion_photos),
        "completion_notes": reskin.completion_notes,
        "cost": _money(reskin.cost),
        "line_item_id": reskin.line_item_id,
        "cancellation_reason": reskin.cancellation_reason,
        "resolved_by": reskin.resolved_by,
        "resolved_at": _dt(reskin.resolved_at),
    }


def _transport_to_dict(transport: Optional[TransportCharge]) -> Optional[dict]:
    if transport is None:
        return None
    return {
        "region": transport.region,
        "trip_type": transport.trip_type.value,
        "vehicle_type": transport.vehicle_type,
        "base_rate": transport.base_rate.to_dict(),
        "final_rate": transport.final_rate.to_dict(),
        "city_id": transport.city_id,
        "area": transport.area,
        "override_reason": transport.override_reason,
        "vehicle_change_reason": transport.vehicle_change_reason,
    }


def order_to_dict(order: Order) -> dict:
    base = order.base_operations
    pricing = order.pricing
    return {
        "order_id": order.order_id,
        "order_code": order.order_code,
        "company_id": order.company_id,
        "status": order.status.value,
        "status_history": [
            {
                "status": entry.status.value,
                "timestamp": entry.timestamp.isoformat(),
                "actor_id": entry.actor_id,
                "notes": entry.notes,
            }
            for entry in order.status_history
        ],
        "created_at": _dt(order.created_at),
        "updated_at": _dt(order.updated_at),
        "contact_name": order.contact_name,
        "contact_email": order.contact_email,
        "contact_phone": order.contact_phone,
        "venue_name": order.venue_name,
        "venue_city": order.venue_city,
        "venue_address": order.venue_address,
        "event_start_date": order.event_start_date.isoformat() if order.event_start_date else None,
        "event_end_date": order.event_end_date.isoformat() if order.event_end_date else None,
        "job_number": order.job_number,
        "delivery_window": _window_to_dict(order.delivery_window),
        "pickup_window": _window_to_dict(order.pickup_window),
        "delivery_truck": _truck_to_dict(order.delivery_truck),
        "pickup_truck": _truck_to_dict(order.pickup_truck),
        "financial_status": order.financial_status.value,
        "invoice_number": order.invoice_number,
        "invoiced_at": _dt(order.invoiced_at),
        "invoice_paid_at": _dt(order.invoice_paid_at),
        "payment": None if order.payment is None else {
            "method": order.payment.method,
            "reference": order.payment.reference,
            "paid_on": order.payment.paid_on.isoformat(),
            "recorded_by": order.payment.recorded_by,
            "recorded_at": order.payment.recorded_at.isoformat(),
            "notes": order.payment.notes,
        },
        "base_operations": None if base is None else {
            "volume": str(base.volume.cubic_metres),
            "rate": base.rate.to_dict(),
        },
        "transport": _transport_to_dict(order.transport),
        "margin_percent": str(order.margin_percent.value),
        "currency": order.currency,
        "line_items": [line_item_to_dict(item) for item in order.line_items],
        "line_item_requests": [_request_to_dict(r) for r in order.line_item_requests],
        "reskin_requests": [_reskin_to_dict(r) for r in order.reskin_requests],
        "pricing": pricing.to_dict() if pricing is not None else None,
        "version": order.version,
    }


# ══════════════════════════════════════════════════════════════
# DECODE
# ══════════════════════════════════════════════════════════════

def _window_from_dict(data: Optional[dict]) -> Optional[TimeWindow]:
    if not data:
        return None
    return TimeWindow(start=_parse_dt(data["start"]), end=_parse_dt(data["end"]))


def _truck_from_dict(data: Optional[dict]) -> Optional[TruckDetails]:
    if not data:
        return None
    return TruckDetails(
        plate=data["plate"],
        driver_name=data["driver_name"],
        driver_contact=data["driver_contact"],
        truck_size=data.get("truck_size"),
    )


def line_item_from_dict(data: dict) -> LineItem:
    return LineItem(
        line_item_id=data["line_item_id"],
        description=data["description"],
        category=LineItemCategory(data["category"]),
        billing_mode=BillingMode(data["billing_mode"]),
        quantity=Decimal(data["quantity"]),
        unit=data["unit"],
        unit_rate=Money.from_dict(data["unit_rate"]),
        source=LineItemSource(data.get("source", LineItemSource.CUSTOM.value)),
        metadata=data.get("metadata") or {},
        service_type_id=data.get("service_type_id"),
        reskin_request_id=data.get("reskin_request_id"),
        added_by=data.get("added_by"),
        added_at=_parse_dt(data.get("added_at")),
    )


def _request_from_dict(data: dict) -> LineItemRequest:
    return LineItemRequest(
        request_id=data["request_id"],
        order_id=data["order_id"],
        description=data["description"],
        category=LineItemCategory(data["category"]),
        quantity=Decimal(data["quantity"]),
        unit=data["unit"],
        requested_by=data["requested_by"],
        requested_at=_parse_dt(data["requested_at"]),
        status=LineItemRequestStatus(data["status"]),
        notes=data.get("notes"),
        admin_note=data.get("admin_note"),
        resolved_by=data.get("resolved_by"),
        resolved_at=_parse_dt(data.get("resolved_at")),
        line_item_id=data.get("line_item_id"),
    )


def _reskin_from_dict(data: dict) -> ReskinRequest:
    return ReskinRequest(
        reskin_id=data["reskin_id"],
        order_id=data["order_id"],
        order_item_id=data["order_item_id"],
        original_asset_id=data["original_asset_id"],
        original_asset_name=data["original_asset_name"],
        target_brand=data["target_brand"],
        client_notes=data.get("client_notes"),
        status=ReskinStatus(data["status"]),
        new_asset_name=data.get("new_asset_name"),
        new_asset_id=data.get("new_asset_id"),
        completion_photos=tuple(data.get("completion_photos") or ()),
        completion_notes=data.get("completion_notes"),
        cost=_parse_money(data.get("cost")),
        line_item_id=data.get("line_item_id"),
        cancellation_reason=data.get("cancellation_reason"),
        resolved_by=data.get("resolved_by"),
        resolved_at=_parse_dt(data.get("resolved_at")),
    )


def _transport_from_dict(data: Optional[dict]) -> Optional[TransportCharge]:
    if not data:
        return None
    return TransportCharge(
        region=data["region"],
        trip_type=TripType(data["trip_type"]),
        vehicle_type=data["vehicle_type"],
        base_rate=Money.from_dict(data["base_rate"]),
        final_rate=Money.from_dict(data["final_rate"]),
        city_id=data.get("city_id"),
        area=data.get("area"),
        override_reason=data.get("override_reason"),
        vehicle_change_reason=data.get("vehicle_change_reason"),
    )


def _payment_from_dict(data: Optional[dict]) -> Optional[PaymentRecord]:
    if not data:
        return None
    return PaymentRecord(
        method=data["method"],
        reference=data["reference"],
        paid_on=_parse_date(data["paid_on"]),
        recorded_by=data["recorded_by"],
        recorded_at=_parse_dt(data["recorded_at"]),
        notes=data.get("notes"),
    )


def order_from_dict(data: dict[str, Any]) -> Order:
    base = data.get("base_operations")
    return Order(
        order_id=data["order_id"],
        order_code=data["order_code"],
        company_id=data["company_id"],
        status=OrderStatus(data["status"]),
        status_history=tuple(
            StatusHistoryEntry(
                status=OrderStatus(entry["status"]),
                timestamp=_parse_dt(entry["timestamp"]),
                actor_id=entry["actor_id"],
                notes=entry.get("notes"),
            )
            for entry in data["status_history"]
        ),
        created_at=_parse_dt(data["created_at"]),
        updated_at=_parse_dt(data["updated_at"]),
        contact_name=data.get("contact_name"),
        contact_email=data.get("contact_email"),
        contact_phone=data.get("contact_phone"),
        venue_name=data.get("venue_name"),
        venue_city=data.get("venue_city"),
        venue_address=data.get("venue_address"),
        event_start_date=_parse_date(data.get("event_start_date")),
        event_end_date=_parse_date(data.get("event_end_date")),
        job_number=data.get("job_number"),
        delivery_window=_window_from_dict(data.get("delivery_window")),
        pickup_window=_window_from_dict(data.get("pickup_window")),
        delivery_truck=_truck_from_dict(data.get("delivery_truck")),
        pickup_truck=_truck_from_dict(data.get("pickup_truck")),
        financial_status=FinancialStatus(
            data.get("financial_status", FinancialStatus.NONE.value)
        ),
        invoice_number=data.get("invoice_number"),
        invoiced_at=_parse_dt(data.get("invoiced_at")),
        invoice_paid_at=_parse_dt(data.get("invoice_paid_at")),
        payment=_payment_from_dict(data.get("payment")),
        base_operations=None if not base else BaseOperations(
            volume=Volume.of(base["volume"]),
            rate=Money.from_dict(base["rate"]),
        ),
        transport=_transport_from_dict(data.get("transport")),
        margin_percent=Percentage.of(data["margin_percent"]),
        currency=data.get("currency", DEFAULT_CURRENCY),
        line_items=tuple(line_item_from_dict(i) for i in data.get("line_items", ())),
        line_item_requests=tuple(
            _request_from_dict(r) for r in data.get("line_item_requests", ())
        ),
        reskin_requests=tuple(
            _reskin_from_dict(r) for r in data.get("reskin_requests", ())
        ),
        version=data.get("version", 0),
    )
