"""
RentOps Django Adapter Wiring
=============================
Constructs the order service and repository for local/staging runs.

This module is adapter-only glue:
- no core contract changes
- deployment configuration read from Django settings (RENTOPS_*)
- in-memory reference data (rates, catalog, assets, roles) for
  smoke usage; production wires real collaborators here
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings

from core.config import InMemoryPricingConfigStore, PricingRules
from core.events import SubscriberRegistry
from core.permissions import (
    VALID_PERMISSIONS,
    InMemoryPermissionChecker,
    PERMISSION_ORDERS_CREATE,
    PERMISSION_ORDERS_LINE_ITEMS,
    PERMISSION_ORDERS_LOGISTICS,
    PERMISSION_ORDERS_PRICING_ADJUST,
    PERMISSION_ORDERS_RESKIN,
    PERMISSION_ORDERS_SUBMIT,
    PERMISSION_ORDERS_UPDATE_STATUS,
    PERMISSION_PRICING_REVIEW,
    PERMISSION_QUOTES_RESPOND,
    Role,
    RoleAssignment,
)
from core.primitives.money import Money, Percentage
from core.snapshot_store.repository import DjangoOrderRepository
from core.time import SystemClock
from engines.orders.catalog import InMemoryServiceCatalog, ServiceType
from engines.orders.models import LineItemCategory, OrderStatus, TripType
from engines.orders.rates import PricingTier, TieredBaseRateTable, TransportRateTable
from engines.orders.reskin import Asset, InMemoryAssetRegistry
from engines.orders.services import OrderService


DEV_ADMIN_ACTOR_ID = "live-admin-user"
DEV_LOGISTICS_ACTOR_ID = "live-logistics-user"
DEV_CLIENT_ACTOR_ID = "live-client-user"
DEV_COMPANY_ID = "dev-company"

_DEPENDENCIES_LOCK = threading.Lock()
_DEPENDENCIES: "OrderApiDependencies | None" = None


@dataclass(frozen=True)
class OrderApiDependencies:
    service: OrderService
    repository: DjangoOrderRepository
    event_registry: SubscriberRegistry


def _build_pricing_config() -> InMemoryPricingConfigStore:
    currency = getattr(settings, "RENTOPS_CURRENCY", "AED")
    margin = getattr(settings, "RENTOPS_DEFAULT_MARGIN_PERCENT", "25")
    return InMemoryPricingConfigStore(
        PricingRules(currency=currency, default_margin=Percentage.of(margin))
    )


def _editable_statuses() -> frozenset[OrderStatus]:
    names = getattr(
        settings,
        "RENTOPS_EDITABLE_STATUSES",
        ("PRICING_REVIEW", "PENDING_APPROVAL"),
    )
    return frozenset(OrderStatus(name) for name in names)


def _build_permission_checker() -> InMemoryPermissionChecker:
    admin_role = Role(role_id="platform-admin", permissions=tuple(VALID_PERMISSIONS))
    logistics_role = Role(
        role_id="logistics",
        permissions=(
            PERMISSION_ORDERS_UPDATE_STATUS,
            PERMISSION_ORDERS_LOGISTICS,
            PERMISSION_ORDERS_LINE_ITEMS,
            PERMISSION_ORDERS_PRICING_ADJUST,
            PERMISSION_ORDERS_RESKIN,
            PERMISSION_PRICING_REVIEW,
        ),
    )
    client_role = Role(
        role_id="client",
        permissions=(
            PERMISSION_ORDERS_CREATE,
            PERMISSION_ORDERS_SUBMIT,
            PERMISSION_QUOTES_RESPOND,
        ),
    )
    return InMemoryPermissionChecker(
        roles=(admin_role, logistics_role, client_role),
        assignments=(
            RoleAssignment(actor_id=DEV_ADMIN_ACTOR_ID, role_id="platform-admin"),
            RoleAssignment(actor_id=DEV_LOGISTICS_ACTOR_ID, role_id="logistics"),
            RoleAssignment(
                actor_id=DEV_CLIENT_ACTOR_ID,
                role_id="client",
                company_id=DEV_COMPANY_ID,
            ),
        ),
    )


def _build_base_rates(currency: str) -> TieredBaseRateTable:
    return TieredBaseRateTable([
        PricingTier("AE", "Dubai", Decimal("0"), Decimal("10"), Money.of("60", currency)),
        PricingTier("AE", "Dubai", Decimal("10"), Decimal("50"), Money.of("50", currency)),
        PricingTier("AE", "Dubai", Decimal("50"), None, Money.of("40", currency)),
    ])


def _build_transport_rates(currency: str) -> TransportRateTable:
    table = TransportRateTable()
    table.set_rate(
        city_id="dubai", trip_type=TripType.ROUND_TRIP,
        vehicle_type_id="3-ton", rate=Money.of("900", currency),
    )
    table.set_rate(
        city_id="dubai", trip_type=TripType.ROUND_TRIP,
        vehicle_type_id="7-ton", rate=Money.of("1400", currency),
    )
    table.set_rate(
        city_id="dubai", trip_type=TripType.ONE_WAY,
        vehicle_type_id="3-ton", rate=Money.of("500", currency),
    )
    return table


def _build_catalog(currency: str) -> InMemoryServiceCatalog:
    return InMemoryServiceCatalog([
        ServiceType("assembly", "Assembly", LineItemCategory.ASSEMBLY, "hour",
                    Money.of("120", currency)),
        ServiceType("forklift", "Forklift", LineItemCategory.EQUIPMENT, "day",
                    Money.of("750", currency)),
        ServiceType("handling", "Handling", LineItemCategory.HANDLING, "trip",
                    Money.of("200", currency)),
    ])


def _create_dependencies() -> OrderApiDependencies:
    pricing_config = _build_pricing_config()
    currency = pricing_config.get_pricing_rules().currency
    event_registry = SubscriberRegistry()
    service = OrderService(
        permissions=_build_permission_checker(),
        base_rates=_build_base_rates(currency),
        transport_rates=_build_transport_rates(currency),
        catalog=_build_catalog(currency),
        assets=InMemoryAssetRegistry([
            Asset(asset_id="asset-1", name="Backdrop Wall", qr_code="QR-0001"),
        ]),
        clock=SystemClock(),
        event_registry=event_registry,
        config_store=pricing_config,
        editable_statuses=_editable_statuses(),
    )
    return OrderApiDependencies(
        service=service,
        repository=DjangoOrderRepository(),
        event_registry=event_registry,
    )


def build_dependencies() -> OrderApiDependencies:
    """
    Lazy singleton wiring for adapter runtime.
    """
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        if _DEPENDENCIES is None:
            _DEPENDENCIES = _create_dependencies()
        return _DEPENDENCIES


def reset_dependencies() -> None:
    """Drop the cached wiring (tests only)."""
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        _DEPENDENCIES = None
