"""
RentOps Orders Engine — Reskin (Rebrand) Lifecycle
===================================================
A reskin request asks for one rented asset to be rebranded.

    pending ──complete──▶ complete   (asset TRANSFORMED, RESKIN line item)
       │
       └──cancel────────▶ cancelled  (reservation released, no line item)

Both exits are one-way. Completion validates every input before the
asset registry is touched, so a rejected completion leaves no trace.
The registry call is keyed on the reskin id: a completion retried after
its snapshot failed to save gets back the asset made the first time.
Once no reskin on the order is pending, an optional target status is
taken if the workflow graph allows it from the current status.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Iterable, Optional, Protocol, Tuple

from core.primitives.actor import Actor
from core.primitives.money import Money
from engines.orders.errors import NotFound, raise_if_rejected
from engines.orders.models import (
    BillingMode,
    LineItem,
    LineItemCategory,
    LineItemSource,
    OrderStatus,
    ReskinRequest,
    ReskinStatus,
)
from engines.orders.order import Order
from engines.orders.policies import (
    amount_must_be_positive_policy,
    money_must_match_currency_policy,
    required_fields_policy,
    reskin_must_be_pending_policy,
)
from engines.orders.state_machine import advance_if_allowed

logger = logging.getLogger("rentops.orders")

RESKIN_UNIT = "service"


# ══════════════════════════════════════════════════════════════
# ASSET REGISTRY (external collaborator)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Asset:
    asset_id: str
    name: str
    qr_code: str
    status: str = "AVAILABLE"


class AssetRegistry(Protocol):
    def resolve_asset_by_qr(self, code: str) -> Asset:
        ...

    def mark_transformed(
        self, asset_id: str, new_asset_name: str, reskin_id: str
    ) -> str:
        """
        Mark the source asset TRANSFORMED and return the new asset's id.
        Repeating a call for the same reskin_id returns the asset made
        the first time and changes nothing.
        """
        ...

    def release_reservation(self, asset_id: str, order_id: str) -> None:
        ...


class InMemoryAssetRegistry:
    """Deterministic in-memory registry used for bootstrap/tests."""

    def __init__(self, assets: Iterable[Asset] = ()):
        self._assets: Dict[str, Asset] = {}
        self._reservations: Dict[str, str] = {}
        self._transformed: Dict[str, str] = {}
        self._by_reskin: Dict[str, str] = {}
        self._derived_count: Dict[str, int] = {}
        for asset in assets:
            self._assets[asset.asset_id] = asset

    def reserve(self, asset_id: str, order_id: str) -> None:
        self.get(asset_id)
        self._reservations[asset_id] = order_id

    def get(self, asset_id: str) -> Asset:
        asset = self._assets.get(asset_id)
        if asset is None:
            raise NotFound(
                f"Asset '{asset_id}' not found.", policy_name="asset_registry",
            )
        return asset

    def is_reserved(self, asset_id: str) -> bool:
        return asset_id in self._reservations

    def transformed_into(self, asset_id: str) -> Optional[str]:
        return self._transformed.get(asset_id)

    def resolve_asset_by_qr(self, code: str) -> Asset:
        for asset in self._assets.values():
            if asset.qr_code == code:
                return asset
        raise NotFound(
            f"No asset with QR code '{code}'.", policy_name="asset_registry",
        )

    def mark_transformed(
        self, asset_id: str, new_asset_name: str, reskin_id: str
    ) -> str:
        existing = self._by_reskin.get(reskin_id)
        if existing is not None:
            return existing

        source = self.get(asset_id)
        n = self._derived_count.get(asset_id, 0) + 1
        new_id = f"{asset_id}-r{n}"
        self._assets[asset_id] = replace(source, status="TRANSFORMED")
        self._assets[new_id] = Asset(
            asset_id=new_id,
            name=new_asset_name,
            qr_code=f"{source.qr_code}-r{n}",
        )
        self._derived_count[asset_id] = n
        self._transformed[asset_id] = new_id
        self._by_reskin[reskin_id] = new_id
        return new_id

    def asset_ids(self) -> Tuple[str, ...]:
        return tuple(sorted(self._assets))

    def release_reservation(self, asset_id: str, order_id: str) -> None:
        if self._reservations.get(asset_id) == order_id:
            del self._reservations[asset_id]


# ══════════════════════════════════════════════════════════════
# OPERATIONS
# ══════════════════════════════════════════════════════════════

def _replace_reskin(order: Order, updated: ReskinRequest) -> Tuple[ReskinRequest, ...]:
    return tuple(
        updated if r.reskin_id == updated.reskin_id else r
        for r in order.reskin_requests
    )


def _maybe_advance(
    order: Order,
    advance_to: Optional[OrderStatus],
    at: datetime,
) -> Order:
    if advance_to is None or order.pending_reskins():
        return order
    return advance_if_allowed(
        order,
        advance_to,
        Actor.system("reskin"),
        at=at,
        notes="All reskin requests resolved",
    )


def request_reskin(
    order: Order,
    asset: Asset,
    *,
    reskin_id: str,
    order_item_id: str,
    target_brand: str,
    at: datetime,
    client_notes: Optional[str] = None,
) -> Order:
    raise_if_rejected(required_fields_policy(
        {"order_item_id": order_item_id, "target_brand": target_brand},
        policy_name="request_reskin",
    ))
    reskin = ReskinRequest(
        reskin_id=reskin_id,
        order_id=order.order_id,
        order_item_id=order_item_id,
        original_asset_id=asset.asset_id,
        original_asset_name=asset.name,
        target_brand=target_brand.strip(),
        client_notes=client_notes,
    )
    return replace(
        order,
        reskin_requests=order.reskin_requests + (reskin,),
        updated_at=at,
    )


def complete_reskin(
    order: Order,
    reskin_id: str,
    *,
    new_asset_name: str,
    completion_photos: Iterable[str],
    cost: Optional[Money],
    line_item_id: str,
    assets: AssetRegistry,
    actor: Actor,
    at: datetime,
    completion_notes: Optional[str] = None,
    advance_to: Optional[OrderStatus] = None,
) -> Order:
    reskin = order.find_reskin(reskin_id)
    raise_if_rejected(reskin_must_be_pending_policy(reskin))

    photos = tuple(p for p in completion_photos if p and p.strip())
    raise_if_rejected(required_fields_policy(
        {
            "new_asset_name": new_asset_name,
            "completion_photos": photos or None,
            "cost": cost,
        },
        policy_name="complete_reskin",
    ))
    raise_if_rejected(amount_must_be_positive_policy(cost, "cost"))
    raise_if_rejected(money_must_match_currency_policy(
        cost, order.currency, "cost",
    ))

    new_asset_id = assets.mark_transformed(
        reskin.original_asset_id, new_asset_name.strip(), reskin.reskin_id
    )

    item = LineItem(
        line_item_id=line_item_id,
        description=f"Rebrand: {reskin.original_asset_name} → {reskin.target_brand}",
        category=LineItemCategory.RESKIN,
        billing_mode=BillingMode.BILLABLE,
        quantity=1,
        unit=RESKIN_UNIT,
        unit_rate=cost,
        source=LineItemSource.RESKIN,
        metadata={
            "original_asset_id": reskin.original_asset_id,
            "new_asset_id": new_asset_id,
        },
        reskin_request_id=reskin.reskin_id,
        added_by=actor.actor_id,
        added_at=at,
    )
    completed = replace(
        reskin,
        status=ReskinStatus.COMPLETE,
        new_asset_name=new_asset_name.strip(),
        new_asset_id=new_asset_id,
        completion_photos=photos,
        completion_notes=completion_notes,
        cost=cost,
        line_item_id=line_item_id,
        resolved_by=actor.actor_id,
        resolved_at=at,
    )
    logger.info(
        f"Order {order.order_code}: reskin {reskin_id} complete, "
        f"asset {reskin.original_asset_id} → {new_asset_id}"
    )
    order = replace(
        order,
        reskin_requests=_replace_reskin(order, completed),
        line_items=order.line_items + (item,),
        updated_at=at,
    )
    return _maybe_advance(order, advance_to, at)


def cancel_reskin(
    order: Order,
    reskin_id: str,
    reason: str,
    *,
    assets: AssetRegistry,
    actor: Actor,
    at: datetime,
    advance_to: Optional[OrderStatus] = None,
) -> Order:
    reskin = order.find_reskin(reskin_id)
    raise_if_rejected(reskin_must_be_pending_policy(reskin))
    raise_if_rejected(required_fields_policy(
        {"cancellation_reason": reason}, policy_name="cancel_reskin",
    ))

    assets.release_reservation(reskin.original_asset_id, order.order_id)

    cancelled = replace(
        reskin,
        status=ReskinStatus.CANCELLED,
        cancellation_reason=reason.strip(),
        resolved_by=actor.actor_id,
        resolved_at=at,
    )
    logger.info(f"Order {order.order_code}: reskin {reskin_id} cancelled")
    order = replace(
        order,
        reskin_requests=_replace_reskin(order, cancelled),
        updated_at=at,
    )
    return _maybe_advance(order, advance_to, at)
