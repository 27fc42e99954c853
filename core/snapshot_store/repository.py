"""
RentOps Snapshot Store - Order Repositories
===========================================
Load and save full order snapshots with optimistic concurrency.

save(order, expected_version):
- expected_version is the version the caller loaded (0 for a new order)
- if the stored version differs, ConcurrentModification is raised and
  nothing is written
- on success the stored version becomes expected_version + 1 and the
  returned order carries it
"""

from __future__ import annotations

import copy
import logging
from dataclasses import replace
from typing import Dict, List, Optional, Protocol

from django.db import IntegrityError, transaction

from engines.orders.errors import ConcurrentModification, NotFound
from engines.orders.order import Order
from engines.orders.serialization import order_from_dict, order_to_dict

logger = logging.getLogger("rentops.store")


class OrderRepository(Protocol):
    def get(self, order_id: str) -> Order:
        ...

    def save(self, order: Order, expected_version: int) -> Order:
        ...


def _not_found(order_id: str) -> NotFound:
    return NotFound(f"Order '{order_id}' not found.", policy_name="order_repository")


# ══════════════════════════════════════════════════════════════
# IN-MEMORY (tests / bootstrap)
# ══════════════════════════════════════════════════════════════

class InMemoryOrderRepository:
    def __init__(self) -> None:
        self._rows: Dict[str, dict] = {}

    def get(self, order_id: str) -> Order:
        row = self._rows.get(order_id)
        if row is None:
            raise _not_found(order_id)
        return order_from_dict(copy.deepcopy(row))

    def list_for_company(self, company_id: str) -> List[Order]:
        return [
            order_from_dict(copy.deepcopy(row))
            for row in sorted(self._rows.values(), key=lambda r: r["order_code"])
            if row["company_id"] == company_id
        ]

    def save(self, order: Order, expected_version: int) -> Order:
        row = self._rows.get(order.order_id)
        actual = row["version"] if row is not None else 0
        if actual != expected_version:
            logger.warning(
                f"Stale save for order {order.order_code}: expected "
                f"v{expected_version}, stored v{actual}"
            )
            raise ConcurrentModification(order.order_id, expected_version, actual)

        saved = replace(order, version=expected_version + 1)
        self._rows[order.order_id] = order_to_dict(saved)
        logger.info(f"Order {saved.order_code} saved at v{saved.version}")
        return saved


# ══════════════════════════════════════════════════════════════
# DJANGO
# ══════════════════════════════════════════════════════════════

class DjangoOrderRepository:
    def get(self, order_id: str) -> Order:
        from core.snapshot_store.models import OrderSnapshot

        row = OrderSnapshot.objects.filter(order_id=order_id).first()
        if row is None:
            raise _not_found(order_id)
        return order_from_dict({**row.payload, "version": row.version})

    def list_for_company(self, company_id: str, status: Optional[str] = None) -> List[Order]:
        from core.snapshot_store.models import OrderSnapshot

        rows = OrderSnapshot.objects.filter(company_id=company_id)
        if status is not None:
            rows = rows.filter(status=status)
        return [
            order_from_dict({**row.payload, "version": row.version})
            for row in rows.order_by("order_code")
        ]

    def _current_version(self, order_id: str) -> int:
        from core.snapshot_store.models import OrderSnapshot

        version = (
            OrderSnapshot.objects.filter(order_id=order_id)
            .values_list("version", flat=True)
            .first()
        )
        return version or 0

    def save(self, order: Order, expected_version: int) -> Order:
        from core.snapshot_store.models import OrderSnapshot

        saved = replace(order, version=expected_version + 1)
        fields = {
            "order_code": saved.order_code,
            "company_id": saved.company_id,
            "status": saved.status.value,
            "financial_status": saved.financial_status.value,
            "version": saved.version,
            "payload": order_to_dict(saved),
            "updated_at": saved.updated_at,
        }

        if expected_version == 0:
            try:
                with transaction.atomic():
                    OrderSnapshot.objects.create(order_id=saved.order_id, **fields)
            except IntegrityError:
                actual = self._current_version(saved.order_id)
                logger.warning(
                    f"Stale save for new order {order.order_code}: "
                    f"stored v{actual}"
                )
                raise ConcurrentModification(order.order_id, expected_version, actual)
        else:
            updated = OrderSnapshot.objects.filter(
                order_id=saved.order_id, version=expected_version,
            ).update(**fields)
            if updated == 0:
                actual = self._current_version(saved.order_id)
                logger.warning(
                    f"Stale save for order {order.order_code}: expected "
                    f"v{expected_version}, stored v{actual}"
                )
                raise ConcurrentModification(order.order_id, expected_version, actual)

        logger.info(f"Order {saved.order_code} saved at v{saved.version}")
        return saved
