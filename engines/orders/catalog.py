"""
RentOps Orders Engine — Service Catalog
========================================
Predefined service types (assembly, handling, equipment, ...) that
catalog line items are built from. The catalog is reference data
owned elsewhere; the ledger reads it through ServiceCatalog.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Protocol

from core.primitives.money import Money
from engines.orders.errors import NotFound
from engines.orders.models import LineItemCategory


@dataclass(frozen=True)
class ServiceType:
    service_type_id: str
    name: str
    category: LineItemCategory
    unit: str
    default_rate: Money
    description: Optional[str] = None
    is_active: bool = True

    def __post_init__(self):
        if not self.service_type_id:
            raise ValueError("service_type_id must be non-empty.")
        if not self.name:
            raise ValueError("name must be non-empty.")
        if not isinstance(self.category, LineItemCategory):
            raise TypeError("category must be LineItemCategory.")
        if self.default_rate.is_negative():
            raise ValueError("default_rate must be >= 0.")


class ServiceCatalog(Protocol):
    def get_service_type(self, service_type_id: str) -> ServiceType:
        """Return the service type or raise NotFound."""
        ...  # pragma: no cover


class InMemoryServiceCatalog:
    def __init__(self, service_types: Iterable[ServiceType] = ()):
        self._types: Dict[str, ServiceType] = {}
        for service_type in service_types:
            self.add(service_type)

    def add(self, service_type: ServiceType) -> None:
        self._types[service_type.service_type_id] = service_type

    def get_service_type(self, service_type_id: str) -> ServiceType:
        service_type = self._types.get(service_type_id)
        if service_type is None or not service_type.is_active:
            raise NotFound(
                f"Service type '{service_type_id}' not found.",
                policy_name="service_catalog",
            )
        return service_type
