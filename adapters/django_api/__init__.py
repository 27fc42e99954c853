"""
RentOps Django HTTP adapter.
Thin framework glue over the order service and snapshot store.
"""

from adapters.django_api.wiring import (
    DEV_ADMIN_ACTOR_ID,
    DEV_CLIENT_ACTOR_ID,
    DEV_COMPANY_ID,
    DEV_LOGISTICS_ACTOR_ID,
    build_dependencies,
)

__all__ = [
    "DEV_ADMIN_ACTOR_ID",
    "DEV_LOGISTICS_ACTOR_ID",
    "DEV_CLIENT_ACTOR_ID",
    "DEV_COMPANY_ID",
    "build_dependencies",
]
