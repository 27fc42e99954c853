"""RentOps Orders Engine - job numbers and truck assignments."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

from engines.orders.errors import raise_if_rejected
from engines.orders.models import TruckDetails, TruckLeg
from engines.orders.order import Order
from engines.orders.policies import required_fields_policy


def set_job_number(order: Order, job_number: Optional[str], *, at: datetime) -> Order:
    """Allowed in any status. Blank clears the job number."""
    value = job_number.strip() if job_number else None
    return replace(order, job_number=value or None, updated_at=at)


def set_truck_details(
    order: Order,
    leg: TruckLeg,
    *,
    plate: Optional[str],
    driver_name: Optional[str],
    driver_contact: Optional[str],
    at: datetime,
    truck_size: Optional[str] = None,
) -> Order:
    raise_if_rejected(required_fields_policy(
        {
            "plate": plate,
            "driver_name": driver_name,
            "driver_contact": driver_contact,
        },
        policy_name="set_truck_details",
    ))
    details = TruckDetails(
        plate=plate.strip(),
        driver_name=driver_name.strip(),
        driver_contact=driver_contact.strip(),
        truck_size=truck_size,
    )
    if leg == TruckLeg.DELIVERY:
        return replace(order, delivery_truck=details, updated_at=at)
    return replace(order, pickup_truck=details, updated_at=at)
