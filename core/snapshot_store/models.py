"""
RentOps Snapshot Store - Order Snapshot Model
=============================================
One row per order holding its latest full snapshot as JSON.

RULES (NON-NEGOTIABLE):
- version increases by exactly one per accepted save
- A save carrying a stale version is refused, never merged
- status / order_code / company_id are denormalized for listing only;
  payload is the source of truth

This file contains NO business logic.
"""

from __future__ import annotations

from django.db import models


class OrderSnapshot(models.Model):
    order_id = models.CharField(max_length=64, primary_key=True)
    order_code = models.CharField(max_length=64, unique=True)
    company_id = models.CharField(max_length=64)
    status = models.CharField(max_length=32)
    financial_status = models.CharField(max_length=16)
    version = models.PositiveIntegerField()
    payload = models.JSONField()
    updated_at = models.DateTimeField()

    class Meta:
        db_table = "rentops_order_snapshots"
        ordering = ["order_code"]
        indexes = [
            models.Index(fields=["company_id", "status"], name="idx_snapshot_company_status"),
        ]

    def __str__(self) -> str:
        return f"{self.order_code}@v{self.version}"
