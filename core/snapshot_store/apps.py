"""
RentOps Snapshot Store - App Configuration
==========================================
Versioned order snapshots. The order core is pure; this app is the
persistence boundary that detects concurrent writers.
"""

from django.apps import AppConfig


class CoreSnapshotStoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core.snapshot_store"
    label = "core_snapshot_store"
    verbose_name = "RentOps Snapshot Store"
