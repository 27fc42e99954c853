"""
RentOps Core Primitives — Reusable Business Building Blocks
============================================================
Primitives are the shared, engine-agnostic building blocks the
orders engine consumes. They are:

- Pure Python (no Django dependency)
- Immutable (frozen dataclasses)
- Deterministic (same input → same output)

Primitives:
    money     — Decimal money, volume and percentage values
    actor     — Who performed an action (human or system)
    workflow  — Data-driven state graph with per-edge metadata
"""
