"""
RentOps Policy Layer
====================
Policies are plain functions returning a RejectionReason or None.
Evaluation, not execution: the caller decides what a rejection means.
"""

from core.policy.rejection import ReasonCode, RejectionReason

__all__ = [
    "RejectionReason",
    "ReasonCode",
]
