"""
Object Schedule

Deferred, single-shot property mutations of target records.
"""

from .models import (
    ApplyResult,
    ApplyStatus,
    FailureReason,
    LoadFailurePolicy,
    ScheduledMutation,
)
from .service import MutationCallback, MutationProcessor

__all__ = [
    "ScheduledMutation",
    "ApplyResult",
    "ApplyStatus",
    "FailureReason",
    "LoadFailurePolicy",
    "MutationCallback",
    "MutationProcessor",
]
