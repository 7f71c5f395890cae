"""
Structural Diff Engine

Two-sided diffs between nested key/value snapshots, used to build
revision history.
"""

__version__ = "0.1.0"

from .models import DiffResult
from .service import (
    apply_diff,
    compute_diff,
    invert_diff,
    values_equal,
)

__all__ = [
    "__version__",
    "DiffResult",
    "compute_diff",
    "apply_diff",
    "invert_diff",
    "values_equal",
]
