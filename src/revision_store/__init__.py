"""
Revision Store

Sequentially numbered revisions of target records, each holding the
previous snapshot, the current snapshot and their structural diff.
"""

from .models import Revision
from .service import RevisionStore

__all__ = [
    "Revision",
    "RevisionStore",
]
