"""Header matching: similarity scoring and raw -> canonical column reconciliation."""

from .reconciler import HeaderMapping, apply_mapping, reconcile
from .similarity import score

__all__ = [
    "HeaderMapping",
    "apply_mapping",
    "reconcile",
    "score",
]
