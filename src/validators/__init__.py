"""Validation engine: field checks, anomaly detection and cross-entity checks."""

from . import anomaly, cross_entity, field_checks

__all__ = [
    "anomaly",
    "cross_entity",
    "field_checks",
]
