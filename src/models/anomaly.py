from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .entity import EntityKind
from .finding import Finding, Severity

"""Anomaly model: a finding that carries a machine-actionable fix."""

__all__ = [
    "AnomalyCategory",
    "AnomalySeverity",
    "Anomaly",
]


class AnomalyCategory(Enum):
    OUTLIER = "outlier"
    PATTERN = "pattern"
    INCONSISTENCY = "inconsistency"
    DUPLICATE = "duplicate"


class AnomalySeverity(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    def to_severity(self) -> Severity:
        return _SEVERITY_MAP[self]


_SEVERITY_MAP = {
    AnomalySeverity.HIGH: Severity.ERROR,
    AnomalySeverity.MEDIUM: Severity.WARNING,
    AnomalySeverity.LOW: Severity.INFO,
}


@dataclass(frozen=True)
class Anomaly:
    """Detected anomaly with a suggested replacement for exactly one cell.

    Applying it overwrites (row, field) with suggested_value; the caller
    re-runs validation afterwards.
    """
    id: str  # e.g. "duplicate-ClientID-4"
    category: AnomalyCategory
    severity: AnomalySeverity
    field: str
    row: int
    description: str
    suggestion: str
    confidence: float
    original_value: Any = None
    suggested_value: Any = None

    @property
    def is_actionable(self) -> bool:
        """False for flag-only anomalies whose suggestion equals the original."""
        return self.suggested_value != self.original_value

    def as_finding(self, entity: EntityKind | None) -> Finding:
        return Finding(
            severity=self.severity.to_severity(),
            entity=entity,
            row=self.row,
            field=self.field,
            message=self.description,
            check=f"anomaly:{self.category.value}",
            suggestion=self.suggestion,
            suggested_value=self.suggested_value,
            confidence=self.confidence,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category.value,
            "severity": self.severity.value,
            "field": self.field,
            "row": self.row,
            "description": self.description,
            "suggestion": self.suggestion,
            "confidence": self.confidence,
            "original_value": self.original_value,
            "suggested_value": self.suggested_value,
        }
