from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from .entity import EntityKind

"""Finding model: the unit of validation output.

A Finding is attached to a (row, field) cell or, with row=-1, to the whole
dataset. Findings are immutable; every validation run produces a fresh list
that replaces the previous one.
"""

__all__ = [
    "Severity",
    "Finding",
    "DATASET_ROW",
]

# データセット単位 (行に紐付かない) の指摘
DATASET_ROW = -1


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Finding:
    """Single validation outcome.

    Attributes:
        severity: error / warning / info
        entity: Entity kind the row index refers to (None only for synthetic
            validator failures raised before the kind was known)
        row: Index into the entity's row collection, or -1 for dataset-level findings
        field: Canonical field name ('validator' for execution failures)
        message: Human readable description
        check: Id of the check or cross-entity category that produced it
        suggestion: Optional human hint
        suggested_value: Optional machine replacement for the cell
        confidence: Optional confidence in [0, 1]
        related_entities: Other entity kinds involved in the finding
    """
    severity: Severity
    entity: EntityKind | None
    row: int
    field: str
    message: str
    check: str = ""
    suggestion: str | None = None
    suggested_value: Any = None
    confidence: float | None = None
    related_entities: tuple[EntityKind, ...] = ()

    @property
    def is_dataset_level(self) -> bool:
        return self.row == DATASET_ROW

    @property
    def has_suggested_value(self) -> bool:
        return self.suggested_value is not None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        data["entity"] = self.entity.value if self.entity is not None else None
        data["related_entities"] = [e.value for e in self.related_entities]
        return data

    def to_json_line(self) -> str:
        """Serialize to one JSON Lines record (keys fixed by to_dict)."""
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)
