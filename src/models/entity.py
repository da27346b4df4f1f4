from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Entity kinds and row model for the roster validator.

Three entity kinds share one loosely typed row shape (canonical field name ->
raw cell value). The kind is the discriminant every validator checks before it
touches a field; field presence is never assumed from the row alone.
"""

__all__ = [
    "EntityKind",
    "EntityRow",
    "CANONICAL_FIELDS",
    "REQUIRED_FIELDS",
    "ID_FIELDS",
]


class EntityKind(Enum):
    """Entity discriminant for client / worker / task collections."""
    CLIENTS = "clients"
    WORKERS = "workers"
    TASKS = "tasks"

    @property
    def canonical_fields(self) -> tuple[str, ...]:
        return CANONICAL_FIELDS[self]

    @property
    def required_fields(self) -> tuple[str, ...]:
        return REQUIRED_FIELDS[self]

    @property
    def id_field(self) -> str:
        return ID_FIELDS[self]

    @property
    def id_prefix(self) -> str:
        # ClientID -> C, WorkerID -> W, TaskID -> T
        return self.id_field[0]

    @classmethod
    def parse(cls, value: str | EntityKind) -> EntityKind:
        """Accept either the enum or its textual value ('clients', 'Workers', ...)."""
        if isinstance(value, EntityKind):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise ValueError(f"unknown entity kind: {value!r}") from e


CANONICAL_FIELDS: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.CLIENTS: (
        "ClientID", "ClientName", "PriorityLevel", "RequestedTaskIDs", "GroupTag", "AttributesJSON",
    ),
    EntityKind.WORKERS: (
        "WorkerID", "WorkerName", "Skills", "AvailableSlots", "MaxLoadPerPhase", "WorkerGroup",
        "QualificationLevel",
    ),
    EntityKind.TASKS: (
        "TaskID", "TaskName", "Category", "Duration", "RequiredSkills", "PreferredPhases", "MaxConcurrent",
    ),
}

# ヘッダ欠落チェック対象 (canonical_fields の部分集合)
REQUIRED_FIELDS: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.CLIENTS: ("ClientID", "ClientName", "PriorityLevel", "RequestedTaskIDs", "GroupTag"),
    EntityKind.WORKERS: ("WorkerID", "WorkerName", "Skills", "AvailableSlots", "MaxLoadPerPhase"),
    EntityKind.TASKS: ("TaskID", "TaskName", "Duration", "RequiredSkills"),
}

ID_FIELDS: dict[EntityKind, str] = {
    EntityKind.CLIENTS: "ClientID",
    EntityKind.WORKERS: "WorkerID",
    EntityKind.TASKS: "TaskID",
}


@dataclass(frozen=True)
class EntityRow:
    """One ingested record with its stable synthetic identifier.

    row_id is assigned once at ingestion (position in the ingested collection)
    and carried through filtering and edits; it is never recomputed from the
    row content, so duplicate rows keep distinct identities.
    """
    row_id: int  # 取り込み時に採番、以後不変
    values: dict[str, Any] = field(default_factory=dict)  # canonical field -> raw value

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def replace_value(self, key: str, value: Any) -> EntityRow:
        """Return a copy with one cell replaced (the original row is untouched)."""
        updated = dict(self.values)
        updated[key] = value
        return EntityRow(row_id=self.row_id, values=updated)
