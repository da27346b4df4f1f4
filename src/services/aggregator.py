from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from ..models.anomaly import Anomaly
from ..models.check_result import CheckResult
from ..models.entity import EntityKind
from ..models.finding import Finding, Severity

"""Validation aggregation service.

Merges the result sets of the independent validators into the single ordered
findings list consumed by the grid and the export. There is no identity based
deduplication: one (row, field) cell can legitimately carry findings from
several validators at once.
"""

__all__ = [
    "merge",
    "findings_at",
    "count_by_severity",
    "ValidationReport",
]


def merge(result_sets: Iterable[Sequence[Finding]]) -> list[Finding]:
    """Concatenate result sets in caller-supplied order."""
    merged: list[Finding] = []
    for results in result_sets:
        merged.extend(results)
    return merged


def findings_at(
    findings: Iterable[Finding],
    row: int,
    field_name: str,
    entity: EntityKind | None = None,
) -> list[Finding]:
    """Findings attached to one cell (optionally restricted to one entity kind)."""
    return [
        f for f in findings
        if f.row == row and f.field == field_name and (entity is None or f.entity is entity)
    ]


def count_by_severity(findings: Iterable[Finding]) -> dict[Severity, int]:
    counts = Counter(f.severity for f in findings)
    return {severity: counts.get(severity, 0) for severity in Severity}


@dataclass(frozen=True)
class ValidationReport:
    """Aggregated outcome of one validate-all run.

    Attributes:
        findings: Merged findings (field findings per kind, then cross-entity)
        check_results: Field check results per entity kind
        anomalies: Anomalies per entity kind
        row_counts: Rows validated per entity kind
        complete: False when any staged field run stopped early
    """
    findings: list[Finding]
    check_results: dict[EntityKind, list[CheckResult]] = field(default_factory=dict)
    anomalies: dict[EntityKind, list[Anomaly]] = field(default_factory=dict)
    row_counts: dict[EntityKind, int] = field(default_factory=dict)
    complete: bool = True

    @property
    def severity_counts(self) -> dict[Severity, int]:
        return count_by_severity(self.findings)

    @property
    def errors(self) -> int:
        return self.severity_counts[Severity.ERROR]

    @property
    def warnings(self) -> int:
        return self.severity_counts[Severity.WARNING]

    @property
    def infos(self) -> int:
        return self.severity_counts[Severity.INFO]

    @property
    def anomaly_count(self) -> int:
        return sum(len(a) for a in self.anomalies.values())

    @property
    def total_rows(self) -> int:
        return sum(self.row_counts.values())
