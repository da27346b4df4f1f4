from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from ..matching.reconciler import HeaderMapping, apply_mapping, reconcile
from ..models.anomaly import Anomaly
from ..models.check_result import CheckResult
from ..models.config_models import DEFAULT_CONFIG, ValidationConfig
from ..models.entity import EntityKind, EntityRow
from ..models.finding import Finding
from ..validators import anomaly as anomaly_detector
from ..validators import cross_entity
from ..validators.field_checks import FieldValidationRun
from ..validators.field_checks import run_field_validation as run_field_stages
from . import aggregator
from .aggregator import ValidationReport
from .search import SearchResult
from .search import search as search_rows

"""Validation session service.

The session is the single state record of one validation workflow: raw rows
and headers per entity kind, the header mapping, the canonical row collections,
the last findings and anomalies and the opaque rules configuration. Every
component call gets its input from here; nothing is kept in module globals.

Row collections are tuples of EntityRow. Edits (apply_suggestion /
apply_anomaly) replace the whole tuple with a new one in which exactly one
cell differs, so a reader holding the previous tuple never sees a half-edited
row. Edits never re-run validation; call the run methods again.
"""

__all__ = [
    "SessionError",
    "SuggestionNotFoundError",
    "ValidationSession",
    "replace_cell",
    "apply_suggestion",
    "ENTITY_ORDER",
]

logger = logging.getLogger(__name__)

ENTITY_ORDER = (EntityKind.CLIENTS, EntityKind.WORKERS, EntityKind.TASKS)

StageCallback = Callable[[CheckResult], None]


class SessionError(Exception):
    """Unknown entity kind or an operation on a kind with nothing ingested."""


class SuggestionNotFoundError(LookupError):
    """No finding with a suggested value exists for the requested cell."""


def replace_cell(rows: Sequence[EntityRow], row: int, field_name: str, value: Any) -> tuple[EntityRow, ...]:
    """Copy-on-write single-cell replacement; the edited row keeps its row_id.

    Raises:
        IndexError: when row is outside the collection
    """
    if not 0 <= row < len(rows):
        raise IndexError(f"row {row} outside 0..{len(rows) - 1}")
    updated = list(rows)
    updated[row] = rows[row].replace_value(field_name, value)
    return tuple(updated)


def apply_suggestion(
    rows: Sequence[EntityRow],
    findings: Iterable[Finding],
    row: int,
    field_name: str,
) -> tuple[EntityRow, ...]:
    """Write the suggested value of the first matching finding into (row, field).

    Raises:
        SuggestionNotFoundError: when no finding at the cell carries a suggested value
        IndexError: when row is outside the collection
    """
    for finding in aggregator.findings_at(findings, row, field_name):
        if finding.has_suggested_value:
            return replace_cell(rows, row, field_name, finding.suggested_value)
    raise SuggestionNotFoundError(f"no suggested value for row {row} field {field_name}")


def _ordered_headers(raw_rows: Sequence[Mapping[str, Any]]) -> list[str]:
    headers: list[str] = []
    for raw in raw_rows:
        for key in raw:
            if key not in headers:
                headers.append(key)
    return headers


class ValidationSession:
    """In-memory state of one validation workflow.

    Attributes:
        config: Thresholds shared by every validator call
        mappings: Header mapping per ingested entity kind
        anomalies: Last anomaly list per entity kind
        field_runs: Last field validation run per entity kind
        rules_config: Opaque ``{rules, weights, metadata}`` object (not interpreted)
    """

    def __init__(self, config: ValidationConfig = DEFAULT_CONFIG) -> None:
        self.config = config
        self.raw_rows: dict[EntityKind, list[dict[str, Any]]] = {}
        self.raw_headers: dict[EntityKind, list[str]] = {}
        self.mappings: dict[EntityKind, HeaderMapping] = {}
        self.anomalies: dict[EntityKind, list[Anomaly]] = {}
        self.field_runs: dict[EntityKind, FieldValidationRun] = {}
        self.rules_config: dict[str, Any] | None = None
        self._rows: dict[EntityKind, tuple[EntityRow, ...]] = {}
        self._field_findings: dict[EntityKind, list[Finding]] = {}
        self._cross_findings: list[Finding] = []

    # --- helpers ------------------------------------------------------------

    @staticmethod
    def _kind(kind: EntityKind | str) -> EntityKind:
        try:
            return EntityKind.parse(kind)
        except ValueError as e:
            raise SessionError(str(e)) from e

    def _require(self, kind: EntityKind | str) -> EntityKind:
        kind = self._kind(kind)
        if kind not in self._rows:
            raise SessionError(f"no {kind.value} ingested")
        return kind

    def _values(self, kind: EntityKind) -> list[dict[str, Any]]:
        return [row.values for row in self._rows.get(kind, ())]

    def _project(self, kind: EntityKind) -> None:
        projected = apply_mapping(self.raw_rows[kind], self.mappings[kind])
        self._rows[kind] = tuple(EntityRow(row_id=i, values=v) for i, v in enumerate(projected))
        # 古い結果は破棄 (次回の検証で再計算)
        self._field_findings.pop(kind, None)
        self.field_runs.pop(kind, None)
        self.anomalies.pop(kind, None)
        self._cross_findings = []

    @property
    def kinds(self) -> list[EntityKind]:
        """Ingested entity kinds in clients/workers/tasks order."""
        return [k for k in ENTITY_ORDER if k in self._rows]

    @property
    def findings(self) -> list[Finding]:
        """Current findings: field findings per kind, then cross-entity."""
        return aggregator.merge(
            [self._field_findings.get(k, []) for k in ENTITY_ORDER] + [self._cross_findings]
        )

    # --- ingestion & mapping -----------------------------------------------

    def ingest(
        self,
        kind: EntityKind | str,
        raw_rows: Sequence[Mapping[str, Any]],
        raw_headers: Sequence[str] | None = None,
    ) -> HeaderMapping:
        """Reconcile headers, project rows onto canonical fields and assign row ids.

        Args:
            kind: Entity kind of the collection
            raw_rows: Rows keyed by raw column name
            raw_headers: Column order of the source; derived from the rows when omitted

        Returns:
            The automatic HeaderMapping (reviewable via set_mapping)
        """
        kind = self._kind(kind)
        self.raw_rows[kind] = [dict(r) for r in raw_rows]
        self.raw_headers[kind] = list(raw_headers) if raw_headers is not None else _ordered_headers(raw_rows)
        self.mappings[kind] = reconcile(
            self.raw_headers[kind], kind.canonical_fields, self.config.similarity_threshold,
        )
        self._project(kind)
        unmapped = self.mappings[kind].unmapped(kind.canonical_fields)
        logger.info(
            f"ingested {kind.value}: rows={len(self._rows[kind])} "
            f"mapped={len(self.mappings[kind].mapping)} unmapped={len(unmapped)}"
        )
        return self.mappings[kind]

    def set_mapping(self, kind: EntityKind | str, canonical: str, raw: str | None) -> tuple[EntityRow, ...]:
        """Override one mapping entry and re-project the rows from the raw data.

        Edits made to the previous projection are discarded.
        """
        kind = self._require(kind)
        if canonical not in kind.canonical_fields:
            raise SessionError(f"{canonical!r} is not a {kind.value} field")
        try:
            self.mappings[kind].set_mapping(canonical, raw)
        except ValueError as e:
            raise SessionError(str(e)) from e
        self._project(kind)
        return self._rows[kind]

    def rows(self, kind: EntityKind | str) -> tuple[EntityRow, ...]:
        return self._rows.get(self._kind(kind), ())

    # --- validation ---------------------------------------------------------

    def run_field_validation(
        self,
        kind: EntityKind | str,
        *,
        on_stage: StageCallback | None = None,
        stop_after: int | None = None,
    ) -> FieldValidationRun:
        kind = self._require(kind)
        run = run_field_stages(self._values(kind), kind, self.config, on_stage=on_stage, stop_after=stop_after)
        if not run.complete:
            logger.warning(f"{kind.value}: field validation incomplete ({len(run.results)}/{run.total_checks})")
        self.field_runs[kind] = run
        self._field_findings[kind] = run.findings
        return run

    def detect_anomalies(self, kind: EntityKind | str) -> list[Anomaly]:
        kind = self._require(kind)
        self.anomalies[kind] = anomaly_detector.detect(self._values(kind), self.config)
        return self.anomalies[kind]

    def run_cross_entity(self) -> list[Finding]:
        """Cross-entity passes over the current collections (missing kinds count as empty)."""
        self._cross_findings = cross_entity.validate(
            self._values(EntityKind.CLIENTS),
            self._values(EntityKind.WORKERS),
            self._values(EntityKind.TASKS),
            self.config,
        )
        return self._cross_findings

    def validate_all(self, *, on_stage: StageCallback | None = None) -> ValidationReport:
        """Field checks and anomaly detection per ingested kind, then cross-entity.

        Raises:
            SessionError: when nothing has been ingested
        """
        if not self._rows:
            raise SessionError("nothing ingested")
        for kind in self.kinds:
            self.run_field_validation(kind, on_stage=on_stage)
            self.detect_anomalies(kind)
        cross = self.run_cross_entity()
        if on_stage is not None:
            on_stage(CheckResult(
                check_id="cross_entity",
                name="Cross-Entity",
                description="Relationships between clients, workers and tasks",
                findings=tuple(cross),
            ))
        return ValidationReport(
            findings=self.findings,
            check_results={k: list(self.field_runs[k].results) for k in self.kinds},
            anomalies={k: list(self.anomalies[k]) for k in self.kinds},
            row_counts={k: len(self._rows[k]) for k in self.kinds},
            complete=all(self.field_runs[k].complete for k in self.kinds),
        )

    def findings_at(self, kind: EntityKind | str, row: int, field_name: str) -> list[Finding]:
        return aggregator.findings_at(self.findings, row, field_name, self._kind(kind))

    # --- edits ----------------------------------------------------------------

    def apply_suggestion(self, kind: EntityKind | str, row: int, field_name: str) -> tuple[EntityRow, ...]:
        kind = self._require(kind)
        candidates = aggregator.findings_at(self.findings, row, field_name, kind)
        self._rows[kind] = apply_suggestion(self._rows[kind], candidates, row, field_name)
        logger.debug(f"applied suggestion {kind.value}[{row}].{field_name}")
        return self._rows[kind]

    def apply_anomaly(self, kind: EntityKind | str, anomaly: Anomaly) -> tuple[EntityRow, ...]:
        kind = self._require(kind)
        current = self._rows[kind]
        updated = anomaly_detector.apply_anomaly([r.values for r in current], anomaly)
        self._rows[kind] = tuple(
            EntityRow(row_id=old.row_id, values=values) for old, values in zip(current, updated)
        )
        logger.debug(f"applied anomaly {anomaly.id} to {kind.value}")
        return self._rows[kind]

    # --- queries --------------------------------------------------------------

    def search(self, kind: EntityKind | str, query: str, *, errors_only: bool = False) -> SearchResult:
        kind = self._kind(kind)
        own = [f for f in self.findings if f.entity is kind]
        return search_rows(self.rows(kind), query, own, errors_only=errors_only)

    def reset(self) -> None:
        """Discard every collection, mapping and result."""
        self.raw_rows.clear()
        self.raw_headers.clear()
        self.mappings.clear()
        self.anomalies.clear()
        self.field_runs.clear()
        self.rules_config = None
        self._rows.clear()
        self._field_findings.clear()
        self._cross_findings = []
