from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from src.models.check_result import CheckResult
from src.models.config_models import DEFAULT_CONFIG, ValidationConfig
from src.models.entity import EntityKind
from src.models.finding import DATASET_ROW, Finding, Severity

from .values import (
    ARRAY_FORM_RE,
    BARE_INT_LIST_RE,
    RANGE_FORM_RE,
    ArrayParseError,
    as_text,
    format_number,
    loads_json,
    parse_json_value,
    split_tokens,
    to_number,
)

"""Per-entity field validators.

Each check is independent and stateless: it reads the row snapshot and returns
findings, nothing else. run_field_checks() runs every check in registry order;
an exception raised inside one check is converted into a single synthetic
error finding (field='validator', row=-1) and the remaining checks still run.
Parse failures of cell content are ordinary findings, not execution failures.
"""

__all__ = [
    "FieldCheck",
    "FIELD_CHECKS",
    "FieldValidationRun",
    "run_check",
    "run_field_checks",
    "run_field_validation",
    "validate",
]

logger = logging.getLogger(__name__)

Rows = Sequence[Mapping[str, Any]]
CheckFunc = Callable[[Rows, EntityKind, ValidationConfig], list[Finding]]

TASK_ID_RE = re.compile(r"^T\d+$")

# カンマ区切りリスト列 (エンティティ種別ごと)
LIST_FIELDS: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.CLIENTS: ("RequestedTaskIDs",),
    EntityKind.WORKERS: ("Skills",),
    EntityKind.TASKS: ("RequiredSkills",),
}

RANGE_FIELDS: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.CLIENTS: ("PriorityLevel",),
    EntityKind.WORKERS: ("MaxLoadPerPhase",),
    EntityKind.TASKS: ("Duration", "MaxConcurrent"),
}


@dataclass(frozen=True)
class FieldCheck:
    check_id: str
    name: str
    description: str
    func: CheckFunc


def _finding(
    severity: Severity,
    kind: EntityKind,
    row: int,
    field_name: str,
    message: str,
    check: str,
    *,
    suggestion: str | None = None,
    suggested_value: Any = None,
) -> Finding:
    return Finding(
        severity=severity,
        entity=kind,
        row=row,
        field=field_name,
        message=message,
        check=check,
        suggestion=suggestion,
        suggested_value=suggested_value,
    )


def _clamped(number: float, lower: float, upper: float) -> int | float:
    value = min(max(number, lower), upper)
    return int(value) if float(value).is_integer() else value


# --- individual checks -------------------------------------------------------

def check_missing_columns(rows: Rows, kind: EntityKind, config: ValidationConfig) -> list[Finding]:
    present = set(rows[0].keys()) if rows else set()
    return [
        _finding(Severity.ERROR, kind, DATASET_ROW, column,
                 f"Required column '{column}' is missing", "missing_columns")
        for column in kind.required_fields
        if column not in present
    ]


def check_duplicate_ids(rows: Rows, kind: EntityKind, config: ValidationConfig) -> list[Finding]:
    id_field = kind.id_field
    issues: list[Finding] = []
    seen: set[str] = set()
    for index, row in enumerate(rows):
        value = as_text(row.get(id_field))
        if value is None:
            continue
        if value in seen:
            issues.append(_finding(
                Severity.ERROR, kind, index, id_field,
                f"Duplicate {id_field}: {value}", "duplicate_ids",
                suggestion=f"Assign a unique {id_field} or merge the duplicate records",
            ))
        seen.add(value)
    return issues


def check_malformed_lists(rows: Rows, kind: EntityKind, config: ValidationConfig) -> list[Finding]:
    issues: list[Finding] = []
    for index, row in enumerate(rows):
        for list_field in LIST_FIELDS[kind]:
            text = as_text(row.get(list_field))
            if text is None:
                continue
            cleaned = ",".join(split_tokens(text))
            if ",," in text:
                issues.append(_finding(
                    Severity.WARNING, kind, index, list_field,
                    f"{list_field} contains empty values (double commas)", "malformed_lists",
                    suggested_value=cleaned,
                ))
            stripped = text.strip()
            if stripped.startswith(",") or stripped.endswith(","):
                issues.append(_finding(
                    Severity.WARNING, kind, index, list_field,
                    f"{list_field} has trailing or leading commas", "malformed_lists",
                    suggested_value=cleaned,
                ))

        if kind is EntityKind.WORKERS:
            slots = as_text(row.get("AvailableSlots"))
            if slots is not None and not ARRAY_FORM_RE.match(slots):
                bare = slots.strip()
                issues.append(_finding(
                    Severity.ERROR, kind, index, "AvailableSlots",
                    f"AvailableSlots should be in array format [1,2,3], got: {slots}", "malformed_lists",
                    suggested_value=f"[{bare}]" if BARE_INT_LIST_RE.match(bare) else None,
                ))

        if kind is EntityKind.TASKS:
            phases = as_text(row.get("PreferredPhases"))
            if phases is not None and not (RANGE_FORM_RE.match(phases) or ARRAY_FORM_RE.match(phases)):
                issues.append(_finding(
                    Severity.WARNING, kind, index, "PreferredPhases",
                    "PreferredPhases should be range format (1-3) or array format [1,2,3], "
                    f"got: {phases}",
                    "malformed_lists",
                ))
    return issues


def check_out_of_range(rows: Rows, kind: EntityKind, config: ValidationConfig) -> list[Finding]:
    issues: list[Finding] = []
    for index, row in enumerate(rows):
        for range_field in RANGE_FIELDS[kind]:
            if range_field not in row:
                continue
            number = to_number(row[range_field])
            if number is None:
                continue
            lower, upper = config.numeric_ranges[range_field]
            if number < lower or number > upper:
                issues.append(_finding(
                    Severity.WARNING, kind, index, range_field,
                    f"{range_field} value {format_number(number)} is outside expected range "
                    f"{format_number(float(lower))}-{format_number(float(upper))}",
                    "out_of_range",
                    suggested_value=_clamped(number, lower, upper),
                ))
    return issues


def check_broken_json(rows: Rows, kind: EntityKind, config: ValidationConfig) -> list[Finding]:
    if kind is not EntityKind.CLIENTS:
        return []
    issues: list[Finding] = []
    for index, row in enumerate(rows):
        value = row.get("AttributesJSON")
        if isinstance(value, (dict, list, tuple)):
            continue  # 既に構造化済み
        text = as_text(value)
        if text is None:
            continue
        stripped = text.strip()
        # JSON らしい値のみ検証 (自由記述テキストは許容)
        if not (stripped.startswith("{") or stripped.startswith("[")):
            continue
        try:
            loads_json(stripped)
        except json.JSONDecodeError:
            issues.append(_finding(
                Severity.ERROR, kind, index, "AttributesJSON",
                "Invalid JSON format in AttributesJSON", "broken_json",
            ))
    return issues


def check_unknown_references(rows: Rows, kind: EntityKind, config: ValidationConfig) -> list[Finding]:
    if kind is not EntityKind.CLIENTS:
        return []
    issues: list[Finding] = []
    for index, row in enumerate(rows):
        for task_id in split_tokens(row.get("RequestedTaskIDs")):
            if not TASK_ID_RE.match(task_id):
                issues.append(_finding(
                    Severity.WARNING, kind, index, "RequestedTaskIDs",
                    f'Task ID "{task_id}" doesn\'t follow expected format (T1, T17, T001, etc.)',
                    "unknown_references",
                ))
    return issues


def check_overloaded_workers(rows: Rows, kind: EntityKind, config: ValidationConfig) -> list[Finding]:
    if kind is not EntityKind.WORKERS:
        return []
    issues: list[Finding] = []
    for index, row in enumerate(rows):
        load = to_number(row.get("MaxLoadPerPhase"))
        if load is not None and load > config.overload_threshold:
            issues.append(_finding(
                Severity.WARNING, kind, index, "MaxLoadPerPhase",
                f"Worker may be overloaded with {format_number(load)} tasks per phase",
                "overloaded_workers",
            ))
    return issues


def check_capacity_saturation(rows: Rows, kind: EntityKind, config: ValidationConfig) -> list[Finding]:
    if kind is not EntityKind.WORKERS:
        return []
    issues: list[Finding] = []
    for index, row in enumerate(rows):
        try:
            slots = parse_json_value(row.get("AvailableSlots"))
        except ArrayParseError:
            continue  # 空欄 or malformed_lists が報告済み
        if isinstance(slots, list) and len(slots) < config.min_available_slots:
            plural = "" if len(slots) == 1 else "s"
            issues.append(_finding(
                Severity.WARNING, kind, index, "AvailableSlots",
                f"Worker has very limited availability ({len(slots)} slot{plural})",
                "capacity_saturation",
            ))
    return issues


def check_skill_coverage(rows: Rows, kind: EntityKind, config: ValidationConfig) -> list[Finding]:
    if kind is not EntityKind.WORKERS:
        return []
    issues: list[Finding] = []
    for index, row in enumerate(rows):
        if as_text(row.get("Skills")) is None:
            continue
        skills = split_tokens(row.get("Skills"))
        if len(skills) < config.min_skills:
            issues.append(_finding(
                Severity.WARNING, kind, index, "Skills",
                f"Worker has limited skills ({len(skills)}). "
                "Consider adding more skills for better task coverage.",
                "skill_coverage",
            ))
    return issues


def check_max_concurrency(rows: Rows, kind: EntityKind, config: ValidationConfig) -> list[Finding]:
    if kind is not EntityKind.TASKS:
        return []
    issues: list[Finding] = []
    for index, row in enumerate(rows):
        max_concurrent = to_number(row.get("MaxConcurrent"))
        duration = to_number(row.get("Duration"))
        if max_concurrent is None or duration is None:
            continue
        if max_concurrent > duration:
            issues.append(_finding(
                Severity.WARNING, kind, index, "MaxConcurrent",
                f"MaxConcurrent ({format_number(max_concurrent)}) exceeds Duration ({format_number(duration)})",
                "max_concurrency",
            ))
    return issues


FIELD_CHECKS: tuple[FieldCheck, ...] = (
    FieldCheck("missing_columns", "Missing Columns",
               "Checks for required columns based on entity type", check_missing_columns),
    FieldCheck("duplicate_ids", "Duplicate IDs",
               "Identifies duplicate primary key values", check_duplicate_ids),
    FieldCheck("malformed_lists", "Malformed Lists",
               "Validates comma-separated and array format fields", check_malformed_lists),
    FieldCheck("out_of_range", "Out-of-Range Values",
               "Checks numeric values against expected ranges", check_out_of_range),
    FieldCheck("broken_json", "Broken JSON",
               "Validates JSON format in AttributesJSON fields", check_broken_json),
    FieldCheck("unknown_references", "Unknown References",
               "Checks requested task IDs follow the task ID format", check_unknown_references),
    FieldCheck("overloaded_workers", "Overloaded Workers",
               "Checks for workers with excessive per-phase load", check_overloaded_workers),
    FieldCheck("capacity_saturation", "Phase-slot Capacity",
               "Validates phase-slot capacity constraints", check_capacity_saturation),
    FieldCheck("skill_coverage", "Skill Coverage Gaps",
               "Flags workers with too few skills", check_skill_coverage),
    FieldCheck("max_concurrency", "Max Concurrency Feasibility",
               "Validates maximum concurrency against duration", check_max_concurrency),
)


# --- runner -----------------------------------------------------------------

def run_check(check: FieldCheck, rows: Rows, kind: EntityKind, config: ValidationConfig) -> CheckResult:
    """Run one check, converting an unexpected exception into a synthetic finding."""
    try:
        findings = check.func(rows, kind, config)
    except Exception as e:
        logger.warning(f"check {check.check_id} failed on {kind.value}: {e!r}")
        findings = [Finding(
            severity=Severity.ERROR,
            entity=kind,
            row=DATASET_ROW,
            field="validator",
            message=f"Validator '{check.name}' failed: {e}",
            check=check.check_id,
        )]
    return CheckResult(
        check_id=check.check_id,
        name=check.name,
        description=check.description,
        findings=tuple(findings),
    )


def run_field_checks(
    rows: Rows,
    kind: EntityKind | str,
    config: ValidationConfig = DEFAULT_CONFIG,
    checks: Sequence[FieldCheck] = FIELD_CHECKS,
) -> Iterator[CheckResult]:
    """Yield one CheckResult per check, in registry order."""
    kind = EntityKind.parse(kind)
    for check in checks:
        result = run_check(check, rows, kind, config)
        logger.debug(
            f"{kind.value}/{check.check_id}: {result.status.value} "
            f"errors={result.errors} warnings={result.warnings}"
        )
        yield result


@dataclass
class FieldValidationRun:
    """Outcome of one (possibly staged) field validation run.

    A run that stopped before its last stage is incomplete; its missing stages
    produced no findings, which must not be read as "clean".
    """
    kind: EntityKind
    total_checks: int
    results: list[CheckResult] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return len(self.results) == self.total_checks

    @property
    def findings(self) -> list[Finding]:
        return [f for r in self.results for f in r.findings]


def run_field_validation(
    rows: Rows,
    kind: EntityKind | str,
    config: ValidationConfig = DEFAULT_CONFIG,
    *,
    on_stage: Callable[[CheckResult], None] | None = None,
    stop_after: int | None = None,
) -> FieldValidationRun:
    """Run the field checks as stages.

    Args:
        rows: Canonical rows of one entity kind
        kind: Entity discriminant
        config: Thresholds
        on_stage: Called after each completed stage (progress display)
        stop_after: Stop after this many stages (staged preview); None runs all

    Returns:
        FieldValidationRun whose ``complete`` tells whether every stage ran
    """
    kind = EntityKind.parse(kind)
    run = FieldValidationRun(kind=kind, total_checks=len(FIELD_CHECKS))
    for result in run_field_checks(rows, kind, config):
        run.results.append(result)
        if on_stage is not None:
            on_stage(result)
        if stop_after is not None and len(run.results) >= stop_after:
            break
    return run


def validate(rows: Rows, kind: EntityKind | str, config: ValidationConfig = DEFAULT_CONFIG) -> list[Finding]:
    """Flattened findings of a full field validation run."""
    return run_field_validation(rows, kind, config).findings
