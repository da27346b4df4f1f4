from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from src.models.config_models import DEFAULT_CONFIG, ValidationConfig
from src.models.entity import EntityKind
from src.models.finding import DATASET_ROW, Finding, Severity

from .values import (
    RANGE_FORM_RE,
    ArrayParseError,
    as_text,
    format_number,
    is_blank,
    is_list_like,
    is_phase_number,
    parse_json_value,
    split_tokens,
    to_number,
)

"""Referential and relationship checks spanning clients, workers and tasks.

Five independent passes, concatenated in this order with no cross-pass
deduplication:

1. client-task   RequestedTaskIDs must reference existing tasks
2. task-worker   every RequiredSkill must exist somewhere in the worker pool
3. worker-phase  AvailableSlots sanity, MaxLoadPerPhase overload
4. priority      PriorityLevel distribution (dataset level)
5. coverage      PreferredPhases normalization against Duration
"""

__all__ = [
    "validate",
    "CROSS_ENTITY_PASSES",
]

logger = logging.getLogger(__name__)

Rows = Sequence[Mapping[str, Any]]


def _label(row: Mapping[str, Any], name_field: str) -> str:
    return as_text(row.get(name_field)) or "unknown"


def _finding(
    severity: Severity,
    category: str,
    kind: EntityKind,
    row: int,
    field_name: str,
    message: str,
    suggestion: str | None = None,
    related: tuple[EntityKind, ...] = (),
) -> Finding:
    return Finding(
        severity=severity,
        entity=kind,
        row=row,
        field=field_name,
        message=message,
        check=category,
        suggestion=suggestion,
        related_entities=related,
    )


def validate_client_tasks(clients: Rows, tasks: Rows, config: ValidationConfig) -> list[Finding]:
    results: list[Finding] = []
    known = {as_text(t.get("TaskID")) for t in tasks} - {None}
    for index, client in enumerate(clients):
        if "RequestedTaskIDs" not in client:
            continue
        name = _label(client, "ClientName")
        requested = split_tokens(client.get("RequestedTaskIDs"))
        for task_id in requested:
            if task_id not in known:
                results.append(_finding(
                    Severity.ERROR, "client-task", EntityKind.CLIENTS, index, "RequestedTaskIDs",
                    f'Client "{name}" requests non-existent task "{task_id}"',
                    f'Remove "{task_id}" or ensure task exists in tasks dataset',
                    related=(EntityKind.TASKS,),
                ))
        if not requested:
            results.append(_finding(
                Severity.WARNING, "client-task", EntityKind.CLIENTS, index, "RequestedTaskIDs",
                f'Client "{name}" has no requested tasks',
                "Assign at least one task to this client",
            ))
        elif len(requested) > config.max_requested_tasks:
            results.append(_finding(
                Severity.WARNING, "client-task", EntityKind.CLIENTS, index, "RequestedTaskIDs",
                f'Client "{name}" requests {len(requested)} tasks (potentially excessive)',
                "Consider splitting into multiple phases or clients",
            ))
    return results


def validate_task_skill_coverage(tasks: Rows, workers: Rows, config: ValidationConfig) -> list[Finding]:
    results: list[Finding] = []
    worker_skills = [set(split_tokens(w.get("Skills"))) for w in workers]
    pool: set[str] = set().union(*worker_skills) if worker_skills else set()

    for index, task in enumerate(tasks):
        required = split_tokens(task.get("RequiredSkills"))
        if not required:
            continue
        name = _label(task, "TaskName")
        missing = [skill for skill in required if skill not in pool]
        if missing:
            listed = ", ".join(missing)
            results.append(_finding(
                Severity.ERROR, "task-worker", EntityKind.TASKS, index, "RequiredSkills",
                f'Task "{name}" requires skills not available in worker pool: {listed}',
                f"Add workers with skills: {listed} or modify task requirements",
                related=(EntityKind.WORKERS,),
            ))
        for skill in required:
            holders = sum(1 for skills in worker_skills if skill in skills)
            if holders > config.skill_redundancy_threshold:
                results.append(_finding(
                    Severity.INFO, "task-worker", EntityKind.TASKS, index, "RequiredSkills",
                    f'Skill "{skill}" is available in {holders} workers (high redundancy)',
                    "Consider diversifying worker skills or optimizing assignments",
                    related=(EntityKind.WORKERS,),
                ))
    return results


def validate_worker_availability(workers: Rows, config: ValidationConfig) -> list[Finding]:
    results: list[Finding] = []
    lower, upper = config.phase_min, config.phase_max
    for index, worker in enumerate(workers):
        name = _label(worker, "WorkerName")
        raw_slots = worker.get("AvailableSlots")
        if not is_blank(raw_slots):
            try:
                slots = parse_json_value(raw_slots)
            except ArrayParseError:
                results.append(_finding(
                    Severity.ERROR, "worker-phase", EntityKind.WORKERS, index, "AvailableSlots",
                    f'Worker "{name}" has unparseable AvailableSlots',
                    "Fix JSON format: [1,2,3,4,5]",
                ))
            else:
                if not isinstance(slots, list):
                    results.append(_finding(
                        Severity.ERROR, "worker-phase", EntityKind.WORKERS, index, "AvailableSlots",
                        f'Worker "{name}" has invalid AvailableSlots format',
                        "Use array format: [1,2,3,4,5]",
                    ))
                else:
                    invalid = [s for s in slots if not is_phase_number(s, lower, upper)]
                    if invalid:
                        results.append(_finding(
                            Severity.WARNING, "worker-phase", EntityKind.WORKERS, index, "AvailableSlots",
                            f'Worker "{name}" has invalid phase numbers: {", ".join(str(s) for s in invalid)}',
                            f"Use phase numbers between {lower}-{upper}",
                        ))
                    if len(slots) < config.min_available_slots:
                        plural = "" if len(slots) == 1 else "s"
                        results.append(_finding(
                            Severity.WARNING, "worker-phase", EntityKind.WORKERS, index, "AvailableSlots",
                            f'Worker "{name}" has very limited availability ({len(slots)} phase{plural})',
                            "Consider expanding worker availability or adjusting workload",
                        ))

        load = to_number(worker.get("MaxLoadPerPhase"))
        if load is not None and int(load) > config.overload_threshold:
            results.append(_finding(
                Severity.WARNING, "worker-phase", EntityKind.WORKERS, index, "MaxLoadPerPhase",
                f'Worker "{name}" may be overloaded with {int(load)} tasks per phase',
                "Consider reducing load or adding more workers",
            ))
    return results


def validate_priority_distribution(clients: Rows, config: ValidationConfig) -> list[Finding]:
    if not clients:
        return []
    results: list[Finding] = []
    counts = {level: 0 for level in range(1, 6)}
    for client in clients:
        priority = to_number(client.get("PriorityLevel"))
        if priority is None:
            continue
        level = int(priority)  # parseInt 相当 (切り捨て)
        if level in counts:
            counts[level] += 1

    share = (counts[4] + counts[5]) / len(clients)
    if share > config.high_priority_share:
        results.append(_finding(
            Severity.WARNING, "priority", EntityKind.CLIENTS, DATASET_ROW, "PriorityLevel",
            f"{share * 100:.1f}% of clients have high priority (4-5). "
            "This may impact scheduling efficiency.",
            "Review priority assignments to ensure balanced workload distribution",
        ))
    if counts[5] == 0:
        results.append(_finding(
            Severity.INFO, "priority", EntityKind.CLIENTS, DATASET_ROW, "PriorityLevel",
            "No clients have critical priority (5). Consider if any clients need urgent attention.",
            "Review if any clients should have critical priority",
        ))
    return results


def validate_preferred_phases(tasks: Rows, config: ValidationConfig) -> list[Finding]:
    results: list[Finding] = []
    lower, upper = config.phase_min, config.phase_max
    for index, task in enumerate(tasks):
        raw = task.get("PreferredPhases")
        if is_blank(raw):
            continue
        name = _label(task, "TaskName")
        text = raw if is_list_like(raw) else (as_text(raw) or "").strip()

        def add(severity: Severity, message: str, suggestion: str) -> None:
            results.append(_finding(
                severity, "coverage", EntityKind.TASKS, index, "PreferredPhases", message, suggestion,
            ))

        match = RANGE_FORM_RE.match(text) if isinstance(text, str) else None
        if match:
            start, end = int(match.group(1)), int(match.group(2))
            if start > end:
                add(Severity.ERROR,
                    f'Task "{name}" has invalid phase range: {text} (start > end)',
                    f'Use valid range format like "{end}-{start}"')
            duration = to_number(task.get("Duration"))
            if duration is not None and (end - start + 1) < duration:
                add(Severity.WARNING,
                    f'Task "{name}" preferred phases ({end - start + 1}) less than duration '
                    f"({format_number(duration)})",
                    f"Extend phase range to accommodate duration of {format_number(duration)} phases")
        elif is_list_like(text) or (text.startswith("[") and text.endswith("]")):
            try:
                phases = parse_json_value(text)
            except ArrayParseError:
                add(Severity.ERROR,
                    f'Task "{name}" has unparseable PreferredPhases',
                    'Use valid format: [1,2,3] or "1-3"')
                continue
            if not isinstance(phases, list):
                add(Severity.ERROR,
                    f'Task "{name}" has invalid phase array format',
                    'Use array format: [1,2,3] or range format: "1-3"')
                continue
            invalid = [p for p in phases if not is_phase_number(p, lower, upper)]
            if invalid:
                add(Severity.WARNING,
                    f'Task "{name}" has invalid phase numbers: {", ".join(str(p) for p in invalid)}',
                    f"Use phase numbers between {lower}-{upper}")
        else:
            add(Severity.ERROR,
                f'Task "{name}" has invalid PreferredPhases format: {text}',
                'Use range format "1-3" or array format [1,2,3]')
    return results


CROSS_ENTITY_PASSES: tuple[tuple[str, Callable[[Rows, Rows, Rows, ValidationConfig], list[Finding]]], ...] = (
    ("client-task", lambda c, w, t, cfg: validate_client_tasks(c, t, cfg)),
    ("task-worker", lambda c, w, t, cfg: validate_task_skill_coverage(t, w, cfg)),
    ("worker-phase", lambda c, w, t, cfg: validate_worker_availability(w, cfg)),
    ("priority", lambda c, w, t, cfg: validate_priority_distribution(c, cfg)),
    ("coverage", lambda c, w, t, cfg: validate_preferred_phases(t, cfg)),
)


def validate(
    clients: Rows,
    workers: Rows,
    tasks: Rows,
    config: ValidationConfig = DEFAULT_CONFIG,
) -> list[Finding]:
    """Run the five cross-entity passes and concatenate their findings in pass order."""
    findings: list[Finding] = []
    for category, run_pass in CROSS_ENTITY_PASSES:
        try:
            produced = run_pass(clients, workers, tasks, config)
        except Exception as e:
            logger.warning(f"cross-entity pass {category} failed: {e!r}")
            produced = [Finding(
                severity=Severity.ERROR,
                entity=None,
                row=DATASET_ROW,
                field="validator",
                message=f"Cross-entity check '{category}' failed: {e}",
                check=category,
            )]
        logger.debug(f"cross-entity {category}: {len(produced)} findings")
        findings.extend(produced)
    return findings
