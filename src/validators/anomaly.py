from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Mapping, Sequence
from typing import Any

import pandas as pd

from src.models.anomaly import Anomaly, AnomalyCategory, AnomalySeverity
from src.models.config_models import DEFAULT_CONFIG, ValidationConfig

from .values import (
    ARRAY_FORM_RE,
    BARE_INT_LIST_RE,
    as_text,
    format_number,
    is_blank,
    loads_json,
    split_list,
    split_tokens,
    to_number,
)

"""Statistical and pattern based anomaly detection.

Detection order is the priority order; the concatenated list is truncated to
the configured limit (10 by default):

1. duplicate IDs
2. numeric outliers (population stddev)
3. broken JSON in AttributesJSON
4. malformed AvailableSlots
5. skill overload pattern
6. ID format inconsistency
7. single requested task pattern
8. missing required values

Each anomaly carries a suggested value for exactly one (row, field) cell.
Applying it never triggers re-validation; callers re-run the validators.
"""

__all__ = [
    "detect",
    "apply_anomaly",
]

logger = logging.getLogger(__name__)

Rows = Sequence[Mapping[str, Any]]

ID_FIELDS = ("ClientID", "WorkerID", "TaskID")
NUMERIC_FIELDS = ("PriorityLevel", "MaxLoadPerPhase", "Duration", "MaxConcurrent")
REQUIRED_VALUE_FIELDS = ("ClientID", "ClientName", "WorkerID", "WorkerName", "TaskID", "TaskName")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _detect_duplicates(rows: Rows) -> list[Anomaly]:
    found: list[Anomaly] = []
    for id_field in ID_FIELDS:
        if id_field not in rows[0]:
            continue
        positions: dict[str, list[int]] = {}
        for index, row in enumerate(rows):
            value = as_text(row.get(id_field))
            if value is not None:
                positions.setdefault(value, []).append(index)
        for value, indices in positions.items():
            # 初出以外をすべて報告
            for index in indices[1:]:
                found.append(Anomaly(
                    id=f"duplicate-{id_field}-{index}",
                    category=AnomalyCategory.DUPLICATE,
                    severity=AnomalySeverity.HIGH,
                    field=id_field,
                    row=index,
                    description=f'Duplicate {id_field} "{value}" found (also appears in row {indices[0] + 1})',
                    suggestion=f"Generate unique {id_field} or merge duplicate records",
                    confidence=1.0,
                    original_value=rows[index].get(id_field),
                    # TODO: check the disambiguated value against existing IDs before suggesting it
                    suggested_value=f"{value}_{index + 1}",
                ))
    return found


def _detect_outliers(rows: Rows, config: ValidationConfig) -> list[Anomaly]:
    found: list[Anomaly] = []
    for numeric_field in NUMERIC_FIELDS:
        if numeric_field not in rows[0]:
            continue
        numbers = pd.Series([to_number(row.get(numeric_field)) for row in rows], dtype="float64")
        parsed = numbers.dropna()
        if parsed.empty:
            continue
        mean = float(parsed.mean())
        stddev = float(parsed.std(ddof=0))
        if not (math.isfinite(mean) and math.isfinite(stddev)):
            continue  # 極端な値で集計が溢れた列
        for index, value in numbers.items():
            if pd.isna(value):
                continue
            deviation = abs(value - mean)
            if deviation <= config.outlier_sigma * stddev:
                continue
            suggested = _round_half_up(mean)
            high = deviation > config.high_outlier_sigma * stddev
            found.append(Anomaly(
                id=f"outlier-{numeric_field}-{index}",
                category=AnomalyCategory.OUTLIER,
                severity=AnomalySeverity.HIGH if high else AnomalySeverity.MEDIUM,
                field=numeric_field,
                row=int(index),
                description=(
                    f"{numeric_field} value {format_number(float(value))} is significantly "
                    f"different from the average ({mean:.2f})"
                ),
                suggestion=f"Consider reviewing this value. Suggested: {suggested}",
                confidence=0.85,
                original_value=rows[int(index)].get(numeric_field),
                suggested_value=suggested,
            ))
    return found


def _repair_json(text: str) -> str:
    """Best-effort repair: wrap text with unescaped quotes into a message object."""
    if '"' in text and '\\"' not in text:
        return json.dumps({"message": text}, ensure_ascii=False)
    return text


def _detect_broken_json(rows: Rows) -> list[Anomaly]:
    found: list[Anomaly] = []
    for index, row in enumerate(rows):
        value = row.get("AttributesJSON")
        if not isinstance(value, str):
            continue
        text = value.strip()
        if not (text.startswith("{") or text.startswith("[")):
            continue
        try:
            loads_json(text)
        except json.JSONDecodeError:
            found.append(Anomaly(
                id=f"json-{index}",
                category=AnomalyCategory.INCONSISTENCY,
                severity=AnomalySeverity.HIGH,
                field="AttributesJSON",
                row=index,
                description="Invalid JSON format in AttributesJSON",
                suggestion="Fix JSON syntax errors",
                confidence=0.95,
                original_value=text,
                suggested_value=_repair_json(text),
            ))
    return found


def _detect_malformed_slots(rows: Rows) -> list[Anomaly]:
    found: list[Anomaly] = []
    for index, row in enumerate(rows):
        value = row.get("AvailableSlots")
        if not isinstance(value, str) or is_blank(value):
            continue
        text = value.strip()
        if ARRAY_FORM_RE.match(text):
            continue
        suggested = f"[{text}]" if BARE_INT_LIST_RE.match(text) else text
        found.append(Anomaly(
            id=f"slots-{index}",
            category=AnomalyCategory.INCONSISTENCY,
            severity=AnomalySeverity.HIGH,
            field="AvailableSlots",
            row=index,
            description="AvailableSlots should be in array format [1,2,3]",
            suggestion="Convert to proper array format",
            confidence=0.90,
            original_value=text,
            suggested_value=suggested,
        ))
    return found


def _detect_skill_overload(rows: Rows, config: ValidationConfig) -> list[Anomaly]:
    found: list[Anomaly] = []
    for index, row in enumerate(rows):
        if as_text(row.get("Skills")) is None:
            continue
        skills = split_list(row.get("Skills"))
        if len(skills) <= config.skill_overload:
            continue
        found.append(Anomaly(
            id=f"pattern-skills-{index}",
            category=AnomalyCategory.PATTERN,
            severity=AnomalySeverity.MEDIUM,
            field="Skills",
            row=index,
            description=f"Worker has many skills ({len(skills)}). Consider focusing on core competencies.",
            suggestion="Focus on primary skills for better matching",
            confidence=0.75,
            original_value=row.get("Skills"),
            suggested_value=", ".join(skills[: config.skills_to_keep]),
        ))
    return found


def _detect_id_format(rows: Rows) -> list[Anomaly]:
    found: list[Anomaly] = []
    for index, row in enumerate(rows):
        for id_field in ID_FIELDS:
            value = as_text(row.get(id_field))
            if value is None:
                continue
            prefix = id_field[0]
            if re.match(rf"^{prefix}\d+$", value):
                continue
            found.append(Anomaly(
                id=f"id-format-{id_field}-{index}",
                category=AnomalyCategory.INCONSISTENCY,
                severity=AnomalySeverity.MEDIUM,
                field=id_field,
                row=index,
                description=f'{id_field} "{value}" doesn\'t follow expected format ({prefix}1, {prefix}17, etc.)',
                suggestion=f"Use standard ID format: {prefix}[number]",
                confidence=0.80,
                original_value=row.get(id_field),
                suggested_value=f"{prefix}{index + 1}",
            ))
    return found


def _detect_single_task(rows: Rows) -> list[Anomaly]:
    found: list[Anomaly] = []
    for index, row in enumerate(rows):
        value = row.get("RequestedTaskIDs")
        if not isinstance(value, str):
            continue
        if len(split_tokens(value)) != 1:
            continue
        # 修正提案なし (情報提供のみ)
        found.append(Anomaly(
            id=f"single-task-{index}",
            category=AnomalyCategory.PATTERN,
            severity=AnomalySeverity.LOW,
            field="RequestedTaskIDs",
            row=index,
            description="Client has only one requested task. This might be unusual.",
            suggestion="Verify if client needs additional tasks",
            confidence=0.60,
            original_value=value,
            suggested_value=value,
        ))
    return found


def _placeholder(field_name: str, index: int) -> str:
    if "ID" in field_name:
        return f"{field_name[0]}{index + 1}"
    stripped = field_name.replace("ID", "").replace("Name", "")
    return f"{stripped} {index + 1}"


def _detect_missing_values(rows: Rows) -> list[Anomaly]:
    found: list[Anomaly] = []
    for index, row in enumerate(rows):
        for required in REQUIRED_VALUE_FIELDS:
            if required not in row or not is_blank(row[required]):
                continue
            label = required.replace("ID", " ID").replace("Name", " Name")
            found.append(Anomaly(
                id=f"missing-{required}-{index}",
                category=AnomalyCategory.INCONSISTENCY,
                severity=AnomalySeverity.HIGH,
                field=required,
                row=index,
                description=f"{label} is required",
                suggestion=f"Provide a valid {required}",
                confidence=1.0,
                original_value=row[required],
                suggested_value=_placeholder(required, index),
            ))
    return found


def detect(rows: Rows, config: ValidationConfig = DEFAULT_CONFIG) -> list[Anomaly]:
    """Detect anomalies, highest priority first, capped at config.anomaly_limit.

    Args:
        rows: Canonical rows of one entity kind (the kind is inferred from the
            ID column present in the first row)
        config: Thresholds

    Returns:
        At most ``config.anomaly_limit`` anomalies in priority order
    """
    if not rows:
        return []
    anomalies: list[Anomaly] = []
    anomalies.extend(_detect_duplicates(rows))
    anomalies.extend(_detect_outliers(rows, config))
    anomalies.extend(_detect_broken_json(rows))
    anomalies.extend(_detect_malformed_slots(rows))
    anomalies.extend(_detect_skill_overload(rows, config))
    anomalies.extend(_detect_id_format(rows))
    anomalies.extend(_detect_single_task(rows))
    anomalies.extend(_detect_missing_values(rows))
    if len(anomalies) > config.anomaly_limit:
        logger.debug(f"anomalies truncated {len(anomalies)} -> {config.anomaly_limit}")
    return anomalies[: config.anomaly_limit]


def apply_anomaly(rows: Rows, anomaly: Anomaly) -> list[dict[str, Any]]:
    """Copy-on-write single-cell overwrite of (anomaly.row, anomaly.field).

    Raises:
        IndexError: when the anomaly row is outside the collection
    """
    if not 0 <= anomaly.row < len(rows):
        raise IndexError(f"anomaly row {anomaly.row} outside 0..{len(rows) - 1}")
    updated = [dict(row) for row in rows]
    updated[anomaly.row][anomaly.field] = anomaly.suggested_value
    return updated
