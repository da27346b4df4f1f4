from __future__ import annotations

import csv
import io
import json
import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pandas as pd

from ..models.entity import EntityRow
from ..models.finding import Finding
from ..validators.values import as_text, is_list_like

if TYPE_CHECKING:
    from .session import ValidationSession

"""Export service: processed rows as CSV, findings and rules config as JSON.

CSV uses minimal quoting: only values containing a comma, a quote or a line
break are wrapped in quotes, with internal quotes doubled. The rules
configuration is passed through as an opaque object; only its three top-level
keys are checked.
"""

__all__ = [
    "ExportError",
    "DEFAULT_WEIGHTS",
    "rows_to_csv",
    "findings_to_json",
    "build_rules_config",
    "load_rules_config",
    "export_session",
]

logger = logging.getLogger(__name__)

RULES_CONFIG_KEYS = ("rules", "weights", "metadata")

DEFAULT_WEIGHTS: dict[str, float] = {
    "fulfillment": 0.3,
    "load_balance": 0.25,
    "efficiency": 0.2,
    "deadline_adherence": 0.15,
    "skill_match": 0.1,
}

RULES_DESCRIPTION = "Roster Validator Rules Configuration"


class ExportError(Exception):
    pass


def _records(rows: Sequence[EntityRow | Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    return [row.values if isinstance(row, EntityRow) else row for row in rows]


def _csv_cell(value: Any) -> str | None:
    # 3.0 -> "3"、リストはカンマ連結
    if is_list_like(value):
        return ",".join(str(v) for v in value)
    return as_text(value)


def rows_to_csv(rows: Sequence[EntityRow | Mapping[str, Any]]) -> str:
    """Serialize rows with the first row's keys as header ('' when empty)."""
    records = _records(rows)
    if not records:
        return ""
    headers = list(records[0].keys())
    frame = pd.DataFrame([[_csv_cell(r.get(h)) for h in headers] for r in records], columns=headers, dtype=object)
    buffer = io.StringIO()
    frame.to_csv(buffer, index=False, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    return buffer.getvalue()


def findings_to_json(findings: Iterable[Finding], *, indent: int | None = 2) -> str:
    return json.dumps([f.to_dict() for f in findings], ensure_ascii=False, indent=indent, default=str)


def build_rules_config(
    rules: Sequence[Mapping[str, Any]] = (),
    weights: Mapping[str, float] | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Assemble the ``{rules, weights, metadata}`` object.

    Missing weights default to DEFAULT_WEIGHTS; missing metadata gets a version,
    a creation timestamp (UTC, ISO 8601) and a description.
    """
    if metadata is None:
        metadata = {
            "version": "1.0",
            "created": datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "description": RULES_DESCRIPTION,
        }
    return {
        "rules": [dict(r) for r in rules],
        "weights": dict(weights) if weights is not None else dict(DEFAULT_WEIGHTS),
        "metadata": dict(metadata),
    }


def load_rules_config(path: Path) -> dict[str, Any]:
    """Read a rules configuration file without interpreting it.

    Raises:
        ExportError: when the file is missing, not JSON, or lacks a top-level key
    """
    if not path.exists():
        raise ExportError(f"rules config not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ExportError(f"invalid rules config json: {e}") from e
    if not isinstance(data, dict):
        raise ExportError("rules config must be a JSON object")
    missing = [k for k in RULES_CONFIG_KEYS if k not in data]
    if missing:
        raise ExportError(f"rules config missing keys: {', '.join(missing)}")
    return data


def export_session(session: ValidationSession, out_dir: Path) -> list[Path]:
    """Write every ingested collection, the findings and the rules config.

    Files: ``<kind>_processed_data.csv`` per kind, ``findings.json``,
    ``rules-config.json`` (the session's config, or a default one).

    Returns:
        Written paths in write order
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for kind in session.kinds:
        path = out_dir / f"{kind.value}_processed_data.csv"
        path.write_text(rows_to_csv(session.rows(kind)), encoding="utf-8")
        written.append(path)

    findings_path = out_dir / "findings.json"
    findings_path.write_text(findings_to_json(session.findings), encoding="utf-8")
    written.append(findings_path)

    rules = session.rules_config if session.rules_config is not None else build_rules_config()
    rules_path = out_dir / "rules-config.json"
    rules_path.write_text(json.dumps(rules, ensure_ascii=False, indent=2), encoding="utf-8")
    written.append(rules_path)

    for p in written:
        logger.info(f"exported {p}")
    return written
