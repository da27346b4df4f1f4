from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.models.entity import EntityKind, EntityRow
from src.models.finding import Finding, Severity
from src.services.export import (
    DEFAULT_WEIGHTS,
    ExportError,
    build_rules_config,
    export_session,
    findings_to_json,
    load_rules_config,
    rows_to_csv,
)
from src.services.session import ValidationSession


def test_rows_to_csv_quotes_only_when_needed():
    rows = [
        EntityRow(row_id=0, values={"a": "x,y", "b": 'say "hi"', "c": 3, "d": None}),
        EntityRow(row_id=1, values={"a": "plain", "b": "", "c": 4, "d": "[1,2]"}),
    ]
    assert rows_to_csv(rows) == 'a,b,c,d\n"x,y","say ""hi""",3,\nplain,,4,"[1,2]"\n'


def test_rows_to_csv_uses_first_row_keys():
    text = rows_to_csv([{"ClientID": "C1"}, {"ClientID": "C2", "Extra": "ignored"}])
    assert text == "ClientID\nC1\nC2\n"


def test_rows_to_csv_empty():
    assert rows_to_csv([]) == ""


def test_findings_to_json():
    finding = Finding(severity=Severity.WARNING, entity=EntityKind.TASKS, row=0, field="Duration", message="m")
    data = json.loads(findings_to_json([finding]))
    assert data[0]["severity"] == "warning"
    assert data[0]["entity"] == "tasks"
    assert data[0]["related_entities"] == []


def test_build_rules_config_defaults():
    config = build_rules_config()
    assert config["rules"] == []
    assert config["weights"] == DEFAULT_WEIGHTS
    assert config["weights"] is not DEFAULT_WEIGHTS
    assert config["metadata"]["version"] == "1.0"
    assert config["metadata"]["created"].endswith("Z")
    assert set(config["metadata"]) == {"version", "created", "description"}


def test_build_rules_config_passthrough():
    rules = [{"type": "coRun", "tasks": ["T1", "T2"]}]
    config = build_rules_config(rules, {"fulfillment": 1.0}, {"version": "2"})
    assert config == {"rules": rules, "weights": {"fulfillment": 1.0}, "metadata": {"version": "2"}}


def test_load_rules_config(tmp_path: Path):
    path = tmp_path / "rules.json"
    payload = {"rules": [{"anything": True}], "weights": {}, "metadata": {}, "extra": 1}
    path.write_text(json.dumps(payload), encoding="utf-8")
    assert load_rules_config(path) == payload


@pytest.mark.parametrize(
    "text,message",
    [
        ('{"rules": [], "weights": {}}', "missing keys: metadata"),
        ("[]", "must be a JSON object"),
        ("{nope", "invalid rules config json"),
    ],
)
def test_load_rules_config_errors(tmp_path: Path, text: str, message: str):
    path = tmp_path / "rules.json"
    path.write_text(text, encoding="utf-8")
    with pytest.raises(ExportError) as e:
        load_rules_config(path)
    assert message in str(e.value)


def test_load_rules_config_missing_file(tmp_path: Path):
    with pytest.raises(ExportError):
        load_rules_config(tmp_path / "absent.json")


def test_export_session_writes_all_files(tmp_path: Path, sample_data):
    session = ValidationSession()
    for name, rows in sample_data.items():
        session.ingest(name, rows)
    session.validate_all()

    written = export_session(session, tmp_path / "out")
    assert [p.name for p in written] == [
        "clients_processed_data.csv",
        "workers_processed_data.csv",
        "tasks_processed_data.csv",
        "findings.json",
        "rules-config.json",
    ]
    clients_csv = (tmp_path / "out" / "clients_processed_data.csv").read_text(encoding="utf-8")
    assert clients_csv.splitlines()[0] == "ClientID,ClientName,PriorityLevel,RequestedTaskIDs,GroupTag,AttributesJSON"
    assert clients_csv.splitlines()[1].startswith('C1,Acme Corp,3,"T1,T2,T3",GroupA,')
    assert len(json.loads((tmp_path / "out" / "findings.json").read_text(encoding="utf-8"))) == 4
    rules = json.loads((tmp_path / "out" / "rules-config.json").read_text(encoding="utf-8"))
    assert rules["weights"] == DEFAULT_WEIGHTS


def test_rows_to_csv_renders_spreadsheet_numbers_like_cells():
    rows = [EntityRow(row_id=0, values={"PriorityLevel": 3.0, "Duration": 2.5, "Skills": ["a", "b"]})]
    assert rows_to_csv(rows) == 'PriorityLevel,Duration,Skills\n3,2.5,"a,b"\n'
