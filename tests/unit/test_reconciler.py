from __future__ import annotations

from unittest.mock import patch

import pytest

from src.matching.reconciler import apply_mapping, reconcile
from src.models.entity import EntityKind


CLIENT_HEADERS = ["ClientID", "ClientName", "PriorityLevel", "RequestedTaskIDs", "GroupTag", "AttributesJSON"]


def test_identical_headers_map_to_themselves():
    result = reconcile(CLIENT_HEADERS, CLIENT_HEADERS)
    assert result.mapping == {h: h for h in CLIENT_HEADERS}
    assert all(result.confidence[h] == 1.0 for h in CLIENT_HEADERS)
    assert result.unmapped(CLIENT_HEADERS) == []


def test_loose_headers_are_matched():
    result = reconcile(["client_id", "Client Name", "priority"], ["ClientID", "ClientName", "PriorityLevel"])
    assert result.mapping["ClientID"] == "client_id"
    assert result.mapping["ClientName"] == "Client Name"
    assert result.mapping["PriorityLevel"] == "priority"
    assert result.confidence["PriorityLevel"] == 0.8


def test_below_threshold_is_left_unmapped():
    result = reconcile(["zzz"], ["ClientID"])
    assert "ClientID" not in result.mapping
    assert result.unmapped(["ClientID"]) == ["ClientID"]


def test_threshold_is_inclusive():
    result = reconcile(["priority"], ["PriorityLevel"], threshold=0.8)
    assert result.mapping == {"PriorityLevel": "priority"}


def test_ties_keep_first_raw_header():
    result = reconcile(["Client ID", "client_id"], ["ClientID"])
    assert result.mapping["ClientID"] == "Client ID"


def test_two_fields_on_one_column_are_reported():
    with patch("src.matching.reconciler.logger") as mock_logger:
        result = reconcile(["Skills"], ["Skills", "RequiredSkills"])
    assert result.mapping == {"Skills": "Skills", "RequiredSkills": "Skills"}
    assert result.ambiguous_columns() == {"Skills": ["Skills", "RequiredSkills"]}
    assert "mapped to several fields" in mock_logger.warning.call_args[0][0]


def test_set_mapping_override_and_delete():
    result = reconcile(["client_id", "name", "other"], ["ClientID", "ClientName"])
    result.set_mapping("ClientName", "other")
    assert result.mapping["ClientName"] == "other"
    assert "ClientName" not in result.confidence
    assert "ClientName" in result.overridden

    result.set_mapping("ClientID", None)
    assert "ClientID" not in result.mapping


def test_set_mapping_rejects_unknown_raw_column():
    result = reconcile(["client_id"], ["ClientID"])
    with pytest.raises(ValueError):
        result.set_mapping("ClientID", "nope")


def test_empty_raw_headers_give_empty_mapping():
    result = reconcile([], EntityKind.TASKS.canonical_fields)
    assert result.mapping == {}


def test_apply_mapping_projects_only_mapped_fields():
    mapping = reconcile(["client_id", "Client Name", "junk_col"], ["ClientID", "ClientName"])
    rows = apply_mapping([{"client_id": "C1", "Client Name": "Acme", "junk_col": 1}, {"client_id": "C2"}], mapping)
    assert rows == [
        {"ClientID": "C1", "ClientName": "Acme"},
        {"ClientID": "C2", "ClientName": None},
    ]
