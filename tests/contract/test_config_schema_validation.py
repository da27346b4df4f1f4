from __future__ import annotations

import json
import pathlib

import jsonschema
import pytest
import yaml
from jsonschema.exceptions import ValidationError

"""Config schema contract test."""

SCHEMA_PATH = pathlib.Path(__file__).resolve().parents[2] / "src" / "config" / "schemas" / "config_schema.json"
REPO_CONFIG = pathlib.Path(__file__).resolve().parents[2] / "config" / "validate.yml"


@pytest.fixture()
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_config_schema_valid_example(schema):
    config = {
        "similarity_threshold": 0.4,
        "numeric_ranges": {"PriorityLevel": [1, 5], "Duration": [1, 12]},
        "overload_threshold": 12,
        "anomaly_limit": 20,
        "phase_bounds": [1, 12],
        "high_priority_share": 0.5,
    }
    jsonschema.validate(config, schema)


def test_config_schema_empty_document_is_valid(schema):
    jsonschema.validate({}, schema)


def test_config_schema_rejects_extra_key(schema):
    with pytest.raises(ValidationError):
        jsonschema.validate({"similarity_threshold": 0.3, "extra_field": "not allowed"}, schema)


def test_config_schema_rejects_unknown_range_field(schema):
    with pytest.raises(ValidationError):
        jsonschema.validate({"numeric_ranges": {"Salary": [0, 10]}}, schema)


def test_config_schema_rejects_short_bounds(schema):
    with pytest.raises(ValidationError):
        jsonschema.validate({"phase_bounds": [1]}, schema)


def test_config_schema_rejects_threshold_above_one(schema):
    with pytest.raises(ValidationError):
        jsonschema.validate({"similarity_threshold": 1.5}, schema)


def test_config_schema_validates_from_sample_yaml(schema, sample_config_yaml: str):
    jsonschema.validate(yaml.safe_load(sample_config_yaml), schema)


def test_repository_config_validates(schema):
    jsonschema.validate(yaml.safe_load(REPO_CONFIG.read_text(encoding="utf-8")), schema)
