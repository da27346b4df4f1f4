from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from src.models.config_models import ValidationConfig

"""Config loader.

Responsibilities:
- Load YAML config (config/validate.yml by default)
- Validate keys and types against schemas/config_schema.json
- Overlay the document on the ValidationConfig defaults (missing keys keep defaults)
"""

SCHEMA_DIR = Path(__file__).parent / "schemas"
SCHEMA_PATH = SCHEMA_DIR / "config_schema.json"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Args:
        data: Configuration data to validate

    Raises:
        ConfigError: If any of the following occurs:
            - The schema file does not exist.
            - The schema file is not valid JSON.
            - The config data fails schema validation (unknown keys, wrong
              types, out-of-range thresholds).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def config_from_dict(data: dict[str, Any]) -> ValidationConfig:
    """Build a ValidationConfig from an already validated mapping."""
    defaults = ValidationConfig()
    ranges = dict(defaults.numeric_ranges)
    for name, bounds in (data.get("numeric_ranges") or {}).items():
        ranges[name] = (bounds[0], bounds[1])

    phase_min, phase_max = data.get("phase_bounds", (defaults.phase_min, defaults.phase_max))
    if phase_min > phase_max:
        raise ConfigError(f"config validation failed: phase_bounds {phase_min} > {phase_max}")

    # phase_bounds / numeric_ranges 以外はフィールド名そのまま
    scalar_keys = {
        k: v for k, v in data.items() if k not in ("numeric_ranges", "phase_bounds")
    }
    return ValidationConfig(
        **scalar_keys,
        numeric_ranges=ranges,
        phase_min=int(phase_min),
        phase_max=int(phase_max),
    )


def load_config(path: Path) -> ValidationConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config validation failed: top level must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)
    return config_from_dict(data)
