# Shared pytest fixtures
from __future__ import annotations
import copy
import tempfile
from pathlib import Path
import pytest

from src.ingest.sample_data import SAMPLE_DATA


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("ROSTER_CONFIG", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """similarity_threshold: 0.3
numeric_ranges:
  PriorityLevel: [1, 5]
overload_threshold: 15
anomaly_limit: 10
phase_bounds: [1, 10]
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "validate.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def sample_data() -> dict[str, list[dict]]:
    # テストごとに独立したコピー
    return copy.deepcopy(SAMPLE_DATA)


@pytest.fixture()
def write_csv(temp_workdir: Path):
    def _write(name: str, text: str) -> Path:
        path = temp_workdir / "data" / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write
