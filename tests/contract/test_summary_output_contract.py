from __future__ import annotations

import re
from pathlib import Path

from src.cli import main as cli_main
from src.logging.init import reset_logging

"""SUMMARY 行フォーマット契約テスト."""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+entities=([0-9]+)\s+rows=([0-9]+)\s+errors=([0-9]+)\s+warnings=([0-9]+)\s+"
    r"info=([0-9]+)\s+anomalies=([0-9]+)\s+complete=(yes|no)\s+elapsed_sec=([0-9]+\.?[0-9]*)$"
)


def test_summary_pattern_example_line():
    line = "SUMMARY entities=3 rows=15 errors=4 warnings=0 info=0 anomalies=0 complete=yes elapsed_sec=0.84"
    m = SUMMARY_PATTERN.match(line)
    assert m, "SUMMARY line should match contract regex"
    assert m.group(2) == "15"
    assert m.group(7) == "yes"


def test_cli_prints_exactly_one_summary_line(temp_workdir: Path, capsys):
    reset_logging()
    code = cli_main(["--sample"])
    out = capsys.readouterr().out
    summary_lines = [line for line in out.splitlines() if line.startswith("SUMMARY")]
    assert len(summary_lines) == 1
    m = SUMMARY_PATTERN.match(summary_lines[0])
    assert m, f"SUMMARY line should match contract regex: {summary_lines[0]}"
    assert m.group(1) == "3"
    assert int(m.group(3)) > 0
    assert code == 2
