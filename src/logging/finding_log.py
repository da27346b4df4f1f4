from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from src.models.finding import Finding

"""Finding log generation & buffering module.

- JSON Lines, fixed schema (src/config/schemas/finding_log_schema.json, no extra keys)
- One `logs/findings-YYYYMMDD-HHMMSS.log` (UTC) per run, created on first flush
- Findings are buffered and written in one go at flush time
"""

__all__ = [
    "Finding",
    "FindingLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class FindingLogBuffer:
    """In-memory buffer for findings. Flush writes JSON Lines.

    - flush() appends everything buffered to the run's file (created if needed)
    - the file path is fixed on first access
    - no thread safety (a run is single-threaded)
    """
    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[Finding] = []
        self._file_path: Path | None = None
        self._logs_dir = logs_dir if logs_dir is not None else LOGS_DIR

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"findings-{stamp}.log"
        return self._file_path

    def append(self, record: Finding) -> None:
        self._records.append(record)

    def extend(self, records: Iterable[Finding]) -> None:
        self._records.extend(records)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path:
        if not self._records:
            return self.file_path  # 空でもファイルパス確定のみ
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
