from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Any

import pandas as pd

"""Table file reader (CSV / XLSX / XLS).

- First row is the header row; headers are stripped
- Blank cells become None, fully blank rows are dropped
- Text such as "NA" or "null" is kept as text (only empty cells are missing)
- CSV cells stay text; spreadsheet cells keep their native types
"""

__all__ = [
    "TableReadError",
    "SUPPORTED_EXTENSIONS",
    "read_table_file",
]

SUPPORTED_EXTENSIONS = {".csv": None, ".xlsx": "openpyxl", ".xls": "xlrd"}


class TableReadError(Exception):
    """Raised when a table file is missing, unsupported or unreadable."""


def _read_frame(path: Path) -> pd.DataFrame:
    ext = path.suffix.lower()
    if ext == ".csv":
        return pd.read_csv(path, dtype=str, keep_default_na=False, na_values=[""])
    # 先頭シートのみ対象
    return pd.read_excel(
        path,
        sheet_name=0,
        engine=SUPPORTED_EXTENSIONS[ext],
        dtype=object,
        keep_default_na=False,
        na_values=[""],
    )


def read_table_file(path: Path) -> tuple[list[str], list[dict[str, Any]]]:
    """Read one table file into raw headers and raw rows.

    Args:
        path: .csv, .xlsx or .xls file

    Returns:
        (headers in source order, rows keyed by header)

    Raises:
        TableReadError: unsupported extension, missing file or parse failure
    """
    ext = path.suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise TableReadError(f"unsupported file type '{ext}': {path.name} (expected .csv, .xlsx or .xls)")
    if not path.exists():
        raise TableReadError(f"file not found: {path}")
    try:
        df = _read_frame(path)
    except pd.errors.EmptyDataError:
        return [], []
    except (OSError, ValueError, ImportError, zipfile.BadZipFile) as e:
        raise TableReadError(f"failed to read {path.name}: {e}") from e

    headers = [str(c).strip() for c in df.columns]
    rows: list[dict[str, Any]] = []
    for _, raw in df.iterrows():
        if raw.isna().all():
            continue
        row: dict[str, Any] = {}
        for col, val in zip(headers, raw.tolist(), strict=False):
            if pd.isna(val) or (isinstance(val, str) and val.strip() == ""):
                row[col] = None
            else:
                row[col] = val
        if all(v is None for v in row.values()):
            continue
        rows.append(row)
    return headers, rows
