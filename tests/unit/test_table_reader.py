from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from src.ingest.reader import TableReadError, read_table_file


def test_read_csv_blank_cells_and_rows(write_csv):
    path = write_csv(
        "clients.csv",
        "ClientID, ClientName ,PriorityLevel,RequestedTaskIDs\n"
        'C1,Acme,3,"T1,T2"\n'
        ",,,\n"
        "C2, ,NA,\n",
    )
    headers, rows = read_table_file(path)
    assert headers == ["ClientID", "ClientName", "PriorityLevel", "RequestedTaskIDs"]
    assert rows == [
        {"ClientID": "C1", "ClientName": "Acme", "PriorityLevel": "3", "RequestedTaskIDs": "T1,T2"},
        {"ClientID": "C2", "ClientName": None, "PriorityLevel": "NA", "RequestedTaskIDs": None},
    ]


def test_read_csv_header_only(write_csv):
    headers, rows = read_table_file(write_csv("tasks.csv", "TaskID,TaskName\n"))
    assert headers == ["TaskID", "TaskName"]
    assert rows == []


def test_read_empty_csv(write_csv):
    assert read_table_file(write_csv("empty.csv", "")) == ([], [])


def test_read_xlsx_keeps_native_types(temp_workdir: Path):
    path = temp_workdir / "data" / "workers.xlsx"
    pd.DataFrame(
        [["W1", "Ann", "[1,2,3]", 5], ["W2", None, "[2]", 7]],
        columns=["WorkerID", "WorkerName", "AvailableSlots", "MaxLoadPerPhase"],
    ).to_excel(path, index=False)

    headers, rows = read_table_file(path)
    assert headers == ["WorkerID", "WorkerName", "AvailableSlots", "MaxLoadPerPhase"]
    assert rows[0] == {"WorkerID": "W1", "WorkerName": "Ann", "AvailableSlots": "[1,2,3]", "MaxLoadPerPhase": 5}
    assert rows[1]["WorkerName"] is None


def test_unsupported_extension(write_csv):
    with pytest.raises(TableReadError) as e:
        read_table_file(write_csv("clients.txt", "ClientID\nC1\n"))
    assert "unsupported file type" in str(e.value)


def test_missing_file(temp_workdir: Path):
    with pytest.raises(TableReadError) as e:
        read_table_file(temp_workdir / "data" / "absent.csv")
    assert "file not found" in str(e.value)


def test_corrupt_xlsx(temp_workdir: Path):
    path = temp_workdir / "data" / "broken.xlsx"
    path.write_bytes(b"not a zip archive")
    with pytest.raises(TableReadError):
        read_table_file(path)
