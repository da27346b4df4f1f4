from __future__ import annotations

from pathlib import Path

from src.cli import main as cli_main
from src.logging.init import reset_logging

"""Exit code contract tests: 0 clean / 2 error findings / 1 fatal."""


def test_exit_code_fatal_without_input(temp_workdir: Path, capsys):
    reset_logging()
    code = cli_main([])
    assert code == 1
    assert "ERROR input:" in capsys.readouterr().out


def test_exit_code_fatal_missing_explicit_config(temp_workdir: Path, capsys):
    reset_logging()
    code = cli_main(["--sample", "--config", "config/absent.yml"])
    assert code == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_fatal_env_config_missing(temp_workdir: Path, monkeypatch, capsys):
    reset_logging()
    monkeypatch.setenv("ROSTER_CONFIG", str(temp_workdir / "config" / "nope.yml"))
    code = cli_main(["--sample"])
    assert code == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_fatal_invalid_config(temp_workdir: Path, capsys):
    reset_logging()
    (temp_workdir / "config" / "validate.yml").write_text("unknown_key: 1\n", encoding="utf-8")
    code = cli_main(["--sample"])
    assert code == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_findings(temp_workdir: Path, write_config, capsys):
    reset_logging()
    code = cli_main(["--sample"])
    out = capsys.readouterr().out
    assert code == 2
    assert "errors=0" not in out


def test_exit_code_clean(temp_workdir: Path, write_csv, capsys):
    reset_logging()
    clients = write_csv(
        "clients.csv",
        "ClientID,ClientName,PriorityLevel,RequestedTaskIDs,GroupTag,AttributesJSON\n"
        'C1,Acme,3,"T1,T2",GroupA,\n',
    )
    workers = write_csv(
        "workers.csv",
        "WorkerID,WorkerName,Skills,AvailableSlots,MaxLoadPerPhase,WorkerGroup,QualificationLevel\n"
        'W1,Ann,"Python,SQL","[1,2]",3,backend-team,senior\n',
    )
    tasks = write_csv(
        "tasks.csv",
        "TaskID,TaskName,Category,Duration,RequiredSkills,PreferredPhases,MaxConcurrent\n"
        "T1,Build,backend,1,Python,1-2,1\n"
        "T2,Report,backend,1,SQL,[2],1\n",
    )
    code = cli_main(["--clients", str(clients), "--workers", str(workers), "--tasks", str(tasks)])
    out = capsys.readouterr().out
    assert code == 0
    assert "errors=0" in out
