from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path

from dotenv import load_dotenv

from src.config.loader import ConfigError, load_config
from src.ingest.reader import TableReadError, read_table_file
from src.ingest.sample_data import SAMPLE_DATA
from src.logging.finding_log import FindingLogBuffer
from src.logging.init import log_summary, set_debug, setup_logging
from src.models.config_models import ValidationConfig
from src.models.entity import EntityKind
from src.models.finding import Finding, Severity
from src.services.export import ExportError, export_session, load_rules_config
from src.services.progress import StageProgress
from src.services.session import ValidationSession
from src.services.summary import render_summary_line
from src.validators.field_checks import FIELD_CHECKS

"""CLI entrypoint.

Flow:
- Load .env, then the YAML config ($ROSTER_CONFIG or config/validate.yml)
- Read the client / worker / task tables (or the bundled sample dataset)
- Reconcile headers, run field checks, anomaly detection and cross-entity checks
- Log every finding, flush the JSON Lines findings log, print the SUMMARY line
- Optionally export processed CSVs, findings.json and rules-config.json

Exit codes: 0 no error findings / 2 error findings present / 1 fatal
"""

EXIT_CLEAN = 0
EXIT_FINDINGS = 2
EXIT_FATAL = 1

DEFAULT_CONFIG_PATH = Path("config/validate.yml")
CONFIG_ENV_VAR = "ROSTER_CONFIG"

_LEVELS = {
    Severity.ERROR: logging.ERROR,
    Severity.WARNING: logging.WARNING,
    Severity.INFO: logging.INFO,
}


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv (values in .env win over the process env)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Validate client / worker / task rosters")
    p.add_argument("--clients", type=Path, help="Clients table (.csv/.xlsx/.xls)")
    p.add_argument("--workers", type=Path, help="Workers table (.csv/.xlsx/.xls)")
    p.add_argument("--tasks", type=Path, help="Tasks table (.csv/.xlsx/.xls)")
    p.add_argument("--sample", action="store_true", help="Use the bundled sample dataset")
    p.add_argument("--config", type=Path, help="YAML config (default: $ROSTER_CONFIG or config/validate.yml)")
    p.add_argument("--export-dir", type=Path, help="Write processed CSVs, findings.json and rules-config.json here")
    p.add_argument("--rules", type=Path, help="Rules configuration JSON passed through to the export")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print header mapping & first rows then exit")
    return p.parse_args(argv)


def _resolve_config(explicit: Path | None) -> ValidationConfig:
    """Explicit path (flag or env var) must exist; the default path may be absent."""
    if explicit is None:
        env_value = os.getenv(CONFIG_ENV_VAR)
        explicit = Path(env_value) if env_value else None
    if explicit is not None:
        return load_config(explicit)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return ValidationConfig()


def _ingest_inputs(session: ValidationSession, args: argparse.Namespace, logger: logging.Logger) -> None:
    if args.sample:
        for name, rows in SAMPLE_DATA.items():
            session.ingest(name, rows)
    sources = {EntityKind.CLIENTS: args.clients, EntityKind.WORKERS: args.workers, EntityKind.TASKS: args.tasks}
    for kind, path in sources.items():
        if path is None:
            continue
        logger.info(f"reading {kind.value}: {path}")
        headers, rows = read_table_file(path)
        session.ingest(kind, rows, headers)


def _inspect_data(session: ValidationSession) -> int:
    for kind in session.kinds:
        mapping = session.mappings[kind]
        print(f"ENTITY: {kind.value} rows={len(session.rows(kind))}")
        for canonical in kind.canonical_fields:
            raw = mapping.mapping.get(canonical)
            if raw is None:
                print(f"  {canonical} <- (unmapped)")
            else:
                conf = mapping.confidence.get(canonical)
                suffix = f" ({conf:.2f})" if conf is not None else " (manual)"
                print(f"  {canonical} <- {raw}{suffix}")
        print("  sample_rows=", [row.values for row in session.rows(kind)[:3]])
    return EXIT_CLEAN


def _log_finding(logger: logging.Logger, finding: Finding) -> None:
    entity = finding.entity.value if finding.entity is not None else "dataset"
    where = "dataset" if finding.is_dataset_level else f"row={finding.row + 1}"
    logger.log(_LEVELS[finding.severity], f"{entity} {where} field={finding.field}: {finding.message}")


def main(argv: list[str] | None = None) -> int:
    # Initialize logging system with labeled prefixes
    logger = setup_logging()

    # None のときのみシステム引数を読む (cli_main([]) で pytest の引数を拾わない)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    try:
        config = _resolve_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if not (args.sample or args.clients or args.workers or args.tasks):
        logger.error("input: no input tables (use --clients/--workers/--tasks or --sample)")
        return EXIT_FATAL

    session = ValidationSession(config)
    try:
        _ingest_inputs(session, args, logger)
    except TableReadError as e:
        logger.error(f"input: {e}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(session)

    if args.rules is not None:
        try:
            session.rules_config = load_rules_config(args.rules)
        except ExportError as e:
            logger.error(f"rules: {e}")
            return EXIT_FATAL

    started = time.perf_counter()
    stages = len(session.kinds) * len(FIELD_CHECKS) + 1
    with StageProgress(stages) as progress:
        report = session.validate_all(on_stage=progress)
    elapsed = time.perf_counter() - started

    for finding in report.findings:
        _log_finding(logger, finding)
    for kind, anomalies in report.anomalies.items():
        for anomaly in anomalies:
            logger.info(f"anomaly {kind.value} row={anomaly.row + 1} field={anomaly.field}: {anomaly.description}")

    buffer = FindingLogBuffer()
    buffer.extend(report.findings)
    log_path = buffer.flush()
    logger.info(f"findings log: {log_path}")

    if args.export_dir is not None:
        try:
            export_session(session, args.export_dir)
        except OSError as e:
            logger.error(f"export: {e}")
            return EXIT_FATAL

    summary_line = render_summary_line(report, elapsed)
    # log_summary adds the "SUMMARY " prefix
    log_summary(summary_line[len("SUMMARY "):])

    return EXIT_FINDINGS if report.errors > 0 else EXIT_CLEAN


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
