from __future__ import annotations

from .aggregator import ValidationReport

"""Summary line rendering service.

Format:
SUMMARY entities={n} rows={n} errors={n} warnings={n} info={n} anomalies={n}
complete={yes|no} elapsed_sec={elapsed}
"""


def _format_elapsed(elapsed_seconds: float) -> str:
    if elapsed_seconds == 0:
        return "0"
    if elapsed_seconds == int(elapsed_seconds):
        return str(int(elapsed_seconds))
    if elapsed_seconds < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{elapsed_seconds:.6f}".rstrip("0").rstrip(".")
    return f"{elapsed_seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(report: ValidationReport, elapsed_seconds: float) -> str:
    """Render a SUMMARY line from a ValidationReport.

    Args:
        report: Aggregated validation result
        elapsed_seconds: Wall time of the run

    Returns:
        Formatted SUMMARY line

    Examples:
        >>> render_summary_line(ValidationReport(findings=[]), 2.0)
        'SUMMARY entities=0 rows=0 errors=0 warnings=0 info=0 anomalies=0 complete=yes elapsed_sec=2'
    """
    return (
        f"SUMMARY entities={len(report.row_counts)} "
        f"rows={report.total_rows} "
        f"errors={report.errors} "
        f"warnings={report.warnings} "
        f"info={report.infos} "
        f"anomalies={report.anomaly_count} "
        f"complete={'yes' if report.complete else 'no'} "
        f"elapsed_sec={_format_elapsed(elapsed_seconds)}"
    )
