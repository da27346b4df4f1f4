from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from ..models.entity import EntityRow
from ..models.finding import Finding, Severity
from ..validators.values import as_text, to_number

"""Keyword driven row search.

A query is matched against an ordered rule table, top to bottom; the first
rule whose keywords occur in the lower-cased query decides the filter. Queries
matching no rule fall back to a case-insensitive substring search over every
cell. Results keep the EntityRow objects, so the original position is known
from row_id without comparing row contents.
"""

__all__ = [
    "SearchRule",
    "SearchResult",
    "SEARCH_RULES",
    "search",
]

RowFilter = Callable[[EntityRow, set[int]], bool]


@dataclass(frozen=True)
class SearchRule:
    keywords: tuple[str, ...]
    predicate: RowFilter
    description: str

    def matches(self, query: str) -> bool:
        return any(keyword in query for keyword in self.keywords)


@dataclass(frozen=True)
class SearchResult:
    query: str
    description: str
    rows: list[EntityRow]

    @property
    def row_ids(self) -> list[int]:
        return [row.row_id for row in self.rows]


def _mentions(row: EntityRow, fields: Iterable[str], *needles: str) -> bool:
    for name in fields:
        text = as_text(row.get(name))
        if text is None:
            continue
        lowered = text.lower()
        if any(needle in lowered for needle in needles):
            return True
    return False


def _int_value(row: EntityRow, name: str) -> int | None:
    number = to_number(row.get(name))
    return None if number is None else int(number)


def _high_priority(row: EntityRow, error_rows: set[int]) -> bool:
    level = _int_value(row, "PriorityLevel")
    return level is not None and level >= 4


def _js_skills(row: EntityRow, error_rows: set[int]) -> bool:
    return _mentions(row, ("Skills", "RequiredSkills"), "javascript", "react")


def _frontend(row: EntityRow, error_rows: set[int]) -> bool:
    return _mentions(row, ("Category", "WorkerGroup"), "frontend") or _mentions(row, ("TaskName",), "ui")


def _overloaded(row: EntityRow, error_rows: set[int]) -> bool:
    load = _int_value(row, "MaxLoadPerPhase")
    return load is not None and load > 8


def _has_error(row: EntityRow, error_rows: set[int]) -> bool:
    return row.row_id in error_rows


SEARCH_RULES: tuple[SearchRule, ...] = (
    SearchRule(("high priority", "urgent"), _high_priority,
               "Showing high priority clients (level 4-5)"),
    SearchRule(("javascript", "react"), _js_skills,
               "Showing JavaScript-related records"),
    SearchRule(("frontend", "ui"), _frontend,
               "Showing frontend tasks and workers"),
    SearchRule(("overloaded", "busy"), _overloaded,
               "Showing workers with high task loads"),
    SearchRule(("missing", "error"), _has_error,
               "Showing records with validation errors"),
)


def _substring(row: EntityRow, needle: str) -> bool:
    return any(needle in (as_text(value) or "").lower() for value in row.values.values())


def search(
    rows: Sequence[EntityRow],
    query: str,
    findings: Iterable[Finding] = (),
    *,
    errors_only: bool = False,
) -> SearchResult:
    """Filter rows by a free-text query.

    Args:
        rows: Row collection of one entity kind
        query: Free text ('urgent clients', 'react', 'Acme' ...)
        findings: Current findings for the same entity kind
        errors_only: Additionally keep only rows carrying any finding

    Returns:
        SearchResult with the matching rows in collection order
    """
    findings = list(findings)
    lowered = query.strip().lower()
    error_rows = {f.row for f in findings if f.severity is Severity.ERROR}

    if not lowered:
        matched = list(rows)
        description = "Showing all records"
    else:
        rule = next((r for r in SEARCH_RULES if r.matches(lowered)), None)
        if rule is not None:
            matched = [row for row in rows if rule.predicate(row, error_rows)]
            description = rule.description
        else:
            matched = [row for row in rows if _substring(row, lowered)]
            description = f'Showing records containing "{query.strip()}"'

    if errors_only:
        flagged = {f.row for f in findings}
        matched = [row for row in matched if row.row_id in flagged]
    return SearchResult(query=query, description=description, rows=matched)
