from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .similarity import score

"""Header reconciliation: map raw input columns onto canonical field names.

For each canonical header every raw header is scored; the best one (first raw
header wins ties) is kept when its score reaches the threshold. The result is
advisory: a reviewer can override any single entry afterwards, and overrides
are never re-scored.

Two canonical fields may end up mapped to the same raw column. This is left
permissive on purpose; ambiguous_columns() reports such collisions so callers
can surface them.
"""

__all__ = [
    "DEFAULT_THRESHOLD",
    "HeaderMapping",
    "reconcile",
    "apply_mapping",
]

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.3


@dataclass
class HeaderMapping:
    """Canonical field -> raw column mapping with per-field confidence.

    Attributes:
        raw_headers: Raw column names in source order
        mapping: canonical -> raw (partial; unmapped fields are absent)
        confidence: canonical -> similarity score for automatic entries
        overridden: canonical fields set manually via set_mapping()
    """
    raw_headers: list[str]
    mapping: dict[str, str] = field(default_factory=dict)
    confidence: dict[str, float] = field(default_factory=dict)
    overridden: set[str] = field(default_factory=set)

    def set_mapping(self, canonical: str, raw: str | None) -> None:
        """Replace (raw given) or delete (raw=None) one mapping entry."""
        if raw is None:
            self.mapping.pop(canonical, None)
        else:
            if raw not in self.raw_headers:
                raise ValueError(f"unknown raw column {raw!r} for {canonical}")
            self.mapping[canonical] = raw
        # 手動設定はスコア無し
        self.confidence.pop(canonical, None)
        self.overridden.add(canonical)

    def unmapped(self, canonical_headers: Sequence[str]) -> list[str]:
        return [c for c in canonical_headers if c not in self.mapping]

    def ambiguous_columns(self) -> dict[str, list[str]]:
        """Raw columns claimed by more than one canonical field."""
        claims: dict[str, list[str]] = {}
        for canonical, raw in self.mapping.items():
            claims.setdefault(raw, []).append(canonical)
        return {raw: fields for raw, fields in claims.items() if len(fields) > 1}


def reconcile(
    raw_headers: Sequence[str],
    canonical_headers: Sequence[str],
    threshold: float = DEFAULT_THRESHOLD,
) -> HeaderMapping:
    """Build the automatic header mapping.

    Args:
        raw_headers: Column names as they appear in the source file
        canonical_headers: Canonical field names for the entity kind
        threshold: Minimum score (inclusive) for an automatic mapping

    Returns:
        HeaderMapping with mapping and confidence filled for matched fields
    """
    result = HeaderMapping(raw_headers=[str(h) for h in raw_headers])
    if not result.raw_headers:
        return result

    for expected in canonical_headers:
        best_raw = result.raw_headers[0]
        best_score = score(expected, best_raw)
        for candidate in result.raw_headers[1:]:
            s = score(expected, candidate)
            if s > best_score:  # 同点は先勝ち
                best_raw, best_score = candidate, s
        if best_score >= threshold:
            result.mapping[expected] = best_raw
            result.confidence[expected] = best_score
            logger.debug(f"header {expected} <- {best_raw} ({best_score:.2f})")
        else:
            logger.debug(f"header {expected} unmapped (best {best_raw} {best_score:.2f})")

    for raw, fields in result.ambiguous_columns().items():
        logger.warning(f"raw column '{raw}' mapped to several fields: {', '.join(fields)}")
    return result


def apply_mapping(raw_rows: Sequence[Mapping[str, Any]], header_mapping: HeaderMapping) -> list[dict[str, Any]]:
    """Project raw rows onto canonical field names.

    Only mapped canonical fields appear in the output rows; a mapped field whose
    raw column is absent from a row gets None.
    """
    projected: list[dict[str, Any]] = []
    for raw in raw_rows:
        projected.append({
            canonical: raw.get(raw_column)
            for canonical, raw_column in header_mapping.mapping.items()
        })
    return projected
