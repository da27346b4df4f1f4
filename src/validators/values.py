from __future__ import annotations

import json
import math
import re
from typing import Any

"""Cell value helpers shared by the validators.

Rows arrive loosely typed: strings from CSV, numbers from XLSX, NaN for blank
cells read through pandas, occasionally real lists. These helpers give every
validator the same view of a cell.
"""

ARRAY_FORM_RE = re.compile(r"^\[[\d,\s]*\]$")
RANGE_FORM_RE = re.compile(r"^(\d+)-(\d+)$")
BARE_INT_LIST_RE = re.compile(r"^\d+(,\s*\d+)*$")


def is_blank(value: Any) -> bool:
    """None, NaN and whitespace-only strings count as blank."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return False


def is_list_like(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def as_text(value: Any) -> str | None:
    """Text form of a scalar cell (None for blanks and list-like values).

    Integral floats coming out of spreadsheets are rendered without '.0'.
    """
    if is_blank(value) or is_list_like(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_number(value: Any) -> float | None:
    """Parse a cell as a finite float; None when blank, unparseable or infinite."""
    if is_blank(value) or isinstance(value, bool) or is_list_like(value):
        return None
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        else:
            number = float(str(value).strip())
    except (ValueError, OverflowError):
        return None
    # "inf", "1e400", NaN は数値として扱わない
    if not math.isfinite(number):
        return None
    return number


def format_number(number: float) -> str:
    """7.0 -> '7', 2.5 -> '2.5'."""
    if number.is_integer():
        return str(int(number))
    return f"{number:g}"


def split_list(value: Any) -> list[str]:
    """Comma-joined cell -> trimmed tokens (empty tokens kept)."""
    if is_list_like(value):
        return [str(v).strip() for v in value]
    text = as_text(value)
    if text is None:
        return []
    return [token.strip() for token in text.split(",")]


def split_tokens(value: Any) -> list[str]:
    """Comma-joined cell -> non-empty trimmed tokens."""
    return [token for token in split_list(value) if token]


def _reject_constant(name: str) -> Any:
    raise json.JSONDecodeError(f"invalid constant {name}", name, 0)


def loads_json(text: str) -> Any:
    """json.loads without the NaN / Infinity / -Infinity extensions.

    Raises:
        json.JSONDecodeError: when the text is not strict JSON
    """
    return json.loads(text, parse_constant=_reject_constant)


class ArrayParseError(ValueError):
    """Raised when a cell cannot be parsed as JSON at all."""


def parse_json_value(value: Any) -> Any:
    """Parse a textual JSON literal; list-like cells pass through unchanged.

    Raises:
        ArrayParseError: when the text is not valid JSON
    """
    if is_list_like(value):
        return list(value)
    text = as_text(value)
    if text is None:
        raise ArrayParseError("blank value")
    try:
        return loads_json(text)
    except json.JSONDecodeError as e:
        raise ArrayParseError(str(e)) from e


def is_phase_number(item: Any, lower: int, upper: int) -> bool:
    # bool は int のサブクラスなので除外
    if isinstance(item, bool) or not isinstance(item, (int, float)):
        return False
    return lower <= item <= upper
