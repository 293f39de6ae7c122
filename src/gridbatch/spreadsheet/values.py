"""
Cell value encoding.

Converts Python values to the two payload shapes the Sheets API accepts:

- the values API (``values.batchUpdate`` / ``values.append``), which takes
  plain JSON scalars, and
- ``CellData`` objects for ``updateCells`` / ``appendCells`` requests, which
  carry a typed ``userEnteredValue`` and, for dates, a number format.

Encoding rules (shared by every execution strategy):

- ``None`` -> empty cell
- ``str`` starting with ``=`` -> formula
- ``bool`` and finite numbers -> literal
- ``datetime`` / ``date`` / ``time`` -> serial number (days since
  1899-12-30) plus a display number format
- anything else, including NaN and infinities -> ``str(value)``
"""

import math
import numbers
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

# Day zero of the spreadsheet serial calendar (serial 1 == 1899-12-31).
SERIAL_EPOCH = datetime(1899, 12, 30)

DEFAULT_DATE_PATTERN = "yyyy-mm-dd"
DEFAULT_DATE_TIME_PATTERN = "yyyy-mm-dd hh:mm:ss"
DEFAULT_TIME_PATTERN = "hh:mm:ss"

VALUE_FIELDS = "userEnteredValue"
NUMBER_FORMAT_FIELDS = "userEnteredFormat.numberFormat"
VALUE_AND_FORMAT_FIELDS = "userEnteredValue,userEnteredFormat.numberFormat"


@dataclass(frozen=True)
class NumberFormatPatterns:
    """Display patterns attached to date-like cells."""
    date: str = DEFAULT_DATE_PATTERN
    date_time: str = DEFAULT_DATE_TIME_PATTERN
    time: str = DEFAULT_TIME_PATTERN


DEFAULT_PATTERNS = NumberFormatPatterns()


def date_to_serial(value: Any) -> float:
    """Convert a date, datetime or time to a spreadsheet serial number.

    Timezone-aware datetimes are taken at their own wall-clock time.
    ``time`` values become a fraction of one day.
    """
    if isinstance(value, datetime):
        naive = value.replace(tzinfo=None)
        delta = naive - SERIAL_EPOCH
        return delta.days + delta.seconds / 86400 + delta.microseconds / 86400e6
    if isinstance(value, date):
        return float((value - SERIAL_EPOCH.date()).days)
    if isinstance(value, time):
        seconds = value.hour * 3600 + value.minute * 60 + value.second
        return (seconds + value.microsecond / 1e6) / 86400
    raise TypeError(f"Expected date, datetime or time, got {type(value).__name__}")


def serial_to_date(serial: float) -> datetime:
    """Convert a serial number back to a naive datetime (rounded to the millisecond)."""
    return SERIAL_EPOCH + timedelta(milliseconds=round(serial * 86400000))


def _is_finite_number(value: Any) -> bool:
    return (
        isinstance(value, numbers.Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _number_format(value: Any, patterns: NumberFormatPatterns) -> Optional[Dict[str, str]]:
    # datetime is a subclass of date, so test it first.
    if isinstance(value, datetime):
        return {"type": "DATE_TIME", "pattern": patterns.date_time}
    if isinstance(value, date):
        return {"type": "DATE", "pattern": patterns.date}
    if isinstance(value, time):
        return {"type": "TIME", "pattern": patterns.time}
    return None


def needs_number_format(value: Any) -> bool:
    return isinstance(value, (date, time))


def encode_value(value: Any) -> Any:
    """Encode one Python value for the values API."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value
    if _is_finite_number(value):
        return int(value) if isinstance(value, numbers.Integral) else float(value)
    if isinstance(value, (date, time)):
        return date_to_serial(value)
    return str(value)


def encode_values(values: Sequence[Sequence[Any]]) -> List[List[Any]]:
    """Encode a value matrix for the values API."""
    return [[encode_value(v) for v in row] for row in values]


def encode_cell_data(
    value: Any,
    patterns: NumberFormatPatterns = DEFAULT_PATTERNS,
) -> Dict[str, Any]:
    """Encode one Python value as a Sheets API ``CellData`` object.

    ``None`` encodes as an empty ``CellData``; combined with a
    ``userEnteredValue`` field mask this clears the cell.
    """
    if value is None:
        return {}
    if isinstance(value, bool):
        return {"userEnteredValue": {"boolValue": value}}
    if isinstance(value, str):
        if value.startswith("="):
            return {"userEnteredValue": {"formulaValue": value}}
        return {"userEnteredValue": {"stringValue": value}}
    if _is_finite_number(value):
        return {"userEnteredValue": {"numberValue": encode_value(value)}}
    fmt = _number_format(value, patterns)
    if fmt is not None:
        return {
            "userEnteredValue": {"numberValue": date_to_serial(value)},
            "userEnteredFormat": {"numberFormat": fmt},
        }
    return {"userEnteredValue": {"stringValue": str(value)}}


def encode_rows(
    values: Sequence[Sequence[Any]],
    patterns: NumberFormatPatterns = DEFAULT_PATTERNS,
) -> Tuple[List[Dict[str, Any]], str]:
    """Encode a row-major matrix as ``RowData`` plus the matching field mask.

    Returns:
        ``(rows, fields)`` where ``fields`` names the number format only
        when at least one cell needed one
    """
    rows = []
    formatted = False
    for row in values:
        cells = []
        for value in row:
            cell = encode_cell_data(value, patterns)
            formatted = formatted or "userEnteredFormat" in cell
            cells.append(cell)
        rows.append({"values": cells})
    return rows, VALUE_AND_FORMAT_FIELDS if formatted else VALUE_FIELDS


def number_formats(
    values: Sequence[Sequence[Any]],
    patterns: NumberFormatPatterns = DEFAULT_PATTERNS,
) -> Optional[List[List[Optional[Dict[str, str]]]]]:
    """Per-cell number formats for a matrix, or None if no cell needs one."""
    if not any(needs_number_format(v) for row in values for v in row):
        return None
    return [[_number_format(v, patterns) for v in row] for row in values]


def to_row_major(values: Sequence[Sequence[Any]], major_dimension: str = "ROWS") -> List[List[Any]]:
    """Return ``values`` in row-major order, transposing ``COLUMNS`` input.

    Ragged input is padded with ``None`` so the result is rectangular.
    """
    matrix = [list(row) for row in values]
    if major_dimension != "COLUMNS":
        return matrix
    height = max((len(col) for col in matrix), default=0)
    return [
        [col[i] if i < len(col) else None for col in matrix]
        for i in range(height)
    ]


def matrix_shape(values: Sequence[Sequence[Any]], major_dimension: str = "ROWS") -> Tuple[int, int]:
    """Return ``(rows, cols)`` of a value matrix as it lands on the grid."""
    outer = len(values)
    inner = max((len(v) for v in values), default=0)
    if major_dimension == "COLUMNS":
        return inner, outer
    return outer, inner
