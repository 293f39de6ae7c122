"""
Address model classes.

This module provides the canonical forms used throughout gridbatch:
- Box: a parsed A1 address (1-based, inclusive corners plus ``$`` lock flags)
- GridRange: the zero-based, half-open region sent to the Sheets API
- Region / RegionList: a Box bound to a concrete sheet, and an ordered list of them

and the functions converting between text and Box:
- parse_box / compose_box: the five A1 grammars and their inverse
- split_sheet_qualifier / quote_sheet_name: the ``'Sheet name'!`` prefix
"""

import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple

from gridbatch.exceptions import AddressSyntaxError
from gridbatch.spreadsheet.columns import index_to_letters, letters_to_index


# Grammar order matters: a finite cell must be tried before a bare column.
_CELL_RE = re.compile(
    r"^(\$?)([A-Za-z]+)(\$?)([0-9]+)(?::(\$?)([A-Za-z]+)(\$?)([0-9]+))?$"
)
_COLUMN_RANGE_RE = re.compile(r"^(\$?)([A-Za-z]+):(\$?)([A-Za-z]+)$")
_COLUMN_RE = re.compile(r"^(\$?)([A-Za-z]+)$")
_ROW_RANGE_RE = re.compile(r"^(\$?)([0-9]+):(\$?)([0-9]+)$")
_ROW_RE = re.compile(r"^(\$?)([0-9]+)$")

_QUALIFIED_RE = re.compile(r"^(?:'((?:[^']|'')+)'|([^'!]+))!(.*)$", re.DOTALL)
_PLAIN_SHEET_NAME_RE = re.compile(r"^[^\W\d]\w*$")


@dataclass(frozen=True)
class Box:
    """A rectangular region in 1-based, inclusive coordinates.

    ``c2`` is ``None`` for row-only forms (``3:7``) and ``r2`` is ``None``
    for column-only forms (``A:D``); ``None`` means "to the edge of the
    sheet". Lock flags record ``$`` markers per corner and axis. They are
    carried through every transform but never affect geometry.

    Attributes:
        c1: First column (1-based)
        r1: First row (1-based)
        c2: Last column (inclusive), or None when unbounded
        r2: Last row (inclusive), or None when unbounded
        sheet: Optional sheet name
        c1_locked, r1_locked, c2_locked, r2_locked: ``$`` markers
    """
    c1: int
    r1: int
    c2: Optional[int]
    r2: Optional[int]
    sheet: Optional[str] = None
    c1_locked: bool = False
    r1_locked: bool = False
    c2_locked: bool = False
    r2_locked: bool = False

    def __post_init__(self) -> None:
        if self.c1 < 1 or self.r1 < 1:
            raise ValueError("Box coordinates are 1-based and must be positive")
        if self.c2 is not None and self.c2 < self.c1:
            raise ValueError("Box is not normalized: c2 < c1")
        if self.r2 is not None and self.r2 < self.r1:
            raise ValueError("Box is not normalized: r2 < r1")
        if self.c2 is None and self.r2 is None:
            raise ValueError("Box cannot be unbounded on both axes")
        # Open forms (A:D, 3:7) always start at the sheet edge.
        if self.r2 is None and self.r1 != 1:
            raise ValueError("Column-only boxes must start at row 1")
        if self.c2 is None and self.c1 != 1:
            raise ValueError("Row-only boxes must start at column 1")

    @classmethod
    def normalized(
        cls,
        c1: int,
        r1: int,
        c2: Optional[int],
        r2: Optional[int],
        sheet: Optional[str] = None,
        locks: Tuple[bool, bool, bool, bool] = (False, False, False, False),
    ) -> "Box":
        """Build a Box, swapping reversed corners together with their locks."""
        c1_locked, r1_locked, c2_locked, r2_locked = locks
        if c2 is not None and c1 > c2:
            c1, c2 = c2, c1
            c1_locked, c2_locked = c2_locked, c1_locked
        if r2 is not None and r1 > r2:
            r1, r2 = r2, r1
            r1_locked, r2_locked = r2_locked, r1_locked
        return cls(
            c1=c1, r1=r1, c2=c2, r2=r2, sheet=sheet,
            c1_locked=c1_locked, r1_locked=r1_locked,
            c2_locked=c2_locked, r2_locked=r2_locked,
        )

    @property
    def rows_unbounded(self) -> bool:
        return self.r2 is None

    @property
    def cols_unbounded(self) -> bool:
        return self.c2 is None

    @property
    def height(self) -> Optional[int]:
        """Number of rows, or None for column-only boxes."""
        return None if self.r2 is None else self.r2 - self.r1 + 1

    @property
    def width(self) -> Optional[int]:
        """Number of columns, or None for row-only boxes."""
        return None if self.c2 is None else self.c2 - self.c1 + 1

    @property
    def locks(self) -> Tuple[bool, bool, bool, bool]:
        return (self.c1_locked, self.r1_locked, self.c2_locked, self.r2_locked)

    def is_single_cell(self) -> bool:
        return self.c1 == self.c2 and self.r1 == self.r2

    def with_sheet(self, sheet: Optional[str]) -> "Box":
        return replace(self, sheet=sheet)

    def resized(self, rows: int, cols: int) -> "Box":
        """Return a finite box of ``rows`` x ``cols`` anchored at the top-left."""
        return replace(self, c2=self.c1 + cols - 1, r2=self.r1 + rows - 1)

    def to_grid_range(self, sheet_id: int) -> "GridRange":
        """Convert to zero-based, half-open API coordinates."""
        return GridRange(
            sheet_id=sheet_id,
            start_row=self.r1 - 1,
            end_row=self.r2,
            start_col=self.c1 - 1,
            end_col=self.c2,
        )

    @property
    def a1(self) -> str:
        return compose_box(self)

    def __str__(self) -> str:
        return compose_box(self)


@dataclass(frozen=True)
class GridRange:
    """Zero-based, half-open region on one sheet (Sheets API ``GridRange``).

    An end index of ``None`` is omitted from the API payload, which the API
    reads as "unbounded".
    """
    sheet_id: int
    start_row: int
    end_row: Optional[int]
    start_col: int
    end_col: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the API's JSON representation."""
        data: Dict[str, Any] = {
            "sheetId": self.sheet_id,
            "startRowIndex": self.start_row,
        }
        if self.end_row is not None:
            data["endRowIndex"] = self.end_row
        data["startColumnIndex"] = self.start_col
        if self.end_col is not None:
            data["endColumnIndex"] = self.end_col
        return data


@dataclass(frozen=True)
class Region:
    """A Box bound to a concrete sheet of a grid.

    Regions are produced by ``gridbatch.grid.resolver.resolve``. The sheet's
    dimensions are captured at resolve time so extents can be computed
    without another lookup.

    Attributes:
        sheet_title: Title of the sheet the region lives on
        sheet_id: Numeric sheet id (``GridRange.sheetId``)
        box: The region's coordinates; ``box.sheet`` equals ``sheet_title``
        row_count: Sheet row count when resolved
        col_count: Sheet column count when resolved
    """
    sheet_title: str
    sheet_id: int
    box: Box
    row_count: int = 0
    col_count: int = 0

    @property
    def a1(self) -> str:
        """Sheet-qualified A1 notation, e.g. ``'My Log'!A2:C2``."""
        return f"{quote_sheet_name(self.sheet_title)}!{compose_box(self.box, include_sheet=False)}"

    def grid_range(self) -> GridRange:
        return self.box.to_grid_range(self.sheet_id)

    def with_box(self, box: Box) -> "Region":
        return replace(self, box=box.with_sheet(self.sheet_title))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sheet": self.sheet_title,
            "sheet_id": self.sheet_id,
            "range": self.a1,
        }

    def __str__(self) -> str:
        return self.a1


class RegionList:
    """An ordered collection of regions addressed as one handle."""

    def __init__(self, regions) -> None:
        self.regions = list(regions)

    def __iter__(self):
        return iter(self.regions)

    def __len__(self) -> int:
        return len(self.regions)

    def __getitem__(self, index: int) -> Region:
        return self.regions[index]

    def __repr__(self) -> str:
        return f"RegionList({[r.a1 for r in self.regions]!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RegionList):
            return NotImplemented
        return self.regions == other.regions


def split_sheet_qualifier(text: str) -> Tuple[Optional[str], str]:
    """Split ``Sheet!A1`` into ``("Sheet", "A1")``.

    Quoted names (``'My Sheet'!A1``) are unquoted and doubled quotes
    unescaped. Unqualified text returns ``(None, text)``.
    """
    match = _QUALIFIED_RE.match(text.strip())
    if not match:
        return None, text.strip()
    quoted, plain, rest = match.groups()
    name = quoted.replace("''", "'") if quoted is not None else plain.strip()
    return name, rest.strip()


def quote_sheet_name(name: str) -> str:
    """Render a sheet name for use as an A1 qualifier.

    Plain identifiers (``Sheet1``, ``Log_2024``) are left bare; anything
    else, including every name containing whitespace, is single-quoted with
    inner quotes doubled.
    """
    if _PLAIN_SHEET_NAME_RE.match(name):
        return name
    return "'" + name.replace("'", "''") + "'"


def parse_box(text: str) -> Box:
    """Parse A1 notation into a normalized Box.

    Recognized forms, tried in order (each optionally sheet-qualified):

    1. ``A1`` / ``$A$1:D5`` - finite cell or area
    2. ``A:D`` - column-only range, rows 1..unbounded
    3. ``A`` - single column
    4. ``3:7`` - row-only range, columns 1..unbounded
    5. ``3`` - single row

    Args:
        text: Address text

    Returns:
        Box with corners ordered and lock flags attached

    Raises:
        AddressSyntaxError: If no grammar matches
    """
    if not isinstance(text, str):
        raise AddressSyntaxError(f"Address must be a string, got {type(text).__name__}")

    sheet, body = split_sheet_qualifier(text)
    if not body:
        raise AddressSyntaxError(f"Invalid address: {text!r}")

    try:
        box = _parse_body(body, sheet)
    except ValueError as e:
        raise AddressSyntaxError(f"Invalid address: {text!r}") from e

    if box is None:
        raise AddressSyntaxError(f"Invalid address: {text!r}")
    return box


def _parse_body(body: str, sheet: Optional[str]) -> Optional[Box]:
    match = _CELL_RE.match(body)
    if match:
        lc1, col1, lr1, row1, lc2, col2, lr2, row2 = match.groups()
        c1, r1 = letters_to_index(col1), _row_number(row1)
        if col2 is None:
            return Box(
                c1=c1, r1=r1, c2=c1, r2=r1, sheet=sheet,
                c1_locked=bool(lc1), r1_locked=bool(lr1),
                c2_locked=bool(lc1), r2_locked=bool(lr1),
            )
        return Box.normalized(
            c1, r1, letters_to_index(col2), _row_number(row2), sheet,
            (bool(lc1), bool(lr1), bool(lc2), bool(lr2)),
        )

    match = _COLUMN_RANGE_RE.match(body)
    if match:
        lc1, col1, lc2, col2 = match.groups()
        return Box.normalized(
            letters_to_index(col1), 1, letters_to_index(col2), None, sheet,
            (bool(lc1), False, bool(lc2), False),
        )

    match = _COLUMN_RE.match(body)
    if match:
        lc, col = match.groups()
        c = letters_to_index(col)
        return Box(c1=c, r1=1, c2=c, r2=None, sheet=sheet,
                   c1_locked=bool(lc), c2_locked=bool(lc))

    match = _ROW_RANGE_RE.match(body)
    if match:
        lr1, row1, lr2, row2 = match.groups()
        return Box.normalized(
            1, _row_number(row1), None, _row_number(row2), sheet,
            (False, bool(lr1), False, bool(lr2)),
        )

    match = _ROW_RE.match(body)
    if match:
        lr, row = match.groups()
        r = _row_number(row)
        return Box(c1=1, r1=r, c2=None, r2=r, sheet=sheet,
                   r1_locked=bool(lr), r2_locked=bool(lr))

    return None


def _row_number(digits: str) -> int:
    row = int(digits)
    if row < 1:
        raise ValueError("Row numbers start at 1")
    return row


def compose_box(box: Box, include_sheet: bool = True) -> str:
    """Render a Box back to A1 notation (inverse of ``parse_box``).

    Column-only boxes render as ``A:D``, row-only boxes as ``3:7``, finite
    boxes as ``A1:D5``, collapsing to ``A1`` when both corners (locks
    included) are identical.

    Args:
        box: The box to render
        include_sheet: Prefix the sheet qualifier when the box has one

    Returns:
        A1 notation string
    """
    def col(index: int, locked: bool) -> str:
        return ("$" if locked else "") + index_to_letters(index)

    def row(index: int, locked: bool) -> str:
        return ("$" if locked else "") + str(index)

    if box.r2 is None:
        body = f"{col(box.c1, box.c1_locked)}:{col(box.c2, box.c2_locked)}"
    elif box.c2 is None:
        body = f"{row(box.r1, box.r1_locked)}:{row(box.r2, box.r2_locked)}"
    else:
        start = col(box.c1, box.c1_locked) + row(box.r1, box.r1_locked)
        end = col(box.c2, box.c2_locked) + row(box.r2, box.r2_locked)
        same_locks = (box.c1_locked, box.r1_locked) == (box.c2_locked, box.r2_locked)
        body = start if box.is_single_cell() and same_locks else f"{start}:{end}"

    if include_sheet and box.sheet is not None:
        return f"{quote_sheet_name(box.sheet)}!{body}"
    return body
