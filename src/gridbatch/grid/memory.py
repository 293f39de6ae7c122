"""
In-memory grid.

``MemoryGrid`` is a local object model of a spreadsheet: a set of sheets,
each a dense matrix of raw cell values plus a parallel matrix of number
formats. It satisfies the ``GridHandle`` protocol, so addresses resolve
against it exactly as they do against a live spreadsheet, and it is the
target of the direct-apply executor (``LocalExecutor``) for contexts that
have no access to the batch API: offline runs, dry runs, tests.

Formulas are stored as text and never evaluated.
"""

from __future__ import annotations

import itertools
from typing import Any, Optional

from gridbatch.exceptions import SheetNotFoundError
from gridbatch.spreadsheet.model import Box, parse_box

Matrix = list[list[Any]]


class MemorySheet:
    """One sheet of a ``MemoryGrid``.

    All coordinates taken by the public methods are 1-based (matching Box)
    unless a parameter name says ``index``; ``index`` parameters are
    zero-based like the API's ``DimensionRange``.
    """

    def __init__(self, title: str, sheet_id: int, rows: int = 1000, cols: int = 26) -> None:
        if rows <= 0 or cols <= 0:
            raise ValueError("Sheet dimensions must be positive integers")
        self.title = title
        self.id = sheet_id
        self._values: Matrix = [[None] * cols for _ in range(rows)]
        self._formats: Matrix = [[None] * cols for _ in range(rows)]

    @property
    def row_count(self) -> int:
        return len(self._values)

    @property
    def col_count(self) -> int:
        return len(self._values[0]) if self._values else 0

    def __repr__(self) -> str:
        return f"MemorySheet(title={self.title!r}, rows={self.row_count}, cols={self.col_count})"

    # -- inspection helpers --------------------------------------------------

    def value(self, address: str) -> Any:
        """Return the raw value of one cell, e.g. ``sheet.value("B3")``."""
        box = parse_box(address)
        return self._values[box.r1 - 1][box.c1 - 1]

    def number_format(self, address: str) -> Optional[dict[str, str]]:
        box = parse_box(address)
        return self._formats[box.r1 - 1][box.c1 - 1]

    def clip(self, box: Box) -> tuple[int, int, int, int]:
        """Return ``(r1, c1, r2, c2)`` of ``box`` clipped to the sheet."""
        r2 = self.row_count if box.r2 is None else min(box.r2, self.row_count)
        c2 = self.col_count if box.c2 is None else min(box.c2, self.col_count)
        return box.r1, box.c1, r2, c2

    # -- values --------------------------------------------------------------

    def get_values(self, box: Box) -> Matrix:
        """Raw values of ``box`` (clipped to the sheet), empty cells as None."""
        r1, c1, r2, c2 = self.clip(box)
        return [row[c1 - 1:c2] for row in self._values[r1 - 1:r2]]

    def get_formats(self, box: Box) -> Matrix:
        """Number formats of ``box`` (clipped to the sheet), None where unset."""
        r1, c1, r2, c2 = self.clip(box)
        return [row[c1 - 1:c2] for row in self._formats[r1 - 1:r2]]

    def set_values(
        self,
        row: int,
        col: int,
        values: Matrix,
        formats: Optional[Matrix] = None,
    ) -> Box:
        """Write a row-major matrix with its top-left at ``(row, col)``.

        Cells whose entry in ``formats`` is not None get that number format;
        other cells keep theirs.

        Returns:
            The box actually written

        Raises:
            ValueError: If the matrix does not fit inside the grid
        """
        height = len(values)
        width = max((len(r) for r in values), default=0)
        if row + height - 1 > self.row_count or col + width - 1 > self.col_count:
            raise ValueError(
                f"Range exceeds grid limits of sheet {self.title!r} "
                f"({self.row_count} rows x {self.col_count} columns)"
            )
        for i, data_row in enumerate(values):
            for j, value in enumerate(data_row):
                self._values[row - 1 + i][col - 1 + j] = value
                if formats is not None and formats[i][j] is not None:
                    self._formats[row - 1 + i][col - 1 + j] = formats[i][j]
        return Box(c1=col, r1=row, c2=col + width - 1, r2=row + height - 1, sheet=self.title)

    def clear(self, box: Box) -> None:
        """Clear values (formats are kept) inside ``box``."""
        r1, c1, r2, c2 = self.clip(box)
        for r in range(r1 - 1, r2):
            for c in range(c1 - 1, c2):
                self._values[r][c] = None

    def append(
        self,
        box: Box,
        values: Matrix,
        formats: Optional[Matrix] = None,
        insert_data_option: str = "INSERT_ROWS",
    ) -> tuple[Optional[Box], Box]:
        """Append rows after the table found at ``box``.

        For a column range the table runs from ``box``'s first row down to
        the last row with any value in its columns. For a finite target (a
        single cell is just an anchor) the table starts at ``box``'s first
        row and runs down until the first empty row, searching across at
        least as many columns as the data is wide. Rows are written below it,
        starting at ``box``'s first column. With ``INSERT_ROWS`` new rows are
        inserted for the data; with ``OVERWRITE`` existing cells are
        overwritten and the grid grows only if the data runs past its end.

        Returns:
            ``(table, written)``: the detected table (None when empty) and the
            box the rows were written to
        """
        r1, c1, r2, c2 = self.clip(box)
        height = len(values)
        width = max((len(r) for r in values), default=0)

        last = 0
        if box.rows_unbounded:
            for r in range(r1, r2 + 1):
                if self._row_has_data(r, c1, c2):
                    last = r
        else:
            c2 = max(c2, min(c1 + width - 1, self.col_count))
            r = r1
            while r <= self.row_count and self._row_has_data(r, c1, c2):
                last = r
                r += 1
        table = None
        if last:
            table = Box(c1=c1, r1=r1, c2=c2, r2=last, sheet=self.title)
        start = last + 1 if last else r1

        if c1 + width - 1 > self.col_count:
            self.insert_columns(self.col_count, c1 + width - 1 - self.col_count)
        if insert_data_option == "INSERT_ROWS":
            self.insert_rows(start - 1, height)
        elif start + height - 1 > self.row_count:
            self.insert_rows(self.row_count, start + height - 1 - self.row_count)
        written = self.set_values(start, c1, values, formats)
        return table, written

    def _row_has_data(self, row: int, c1: int, c2: int) -> bool:
        return any(v is not None and v != "" for v in self._values[row - 1][c1 - 1:c2])

    # -- structure -----------------------------------------------------------

    def insert_rows(self, start_index: int, count: int, inherit_from_before: bool = False) -> None:
        """Insert ``count`` empty rows before zero-based row ``start_index``.

        New rows copy the number formats of the row before them when
        ``inherit_from_before`` is set, otherwise of the row after them.
        """
        if start_index < 0 or start_index > self.row_count:
            raise ValueError(f"Row index {start_index} out of range for sheet {self.title!r}")
        if inherit_from_before and start_index == 0:
            raise ValueError("Cannot inherit formatting from before the first row")
        source = start_index - 1 if inherit_from_before else start_index
        template = self._formats[source] if 0 <= source < self.row_count else [None] * self.col_count
        cols = self.col_count
        for _ in range(count):
            self._values.insert(start_index, [None] * cols)
            self._formats.insert(start_index, list(template))

    def delete_rows(self, start_index: int, end_index: int) -> None:
        """Delete zero-based rows ``[start_index, end_index)``."""
        end_index = min(end_index, self.row_count)
        if end_index - start_index >= self.row_count:
            raise ValueError("Cannot delete all rows of a sheet")
        del self._values[start_index:end_index]
        del self._formats[start_index:end_index]

    def insert_columns(self, start_index: int, count: int, inherit_from_before: bool = False) -> None:
        """Insert ``count`` empty columns before zero-based column ``start_index``."""
        if start_index < 0 or start_index > self.col_count:
            raise ValueError(f"Column index {start_index} out of range for sheet {self.title!r}")
        if inherit_from_before and start_index == 0:
            raise ValueError("Cannot inherit formatting from before the first column")
        source = start_index - 1 if inherit_from_before else start_index
        for values_row, formats_row in zip(self._values, self._formats):
            fmt = formats_row[source] if 0 <= source < len(formats_row) else None
            values_row[start_index:start_index] = [None] * count
            formats_row[start_index:start_index] = [fmt] * count

    def delete_columns(self, start_index: int, end_index: int) -> None:
        """Delete zero-based columns ``[start_index, end_index)``."""
        end_index = min(end_index, self.col_count)
        if end_index - start_index >= self.col_count:
            raise ValueError("Cannot delete all columns of a sheet")
        for values_row, formats_row in zip(self._values, self._formats):
            del values_row[start_index:end_index]
            del formats_row[start_index:end_index]

    def insert_range(self, box: Box, shift_dimension: str) -> None:
        """Insert empty cells at ``box``, shifting existing cells down or right.

        The grid grows by the box's height (``ROWS``) or width (``COLUMNS``)
        so no shifted cell falls off the edge.
        """
        r1, c1, r2, c2 = self.clip(box)
        if shift_dimension == "ROWS":
            height = r2 - r1 + 1
            self.insert_rows(self.row_count, height)
            for matrix in (self._values, self._formats):
                for c in range(c1 - 1, c2):
                    column = [row[c] for row in matrix]
                    shifted = column[:r1 - 1] + [None] * height + column[r1 - 1:len(column) - height]
                    for row, value in zip(matrix, shifted):
                        row[c] = value
        else:
            width = c2 - c1 + 1
            self.insert_columns(self.col_count, width)
            for matrix in (self._values, self._formats):
                for row in matrix[r1 - 1:r2]:
                    row[:] = row[:c1 - 1] + [None] * width + row[c1 - 1:len(row) - width]

    def delete_range(self, box: Box, shift_dimension: str) -> None:
        """Delete the cells of ``box``, shifting neighbours up or left."""
        r1, c1, r2, c2 = self.clip(box)
        if shift_dimension == "ROWS":
            height = r2 - r1 + 1
            for matrix in (self._values, self._formats):
                for c in range(c1 - 1, c2):
                    column = [row[c] for row in matrix]
                    shifted = column[:r1 - 1] + column[r2:] + [None] * height
                    for row, value in zip(matrix, shifted):
                        row[c] = value
        else:
            width = c2 - c1 + 1
            for matrix in (self._values, self._formats):
                for row in matrix[r1 - 1:r2]:
                    row[:] = row[:c1 - 1] + row[c2:] + [None] * width


class MemoryGrid:
    """An in-memory spreadsheet implementing the ``GridHandle`` protocol.

    Usage::

        grid = MemoryGrid("offline")
        grid.add_sheet("Log", rows=100, cols=5)
        batch = Batch(grid, mode=ExecutionMode.DIRECT_APPLY)
    """

    def __init__(self, spreadsheet_id: str = "memory", active_sheet: Optional[str] = None) -> None:
        self._spreadsheet_id = spreadsheet_id
        self._sheets: dict[str, MemorySheet] = {}
        self._active_title = active_sheet
        self._ids = itertools.count()

    @property
    def spreadsheet_id(self) -> str:
        return self._spreadsheet_id

    @property
    def sheets(self) -> list[MemorySheet]:
        return list(self._sheets.values())

    def add_sheet(self, title: str, rows: int = 1000, cols: int = 26) -> MemorySheet:
        if title in self._sheets:
            raise ValueError(f"Sheet {title!r} already exists")
        sheet = MemorySheet(title, next(self._ids), rows=rows, cols=cols)
        self._sheets[title] = sheet
        return sheet

    def set_active_sheet(self, title: str) -> None:
        if title not in self._sheets:
            raise SheetNotFoundError(title)
        self._active_title = title

    def active_sheet(self) -> MemorySheet:
        if self._active_title is not None:
            if self._active_title not in self._sheets:
                raise SheetNotFoundError(self._active_title)
            return self._sheets[self._active_title]
        if not self._sheets:
            raise SheetNotFoundError("<active sheet>")
        return next(iter(self._sheets.values()))

    def sheet_by_name(self, name: str) -> Optional[MemorySheet]:
        return self._sheets.get(name)

    def refresh(self) -> None:
        """Sheets are live objects; nothing is cached."""

    def __getitem__(self, title: str) -> MemorySheet:
        sheet = self._sheets.get(title)
        if sheet is None:
            raise SheetNotFoundError(title)
        return sheet
