"""
Direct-apply executor backed by an in-memory grid.

Replays queued operations group by group against a ``MemoryGrid`` and
returns responses shaped exactly like SheetsExecutor's, so callers cannot
tell which strategy ran. No network access or Google credentials are
required.

Rendering of reads is deliberately small: ``FORMATTED_VALUE`` renders
booleans as ``TRUE``/``FALSE``, whole numbers without a decimal point, and
date-formatted serials as ISO dates; formulas are returned as their text
because nothing is evaluated.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Optional, Sequence

from gridbatch.executor.base import FlushCallback
from gridbatch.executor.plan import Group, group_operations
from gridbatch.executor.responses import (
    normalize_structural,
    qualified_a1,
    summarize_updates,
    update_values_response,
    value_range,
)
from gridbatch.grid.memory import MemoryGrid, MemorySheet
from gridbatch.spreadsheet.model import Box, Region
from gridbatch.spreadsheet.operations import (
    AppendValues,
    ClearValues,
    OpKind,
    Operation,
    ReadValues,
    StructuralAction,
    StructuralChange,
    UpdateValues,
)
from gridbatch.spreadsheet.values import (
    DEFAULT_PATTERNS,
    NumberFormatPatterns,
    encode_value,
    encode_values,
    number_formats,
    serial_to_date,
    to_row_major,
)

logger = logging.getLogger(__name__)


class LocalExecutor:
    """In-process executor applying operations to a ``MemoryGrid``.

    Usage::

        grid = MemoryGrid()
        grid.add_sheet("Log", rows=10, cols=3)
        executor = LocalExecutor(grid)
        executor.execute(operations)
        grid["Log"].value("A1")
    """

    def __init__(self, grid: MemoryGrid, patterns: NumberFormatPatterns = DEFAULT_PATTERNS) -> None:
        self.grid = grid
        self.patterns = patterns

    def execute(
        self,
        operations: Sequence[Operation],
        on_flush: Optional[FlushCallback] = None,
    ) -> list[dict[str, Any]]:
        results: list[dict[str, Any]] = []
        for group in group_operations(operations):
            response = self._apply(group)
            logger.debug("Applied %s group of %d operation(s)", group.label, len(group.operations))
            results.append(response)
            if on_flush is not None:
                on_flush(group, response)
        return results

    def _sheet(self, region: Region) -> MemorySheet:
        return self.grid[region.sheet_title]

    def _apply(self, group: Group) -> dict[str, Any]:
        if group.kind is OpKind.UPDATE:
            return self._apply_updates(group.operations)
        if group.kind is OpKind.CLEAR:
            return self._apply_clears(group.operations)
        if group.kind is OpKind.READ:
            return self._apply_reads(group.operations)
        if group.kind is OpKind.APPEND:
            return self._apply_append(group.operations[0])
        return self._apply_structural(group.operations)

    def _cells(self, values: Sequence[Sequence[Any]], major_dimension: str):
        rows = to_row_major(values, major_dimension)
        return [[_stored(v) for v in row] for row in rows], number_formats(rows, self.patterns)

    def _apply_updates(self, operations: Sequence[UpdateValues]) -> dict[str, Any]:
        responses = []
        for op in operations:
            cells, formats = self._cells(op.values, op.options.major_dimension)
            box = op.region.box
            written = self._sheet(op.region).set_values(box.r1, box.c1, cells, formats)
            echo = encode_values(op.values) if op.options.include_values_in_response else None
            responses.append(update_values_response(
                self.grid.spreadsheet_id, op.region.sheet_title, written,
                echo, op.options.major_dimension,
            ))
        return summarize_updates(self.grid.spreadsheet_id, responses)

    def _apply_clears(self, operations: Sequence[ClearValues]) -> dict[str, Any]:
        cleared = []
        for op in operations:
            sheet = self._sheet(op.region)
            sheet.clear(op.region.box)
            cleared.append(_clipped_a1(sheet, op.region.box))
        return {"spreadsheetId": self.grid.spreadsheet_id, "clearedRanges": cleared}

    def _apply_reads(self, operations: Sequence[ReadValues]) -> dict[str, Any]:
        value_ranges = []
        for op in operations:
            sheet = self._sheet(op.region)
            raw = sheet.get_values(op.region.box)
            formats = sheet.get_formats(op.region.box)
            render = op.options.value_render_option
            rows = [
                [_render(v, f, render) for v, f in zip(value_row, format_row)]
                for value_row, format_row in zip(raw, formats)
            ]
            if op.options.major_dimension == "COLUMNS":
                rows = [list(col) for col in zip(*rows)]
            value_ranges.append(value_range(
                _clipped_a1(sheet, op.region.box),
                _trim(rows),
                op.options.major_dimension,
            ))
        return {"spreadsheetId": self.grid.spreadsheet_id, "valueRanges": value_ranges}

    def _apply_append(self, op: AppendValues) -> dict[str, Any]:
        sheet = self._sheet(op.region)
        cells, formats = self._cells(op.values, op.options.major_dimension)
        table, written = sheet.append(op.region.box, cells, formats, op.insert_data_option)
        echo = encode_values(op.values) if op.options.include_values_in_response else None
        response: dict[str, Any] = {
            "spreadsheetId": self.grid.spreadsheet_id,
            "updates": update_values_response(
                self.grid.spreadsheet_id, sheet.title, written,
                echo, op.options.major_dimension,
            ),
        }
        if table is not None:
            response["tableRange"] = qualified_a1(sheet.title, table)
        return response

    def _apply_structural(self, operations: Sequence[StructuralChange]) -> dict[str, Any]:
        for op in operations:
            sheet = self._sheet(op.region)
            box = op.region.box
            if op.action is StructuralAction.INSERT_ROWS:
                sheet.insert_rows(box.r1 - 1, box.height, op.inherit_from_before)
            elif op.action is StructuralAction.DELETE_ROWS:
                sheet.delete_rows(box.r1 - 1, box.r2)
            elif op.action is StructuralAction.INSERT_COLUMNS:
                sheet.insert_columns(box.c1 - 1, box.width, op.inherit_from_before)
            elif op.action is StructuralAction.DELETE_COLUMNS:
                sheet.delete_columns(box.c1 - 1, box.c2)
            elif op.action is StructuralAction.INSERT_RANGE:
                sheet.insert_range(box, op.shift_dimension)
            else:
                sheet.delete_range(box, op.shift_dimension)
        return normalize_structural(None, self.grid.spreadsheet_id, len(operations))


def _stored(value: Any) -> Any:
    """Value as the memory grid stores it (None for empty cells)."""
    encoded = encode_value(value)
    return None if encoded == "" else encoded


def _render(value: Any, fmt: Optional[dict[str, str]], render: str) -> Any:
    if value is None:
        return ""
    if render != "FORMATTED_VALUE" or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if fmt is not None and isinstance(value, (int, float)):
        moment = serial_to_date(value)
        if fmt["type"] == "DATE":
            return moment.strftime("%Y-%m-%d")
        if fmt["type"] == "TIME":
            return moment.strftime("%H:%M:%S")
        return moment.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def _trim(rows: list[list[Any]]) -> list[list[Any]]:
    """Drop trailing empty cells and rows, as the API does."""
    trimmed = []
    for row in rows:
        end = len(row)
        while end and row[end - 1] == "":
            end -= 1
        trimmed.append(row[:end])
    while trimmed and not trimmed[-1]:
        trimmed.pop()
    return trimmed


def _clipped_a1(sheet: MemorySheet, box: Box) -> str:
    r1, c1, r2, c2 = sheet.clip(box)
    return qualified_a1(sheet.title, Box(c1=c1, r1=r1, c2=c2, r2=r2))
