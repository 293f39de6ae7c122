"""
Operation queue and commit.

A ``Batch`` collects writes, clears, appends, reads and structural changes
against one grid, validating and resolving each at the call that enqueues
it, and sends them all at ``commit()`` through the executor selected by its
``BatchConfig``:

    batch = Batch(handle)
    batch.update("Log!A1:B2", [[1, 2], [3, 4]])
    batch.append("Log!A:B", [["x", "y"]])
    responses = batch.commit()

Nothing touches the grid before ``commit()``.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from gridbatch.config import BatchConfig, ExecutionMode
from gridbatch.exceptions import EmptyPayloadError, ShapeMismatchError, UnsupportedOperationError
from gridbatch.executor.base import Executor
from gridbatch.executor.combined_executor import CombinedExecutor
from gridbatch.executor.local_executor import LocalExecutor
from gridbatch.executor.plan import Group, explain, group_operations
from gridbatch.executor.sheets_executor import SheetsExecutor
from gridbatch.grid.handle import GridHandle, SheetLike
from gridbatch.grid.memory import MemoryGrid
from gridbatch.grid.resolver import Address, bind, lookup_sheet, resolve_region
from gridbatch.spreadsheet.columns import letters_to_index
from gridbatch.spreadsheet.model import Box, Region
from gridbatch.spreadsheet.operations import (
    AppendValues,
    ClearValues,
    Operation,
    OpKind,
    ReadOptions,
    ReadValues,
    StructuralAction,
    StructuralChange,
    UpdateValues,
    WriteOptions,
)
from gridbatch.spreadsheet.values import matrix_shape

logger = logging.getLogger(__name__)

_DIMENSIONS = ("ROWS", "COLUMNS")


def _check_matrix(values: Any) -> List[List[Any]]:
    """Return ``values`` as a list of row lists, rejecting empty payloads."""
    if not isinstance(values, (list, tuple)):
        raise TypeError("values must be a list of rows")
    if not values:
        raise EmptyPayloadError("No values to write")
    matrix = []
    for row in values:
        if not isinstance(row, (list, tuple)):
            raise TypeError("values must be a list of rows")
        if not row:
            raise EmptyPayloadError("Value matrix contains an empty row")
        matrix.append(list(row))
    return matrix


def _check_dimension(major_dimension: str) -> None:
    if major_dimension not in _DIMENSIONS:
        raise ValueError(f"Invalid major_dimension: {major_dimension!r}")


def _column_index(column: Union[str, int]) -> int:
    if isinstance(column, str):
        return letters_to_index(column)
    if isinstance(column, bool) or column < 1:
        raise ValueError(f"Column must be a letter or a positive index, got {column!r}")
    return column


class Batch:
    """A queue of grid operations committed together.

    Attributes:
        handle: Grid the addresses resolve against
        config: Defaults and execution strategy
    """

    def __init__(
        self,
        handle: GridHandle,
        config: Optional[BatchConfig] = None,
        *,
        mode: Optional[Union[ExecutionMode, str]] = None,
    ) -> None:
        """Initialize an empty batch.

        Args:
            handle: A ``SpreadsheetHandle`` (grouped or single-call modes) or
                a ``MemoryGrid`` (direct-apply mode)
            config: Batch defaults; a fresh ``BatchConfig`` when omitted
            mode: Shortcut overriding ``config.mode``

        Raises:
            UnsupportedOperationError: If the handle cannot serve the mode
        """
        self.handle = handle
        self.config = config if config is not None else BatchConfig()
        if mode is not None:
            self.config = replace(self.config, mode=ExecutionMode(mode))
        self._operations: List[Operation] = []
        # Net rows inserted (+) or deleted (-) by queued operations, per sheet.
        self._row_delta: Dict[str, int] = {}

        if self.mode is ExecutionMode.DIRECT_APPLY and not isinstance(handle, MemoryGrid):
            raise UnsupportedOperationError("Direct-apply mode needs a MemoryGrid handle")
        if self.mode is not ExecutionMode.DIRECT_APPLY and not hasattr(handle, "client"):
            raise UnsupportedOperationError(
                f"{self.mode.value} mode needs a handle with a remote client"
            )

    @property
    def mode(self) -> ExecutionMode:
        return self.config.mode

    @property
    def operations(self) -> Tuple[Operation, ...]:
        """Queued operations in enqueue order."""
        return tuple(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def __repr__(self) -> str:
        return f"Batch(mode={self.mode.value}, operations={len(self._operations)})"

    # -- producers -----------------------------------------------------------

    def update(
        self,
        address: Address,
        values: Sequence[Sequence[Any]],
        *,
        auto_resize: bool = False,
        allow_mismatch: bool = False,
        value_input_option: Optional[str] = None,
        major_dimension: str = "ROWS",
        include_values_in_response: bool = False,
        response_value_render_option: Optional[str] = None,
        response_date_time_render_option: Optional[str] = None,
    ) -> UpdateValues:
        """Queue a write of a value matrix into a region.

        Args:
            address: Target address text, Box or Region
            values: Matrix of values, rows first unless ``major_dimension``
                is ``COLUMNS``
            auto_resize: Use the target's top-left cell as an anchor and size
                the region from the payload
            allow_mismatch: Skip the shape check and write from the top-left
                corner
            value_input_option: ``USER_ENTERED`` or ``RAW``; defaults to the
                config value
            major_dimension: ``ROWS`` or ``COLUMNS``
            include_values_in_response: Echo the written values in the response
            response_value_render_option: Render option for echoed values
            response_date_time_render_option: Date render option for echoed values

        Returns:
            The queued operation

        Raises:
            EmptyPayloadError: If ``values`` is empty or has an empty row
            ShapeMismatchError: If the payload does not fit the target
            AddressSyntaxError: If the address does not parse
            SheetNotFoundError: If the address names a missing sheet
        """
        _check_dimension(major_dimension)
        matrix = _check_matrix(values)
        rows, cols = matrix_shape(matrix, major_dimension)
        region = self._fit(resolve_region(address, self.handle), rows, cols, auto_resize, allow_mismatch)
        options = WriteOptions(
            value_input_option=value_input_option or self.config.value_input_option,
            major_dimension=major_dimension,
            include_values_in_response=include_values_in_response,
            response_value_render_option=response_value_render_option,
            response_date_time_render_option=response_date_time_render_option,
        )
        return self._enqueue(UpdateValues(region=region, values=matrix, options=options))

    def write_cell(self, address: Address, value: Any, **options: Any) -> UpdateValues:
        """Queue a write of a single value.

        The target must be one cell unless ``auto_resize=True`` is passed,
        in which case its top-left cell is used. Other keywords are those of
        ``update``.
        """
        return self.update(address, [[value]], **options)

    def clear(self, address: Address) -> ClearValues:
        """Queue clearing the values (not formats) of a region."""
        region = resolve_region(address, self.handle)
        return self._enqueue(ClearValues(region=region))

    def append(
        self,
        address: Address,
        values: Sequence[Sequence[Any]],
        *,
        allow_mismatch: bool = False,
        insert_data_option: Optional[str] = None,
        value_input_option: Optional[str] = None,
        major_dimension: str = "ROWS",
        include_values_in_response: bool = False,
    ) -> AppendValues:
        """Queue appending rows after the table found in a region.

        A single-cell address is an anchor and accepts rows of any width.
        For a wider target the payload width must match its column count
        unless ``allow_mismatch`` is set; the row count is never checked.

        Args:
            address: Region whose table is extended, e.g. ``"Log!A:D"``
            values: Rows to append
            allow_mismatch: Skip the width check
            insert_data_option: ``INSERT_ROWS`` or ``OVERWRITE``; defaults to
                the config value
            value_input_option: ``USER_ENTERED`` or ``RAW``
            major_dimension: ``ROWS`` or ``COLUMNS``
            include_values_in_response: Echo the written values in the response

        Raises:
            EmptyPayloadError: If ``values`` is empty or has an empty row
            ShapeMismatchError: If the payload width does not match the target
        """
        _check_dimension(major_dimension)
        insert_data_option = insert_data_option or self.config.insert_data_option
        if insert_data_option not in ("INSERT_ROWS", "OVERWRITE"):
            raise ValueError(f"Invalid insert_data_option: {insert_data_option!r}")
        matrix = _check_matrix(values)
        _, cols = matrix_shape(matrix, major_dimension)
        region = resolve_region(address, self.handle)
        box = region.box
        if not allow_mismatch and not box.is_single_cell() and box.width is not None and box.width != cols:
            raise ShapeMismatchError(
                f"Cannot append rows of width {cols} to {region.a1} ({box.width} columns)"
            )
        options = WriteOptions(
            value_input_option=value_input_option or self.config.value_input_option,
            major_dimension=major_dimension,
            include_values_in_response=include_values_in_response,
        )
        op = AppendValues(region=region, values=matrix, options=options, insert_data_option=insert_data_option)
        return self._enqueue(op)

    def read(
        self,
        address: Address,
        *,
        major_dimension: str = "ROWS",
        value_render_option: str = "FORMATTED_VALUE",
        date_time_render_option: str = "SERIAL_NUMBER",
    ) -> ReadValues:
        """Queue a read; its values arrive in the commit responses.

        Raises:
            UnsupportedOperationError: In single-call mode, which cannot
                return values
        """
        _check_dimension(major_dimension)
        if self.mode is ExecutionMode.SINGLE_CALL:
            raise UnsupportedOperationError("Reads cannot be committed in single-call mode")
        region = resolve_region(address, self.handle)
        options = ReadOptions(
            major_dimension=major_dimension,
            value_render_option=value_render_option,
            date_time_render_option=date_time_render_option,
        )
        return self._enqueue(ReadValues(region=region, options=options))

    # -- structural ----------------------------------------------------------

    def insert_rows(
        self,
        start_row: int,
        count: int = 1,
        *,
        sheet: Optional[str] = None,
        inherit_from_before: bool = False,
    ) -> StructuralChange:
        """Queue inserting ``count`` empty rows so the first new row is ``start_row``.

        Args:
            start_row: 1-based row the first inserted row will occupy
            count: Number of rows
            sheet: Sheet title; the active sheet when omitted
            inherit_from_before: Copy formatting from the row above instead
                of the row below
        """
        target = self._sheet(sheet)
        box = self._rows_box(start_row, count)
        if inherit_from_before and start_row == 1:
            raise ValueError("Cannot inherit formatting from before the first row")
        op = StructuralChange(
            region=bind(box, target),
            action=StructuralAction.INSERT_ROWS,
            inherit_from_before=inherit_from_before,
        )
        self._track_rows(target.title, count)
        return self._enqueue(op)

    def delete_rows(self, start_row: int, count: int = 1, *, sheet: Optional[str] = None) -> StructuralChange:
        """Queue deleting ``count`` rows starting at 1-based ``start_row``."""
        target = self._sheet(sheet)
        op = StructuralChange(region=bind(self._rows_box(start_row, count), target),
                              action=StructuralAction.DELETE_ROWS)
        self._track_rows(target.title, -count)
        return self._enqueue(op)

    def insert_columns(
        self,
        start_column: Union[str, int],
        count: int = 1,
        *,
        sheet: Optional[str] = None,
        inherit_from_before: bool = False,
    ) -> StructuralChange:
        """Queue inserting ``count`` empty columns at ``start_column`` (letters or 1-based index)."""
        target = self._sheet(sheet)
        box = self._columns_box(start_column, count)
        if inherit_from_before and box.c1 == 1:
            raise ValueError("Cannot inherit formatting from before the first column")
        op = StructuralChange(
            region=bind(box, target),
            action=StructuralAction.INSERT_COLUMNS,
            inherit_from_before=inherit_from_before,
        )
        return self._enqueue(op)

    def delete_columns(
        self,
        start_column: Union[str, int],
        count: int = 1,
        *,
        sheet: Optional[str] = None,
    ) -> StructuralChange:
        target = self._sheet(sheet)
        op = StructuralChange(region=bind(self._columns_box(start_column, count), target),
                              action=StructuralAction.DELETE_COLUMNS)
        return self._enqueue(op)

    def insert_region(self, address: Address, shift: str = "ROWS") -> StructuralChange:
        """Queue inserting empty cells at a region, shifting neighbours down (``ROWS``) or right."""
        return self._range_change(address, shift, StructuralAction.INSERT_RANGE)

    def delete_region(self, address: Address, shift: str = "ROWS") -> StructuralChange:
        """Queue deleting a region's cells, shifting neighbours up (``ROWS``) or left."""
        return self._range_change(address, shift, StructuralAction.DELETE_RANGE)

    def push_down_insert(
        self,
        anchor: Address,
        values: Sequence[Sequence[Any]],
        *,
        remove_from_bottom: bool = True,
        value_input_option: Optional[str] = None,
        major_dimension: str = "ROWS",
    ) -> List[Operation]:
        """Insert rows at ``anchor`` and write ``values`` into them.

        Existing rows move down. The new rows take their formatting from the
        row above the anchor (from below when the anchor is on row 1). With
        ``remove_from_bottom`` the same number of rows is deleted at the end
        of the sheet, so its row count stays the same; rows inserted or
        deleted earlier in this batch are taken into account.

        Args:
            anchor: Top-left cell of the new block, e.g. ``"Log!A2"``
            values: Rows to write
            remove_from_bottom: Delete as many rows at the bottom as inserted
            value_input_option: ``USER_ENTERED`` or ``RAW``
            major_dimension: ``ROWS`` or ``COLUMNS``

        Returns:
            The queued operations (insert, update, and delete when removing)
        """
        _check_dimension(major_dimension)
        matrix = _check_matrix(values)
        rows, cols = matrix_shape(matrix, major_dimension)
        region = resolve_region(anchor, self.handle)
        top, left = region.box.r1, region.box.c1
        sheet_title = region.sheet_title
        # Row count as it will be once the already-queued operations have run.
        current_rows = region.row_count + self._row_delta.get(sheet_title, 0)

        queued: List[Operation] = [
            self.insert_rows(top, rows, sheet=sheet_title, inherit_from_before=top > 1),
            self.update(
                region.with_box(Box(c1=left, r1=top, c2=left + cols - 1, r2=top + rows - 1)),
                matrix,
                value_input_option=value_input_option,
                major_dimension=major_dimension,
            ),
        ]
        if remove_from_bottom:
            queued.append(self.delete_rows(current_rows + 1, rows, sheet=sheet_title))
        return queued

    # -- queue management ----------------------------------------------------

    def merge(self, other: "Batch") -> "Batch":
        """Move ``other``'s operations to the end of this batch, in order.

        Raises:
            ValueError: If ``other`` is bound to a different grid handle
            UnsupportedOperationError: If this batch is in single-call mode
                and ``other`` holds reads
        """
        if other.handle is not self.handle:
            raise ValueError("Cannot merge batches bound to different grid handles")
        if self.mode is ExecutionMode.SINGLE_CALL and any(
            op.kind is OpKind.READ for op in other._operations
        ):
            raise UnsupportedOperationError("Reads cannot be committed in single-call mode")
        self._operations.extend(other._operations)
        for title, delta in other._row_delta.items():
            self._track_rows(title, delta)
        other.discard()
        return self

    def discard(self) -> None:
        """Drop every queued operation without sending anything."""
        self._operations.clear()
        self._row_delta.clear()

    def explain(self) -> str:
        """Human-readable summary of the calls ``commit()`` would make."""
        return explain(self._plan())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "operations": [op.to_dict() for op in self._operations],
        }

    def commit(self, clear: Optional[bool] = None) -> List[Dict[str, Any]]:
        """Send every queued operation.

        Args:
            clear: Empty the queue afterwards; defaults to
                ``config.clear_after_commit``

        Returns:
            One normalized response per flush, in flush order

        Raises:
            UnsupportedOperationError: If a read reached a single-call batch
            gspread.exceptions.APIError: Propagated unchanged. Operations of
                groups flushed before the failure are dropped from the queue;
                the failing group and everything after it stay queued, so a
                later ``commit()`` resumes from there.
        """
        clear = self.config.clear_after_commit if clear is None else clear
        if not self._operations:
            logger.debug("Nothing to commit")
            return []

        operations = list(self._operations)
        flushed = 0

        def on_flush(group: Group, response: Dict[str, Any]) -> None:
            nonlocal flushed
            flushed += len(group.operations)

        logger.info("Committing %d operation(s) in %s mode", len(operations), self.mode.value)
        try:
            responses = self._executor().execute(operations, on_flush=on_flush)
        except Exception:
            if flushed:
                logger.warning(
                    "Commit failed after %d of %d operation(s); keeping the rest queued",
                    flushed, len(operations),
                )
                del self._operations[:flushed]
                self._row_delta = self._pending_row_delta()
                self.handle.refresh()
            raise

        logger.info("Committed %d operation(s) in %d flush(es)", len(operations), len(responses))
        if any(op.kind is OpKind.STRUCTURAL for op in operations):
            self.handle.refresh()
        if clear:
            self.discard()
        return responses

    # -- internals -----------------------------------------------------------

    def _executor(self) -> Executor:
        config = self.config
        if config.mode is ExecutionMode.DIRECT_APPLY:
            return LocalExecutor(self.handle, config.patterns)
        if config.mode is ExecutionMode.SINGLE_CALL:
            return CombinedExecutor(self.handle, config.middleware, config.patterns)
        return SheetsExecutor(self.handle, config.middleware, config.patterns, config.rate_limit_delay)

    def _plan(self) -> List[Group]:
        if self.mode is ExecutionMode.SINGLE_CALL:
            return [Group(kind=None, operations=list(self._operations))] if self._operations else []
        return group_operations(self._operations)

    def _enqueue(self, op: Operation) -> Operation:
        self._operations.append(op)
        logger.debug("Queued %s on %s", op.kind.value, op.region.a1)
        return op

    def _sheet(self, name: Optional[str]) -> SheetLike:
        return lookup_sheet(self.handle, name)

    def _track_rows(self, sheet_title: str, delta: int) -> None:
        self._row_delta[sheet_title] = self._row_delta.get(sheet_title, 0) + delta

    def _pending_row_delta(self) -> Dict[str, int]:
        pending: Dict[str, int] = {}
        for op in self._operations:
            if op.kind is not OpKind.STRUCTURAL:
                continue
            if op.action is StructuralAction.INSERT_ROWS:
                pending[op.region.sheet_title] = pending.get(op.region.sheet_title, 0) + op.region.box.height
            elif op.action is StructuralAction.DELETE_ROWS:
                pending[op.region.sheet_title] = pending.get(op.region.sheet_title, 0) - op.region.box.height
        return pending

    def _fit(self, region: Region, rows: int, cols: int, auto_resize: bool, allow_mismatch: bool) -> Region:
        if auto_resize:
            return region.with_box(region.box.resized(rows, cols))
        if allow_mismatch:
            return region
        box = region.box
        if (box.height is not None and box.height != rows) or (box.width is not None and box.width != cols):
            raise ShapeMismatchError(
                f"Values of shape {rows}x{cols} do not fit {region.a1} "
                f"({box.height or 'all'} rows x {box.width or 'all'} columns); "
                "pass auto_resize=True or allow_mismatch=True"
            )
        return region

    @staticmethod
    def _rows_box(start_row: int, count: int) -> Box:
        if isinstance(start_row, bool) or start_row < 1:
            raise ValueError(f"Row must be a positive index, got {start_row!r}")
        if count < 1:
            raise ValueError(f"Count must be at least 1, got {count!r}")
        return Box(c1=1, r1=start_row, c2=None, r2=start_row + count - 1)

    @staticmethod
    def _columns_box(start_column: Union[str, int], count: int) -> Box:
        start = _column_index(start_column)
        if count < 1:
            raise ValueError(f"Count must be at least 1, got {count!r}")
        return Box(c1=start, r1=1, c2=start + count - 1, r2=None)

    def _range_change(self, address: Address, shift: str, action: StructuralAction) -> StructuralChange:
        if shift not in _DIMENSIONS:
            raise ValueError(f"Invalid shift dimension: {shift!r}")
        region = resolve_region(address, self.handle)
        return self._enqueue(StructuralChange(region=region, action=action, shift_dimension=shift))
