"""
Grouped-calls executor for the Google Sheets API.

This module provides the SheetsExecutor class, which commits a queued
operation list with as few API calls as possible without reordering:
- Consecutive compatible operations are grouped into one call
- Each append is its own call (plus one formatting call when it holds dates)
- Structural changes are sent together as one ``batchUpdate``
- Every response is normalized to the shapes in ``executor.responses``
"""

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from gridbatch.executor.base import FlushCallback
from gridbatch.executor.middleware import Middleware, run_with_middleware
from gridbatch.executor.plan import Group, group_operations
from gridbatch.executor.requests import (
    append_format_requests,
    structural_request,
    update_cells_request,
    values_append_args,
    values_clear_body,
    values_get_args,
    values_update_body,
)
from gridbatch.executor.responses import (
    normalize_append,
    normalize_batch_get,
    normalize_clear,
    normalize_structural,
    normalize_update,
    synthesize_update,
)
from gridbatch.grid.handle import SpreadsheetHandle
from gridbatch.spreadsheet.model import parse_box
from gridbatch.spreadsheet.operations import OpKind, Operation
from gridbatch.spreadsheet.values import (
    DEFAULT_PATTERNS,
    NumberFormatPatterns,
    needs_number_format,
)

logger = logging.getLogger(__name__)


def _needs_formats(values) -> bool:
    return any(needs_number_format(v) for row in values for v in row)


class SheetsExecutor:
    """Commits operations as one API call per group.

    Updates go through ``values.batchUpdate``. When any value in an update
    group needs a number format (dates and times), the group is sent instead
    as one ``spreadsheets.batchUpdate`` of ``updateCells`` requests so the
    format travels with the value; it is still a single call. Appends always
    go through ``values.append`` so the target range's table is respected;
    date-like cells are then formatted in place by a follow-up
    ``batchUpdate`` on the reported ``updatedRange``.

    Attributes:
        handle: Handle whose ``client`` (a ``gspread.Spreadsheet``) makes the calls
        middleware: Wrappers applied to every call
        patterns: Number-format patterns for date-like values
        rate_limit_delay: Pause between flushes in seconds (default: 0)
    """

    def __init__(
        self,
        handle: SpreadsheetHandle,
        middleware: Sequence[Middleware] = (),
        patterns: NumberFormatPatterns = DEFAULT_PATTERNS,
        rate_limit_delay: float = 0.0,
    ) -> None:
        self.handle = handle
        self.middleware = list(middleware)
        self.patterns = patterns
        self.rate_limit_delay = rate_limit_delay

    def execute(
        self,
        operations: Sequence[Operation],
        on_flush: Optional[FlushCallback] = None,
    ) -> List[Dict[str, Any]]:
        """Flush every group in order.

        Raises:
            gspread.exceptions.APIError: Propagated unchanged; groups flushed
                before the failing one stay applied
        """
        results: List[Dict[str, Any]] = []
        groups = group_operations(operations)
        for i, group in enumerate(groups):
            if i and self.rate_limit_delay > 0:
                time.sleep(self.rate_limit_delay)
            response = self._flush(group)
            logger.debug("Flushed %s group of %d operation(s)", group.label, len(group.operations))
            results.append(response)
            if on_flush is not None:
                on_flush(group, response)
        return results

    def _call(self, call, description: str) -> Any:
        return run_with_middleware(call, description, self.middleware)

    def _flush(self, group: Group) -> Dict[str, Any]:
        if group.kind is OpKind.UPDATE:
            return self._flush_updates(group)
        if group.kind is OpKind.CLEAR:
            return self._flush_clears(group)
        if group.kind is OpKind.READ:
            return self._flush_reads(group)
        if group.kind is OpKind.APPEND:
            return self._flush_append(group)
        return self._flush_structural(group)

    def _flush_updates(self, group: Group) -> Dict[str, Any]:
        client = self.handle.client
        spreadsheet_id = self.handle.spreadsheet_id
        ops = group.operations

        if any(_needs_formats(op.values) for op in ops):
            requests = [update_cells_request(op, self.patterns) for op in ops]
            self._call(
                lambda: client.batch_update({"requests": requests}),
                f"write {len(ops)} range(s) with number formats",
            )
            return synthesize_update(spreadsheet_id, ops)

        body = values_update_body(ops)
        raw = self._call(
            lambda: client.values_batch_update(body),
            f"batch update {len(ops)} value range(s)",
        )
        return normalize_update(raw, spreadsheet_id, ops)

    def _flush_clears(self, group: Group) -> Dict[str, Any]:
        client = self.handle.client
        body = values_clear_body(group.operations)
        raw = self._call(
            lambda: client.values_batch_clear(body=body),
            f"batch clear {len(group.operations)} range(s)",
        )
        return normalize_clear(raw, self.handle.spreadsheet_id, group.operations)

    def _flush_reads(self, group: Group) -> Dict[str, Any]:
        client = self.handle.client
        ranges, params = values_get_args(group.operations)
        raw = self._call(
            lambda: client.values_batch_get(ranges, params=params),
            f"batch get {len(ranges)} range(s)",
        )
        return normalize_batch_get(raw, self.handle.spreadsheet_id, group.operations)

    def _flush_append(self, group: Group) -> Dict[str, Any]:
        client = self.handle.client
        op = group.operations[0]

        range_name, params, body = values_append_args(op)
        raw = self._call(
            lambda: client.values_append(range_name, params, body),
            f"append {len(op.values)} row(s) to {range_name}",
        )
        if _needs_formats(op.values):
            self._format_appended(op, raw)
        return normalize_append(raw, self.handle.spreadsheet_id, op)

    def _format_appended(self, op, raw: Optional[Dict[str, Any]]) -> None:
        updated_range = ((raw or {}).get("updates") or {}).get("updatedRange")
        if not updated_range:
            logger.warning("Append to %s reported no updatedRange; dates left unformatted", op.region.a1)
            return
        client = self.handle.client
        requests = append_format_requests(op, parse_box(updated_range), self.patterns)
        self._call(
            lambda: client.batch_update({"requests": requests}),
            f"format {len(requests)} appended date cell(s) in {updated_range}",
        )

    def _flush_structural(self, group: Group) -> Dict[str, Any]:
        client = self.handle.client
        requests = [structural_request(op) for op in group.operations]
        raw = self._call(
            lambda: client.batch_update({"requests": requests}),
            f"apply {len(requests)} structural change(s)",
        )
        return normalize_structural(raw, self.handle.spreadsheet_id, len(requests))
