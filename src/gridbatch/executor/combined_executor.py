"""
Single-combined-call executor.

Compiles the whole queue into one ordered list of elementary requests and
submits it as a single ``spreadsheets.batchUpdate``. The Sheets API applies
a batchUpdate atomically, so either every operation lands or none does.
Reads cannot be expressed and are rejected before any call is made.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from gridbatch.executor.base import FlushCallback
from gridbatch.executor.middleware import Middleware, run_with_middleware
from gridbatch.executor.plan import Group
from gridbatch.executor.requests import batch_update_requests
from gridbatch.executor.responses import normalize_structural
from gridbatch.grid.handle import SpreadsheetHandle
from gridbatch.spreadsheet.operations import Operation
from gridbatch.spreadsheet.values import DEFAULT_PATTERNS, NumberFormatPatterns

logger = logging.getLogger(__name__)


class CombinedExecutor:
    """Commits every operation in exactly one ``batchUpdate`` call."""

    def __init__(
        self,
        handle: SpreadsheetHandle,
        middleware: Sequence[Middleware] = (),
        patterns: NumberFormatPatterns = DEFAULT_PATTERNS,
    ) -> None:
        self.handle = handle
        self.middleware = list(middleware)
        self.patterns = patterns

    def compile(self, operations: Sequence[Operation]) -> List[Dict[str, Any]]:
        """Translate operations to batchUpdate requests.

        Raises:
            UnsupportedOperationError: If any operation is a read
        """
        return batch_update_requests(operations, self.patterns)

    def execute(
        self,
        operations: Sequence[Operation],
        on_flush: Optional[FlushCallback] = None,
    ) -> List[Dict[str, Any]]:
        requests = self.compile(operations)
        if not requests:
            return []

        client = self.handle.client
        raw = run_with_middleware(
            lambda: client.batch_update({"requests": requests}),
            f"apply {len(requests)} request(s) in one batchUpdate",
            self.middleware,
        )
        response = normalize_structural(raw, self.handle.spreadsheet_id, len(requests))
        logger.debug("Committed %d request(s) in one call", len(requests))
        if on_flush is not None:
            on_flush(Group(kind=None, operations=list(operations)), response)
        return [response]
