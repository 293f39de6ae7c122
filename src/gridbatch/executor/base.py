"""
Abstract executor interface for batch commit strategies.

The Executor protocol defines the contract that every strategy must satisfy:
execute a queued operation list and return one API-shaped response per flush.
Concrete implementations are SheetsExecutor (grouped calls), CombinedExecutor
(one batchUpdate call) and LocalExecutor (direct apply to a MemoryGrid).
"""

from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from gridbatch.executor.plan import Group
from gridbatch.spreadsheet.operations import Operation

FlushCallback = Callable[[Group, Dict[str, Any]], None]


class Executor(Protocol):
    """Protocol for commit strategies."""

    def execute(
        self,
        operations: Sequence[Operation],
        on_flush: Optional[FlushCallback] = None,
    ) -> List[Dict[str, Any]]:
        """Execute operations in order.

        Args:
            operations: Queued operations in enqueue order
            on_flush: Called with each group and its response right after
                the group's call succeeds. Batch uses this to know how far
                a failed commit got.

        Returns:
            One normalized response per flush, in flush order
        """
        ...
