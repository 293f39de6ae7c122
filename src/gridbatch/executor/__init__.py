"""
Executor module for gridbatch.

This module provides the commit strategies. ``SheetsExecutor`` sends one
Google Sheets API call per group of compatible operations,
``CombinedExecutor`` sends the whole queue as one ``batchUpdate``, and
``LocalExecutor`` applies it to a ``MemoryGrid`` (no network required).
"""

from gridbatch.executor.base import Executor
from gridbatch.executor.combined_executor import CombinedExecutor
from gridbatch.executor.local_executor import LocalExecutor
from gridbatch.executor.middleware import is_transient, log_timing, retrying, run_with_middleware
from gridbatch.executor.plan import Group, explain, group_operations
from gridbatch.executor.responses import value_range_to_frame
from gridbatch.executor.sheets_executor import SheetsExecutor

__all__ = [
    "Executor",
    "SheetsExecutor",
    "CombinedExecutor",
    "LocalExecutor",
    "Group",
    "group_operations",
    "explain",
    "run_with_middleware",
    "log_timing",
    "retrying",
    "is_transient",
    "value_range_to_frame",
]
