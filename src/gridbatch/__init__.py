"""
gridbatch - Batched reads and writes against Google Sheets.

This package lets several independent producers queue value writes, clears,
appends, reads and structural changes against one spreadsheet, then commits
them with a minimal number of API calls while keeping their order.

Usage:
    >>> import gspread
    >>> from gridbatch import Batch, open_spreadsheet
    >>> handle = open_spreadsheet(gspread.service_account(), "<spreadsheet id>")
    >>> batch = Batch(handle)
    >>> batch.update("Config!B2", [["ready"]])
    >>> batch.append("Log!A:C", [["2024-01-01", "start", 1]])
    >>> batch.commit()

Key components:
- Box / parse_box / compose_box: A1 address algebra
- relate: Geometric relations between addresses
- Batch: Operation queue committed through an executor
- SpreadsheetHandle / MemoryGrid: Grids addresses resolve against
"""

from .batch import Batch
from .config import BatchConfig, ExecutionMode
from .exceptions import *
from .executor import log_timing, retrying, value_range_to_frame
from .grid import MemoryGrid, SpreadsheetHandle, ensure_sheet_qualifier, extend, open_spreadsheet, resolve
from .spreadsheet import (
    Box,
    Region,
    RegionList,
    Relation,
    column_range,
    compose_box,
    index_to_letters,
    letters_to_index,
    parse_box,
    relate,
)

# Version
__version__ = "0.1.0"

__all__ = [
    "Batch",
    "BatchConfig",
    "ExecutionMode",
    "Box",
    "Region",
    "RegionList",
    "Relation",
    "parse_box",
    "compose_box",
    "letters_to_index",
    "index_to_letters",
    "column_range",
    "relate",
    "resolve",
    "extend",
    "ensure_sheet_qualifier",
    "SpreadsheetHandle",
    "MemoryGrid",
    "open_spreadsheet",
    "log_timing",
    "retrying",
    "value_range_to_frame",
    "GridBatchError",
    "AddressSyntaxError",
    "SheetNotFoundError",
    "ShapeMismatchError",
    "EmptyPayloadError",
    "UnsupportedOperationError",
]
