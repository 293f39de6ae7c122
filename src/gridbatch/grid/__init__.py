"""
Grid handles and region resolution.

``SpreadsheetHandle`` wraps a live ``gspread.Spreadsheet``; ``MemoryGrid``
is the in-memory equivalent. The resolver binds address text to a sheet of
either.
"""

from gridbatch.grid.handle import GridHandle, SheetLike, SpreadsheetHandle, open_spreadsheet
from gridbatch.grid.memory import MemoryGrid, MemorySheet
from gridbatch.grid.resolver import ensure_sheet_qualifier, extend, resolve, resolve_region

__all__ = [
    "GridHandle",
    "SheetLike",
    "SpreadsheetHandle",
    "open_spreadsheet",
    "MemoryGrid",
    "MemorySheet",
    "resolve",
    "resolve_region",
    "ensure_sheet_qualifier",
    "extend",
]
