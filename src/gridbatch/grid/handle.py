"""
Grid handle interface and the Google Sheets implementation.

A grid handle is what addresses are resolved against: it knows which sheet
is active, can look sheets up by name, and (for the API-backed strategies)
exposes the remote batch-call capability as ``client``.

``SpreadsheetHandle`` wraps a ``gspread.Spreadsheet``; ``MemoryGrid`` (see
``gridbatch.grid.memory``) is the in-memory equivalent used by the
direct-apply executor.
"""

import logging
from typing import Any, Dict, Optional, Protocol

import gspread
from gspread.exceptions import WorksheetNotFound

from gridbatch.exceptions import SheetNotFoundError

logger = logging.getLogger(__name__)


class SheetLike(Protocol):
    """The sheet attributes the resolver relies on (a ``gspread.Worksheet`` fits)."""
    title: str
    id: int
    row_count: int
    col_count: int


class GridHandle(Protocol):
    """Protocol for grids that addresses can be resolved against."""

    @property
    def spreadsheet_id(self) -> str:
        ...

    def active_sheet(self) -> SheetLike:
        """Sheet used for unqualified addresses."""
        ...

    def sheet_by_name(self, name: str) -> Optional[SheetLike]:
        """Look a sheet up by title, returning None when absent."""
        ...

    def refresh(self) -> None:
        """Drop cached sheet metadata after structural changes."""
        ...


class SpreadsheetHandle:
    """Grid handle over a ``gspread.Spreadsheet``.

    Worksheet lookups are cached; call ``refresh()`` after structural
    changes when up-to-date ``row_count``/``col_count`` values matter.

    Attributes:
        client: The wrapped spreadsheet, used for remote batch calls
    """

    def __init__(self, spreadsheet: gspread.Spreadsheet, active_sheet: Optional[str] = None) -> None:
        """Initialize the handle.

        Args:
            spreadsheet: An open ``gspread.Spreadsheet``
            active_sheet: Title of the sheet unqualified addresses refer to.
                Defaults to the first worksheet.
        """
        self.client = spreadsheet
        self._active_title = active_sheet
        self._worksheets: Dict[str, Any] = {}

    @property
    def spreadsheet_id(self) -> str:
        return self.client.id

    def active_sheet(self) -> SheetLike:
        if self._active_title is None:
            # sheet1 costs a metadata fetch; later lookups go through the cache.
            worksheet = self.client.sheet1
            self._active_title = worksheet.title
            self._worksheets[worksheet.title] = worksheet
            return worksheet
        worksheet = self.sheet_by_name(self._active_title)
        if worksheet is None:
            raise SheetNotFoundError(self._active_title)
        return worksheet

    def sheet_by_name(self, name: str) -> Optional[SheetLike]:
        if name in self._worksheets:
            return self._worksheets[name]
        try:
            worksheet = self.client.worksheet(name)
        except WorksheetNotFound:
            logger.debug("Worksheet %r not found in %s", name, self.client.id)
            return None
        self._worksheets[name] = worksheet
        return worksheet

    def refresh(self) -> None:
        """Forget cached worksheets so the next lookup re-fetches them."""
        self._worksheets.clear()


def open_spreadsheet(gc: gspread.Client, key: str, active_sheet: Optional[str] = None) -> SpreadsheetHandle:
    """Open a spreadsheet by key and wrap it in a handle.

    Args:
        gc: An authenticated gspread client, e.g. from ``gspread.service_account()``
            or ``gspread.oauth()``.
        key: Spreadsheet id (the long id in the spreadsheet URL)
        active_sheet: Optional title of the active sheet

    Returns:
        SpreadsheetHandle for the opened spreadsheet
    """
    return SpreadsheetHandle(gc.open_by_key(key), active_sheet=active_sheet)
