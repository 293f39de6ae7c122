"""
Exception classes for gridbatch.

Every error in this module is raised synchronously at the call that detects
it (parsing, resolving or enqueueing), never deferred to commit. Transport
failures from the Google Sheets API are not wrapped: ``gspread.exceptions.APIError``
propagates to the caller of ``Batch.commit()`` unchanged.
"""


class GridBatchError(Exception):
    """Base class for all gridbatch errors."""
    pass


class AddressSyntaxError(GridBatchError, ValueError):
    """Raised when text matches none of the A1 address grammars.

    Examples:
        - ``"A0"`` (row numbers start at 1)
        - ``"A1:B"`` (mixed finite/open corners are not a recognized form)
        - ``"Sheet1!"`` (qualifier without an address)
    """
    pass


class SheetNotFoundError(GridBatchError, LookupError):
    """Raised when a sheet qualifier names a sheet the grid does not have."""

    def __init__(self, sheet_name: str) -> None:
        super().__init__(f"Sheet not found: {sheet_name!r}")
        self.sheet_name = sheet_name


class ShapeMismatchError(GridBatchError):
    """Raised when a value matrix does not fit its target region.

    Pass ``auto_resize=True`` to size the target from the payload, or
    ``allow_mismatch=True`` to write from the top-left corner regardless.
    """
    pass


class EmptyPayloadError(GridBatchError):
    """Raised when a write or append is given no values (or an empty row)."""
    pass


class UnsupportedOperationError(GridBatchError):
    """Raised when an operation has no representation in the selected strategy.

    The single-combined-call strategy submits one ``spreadsheets.batchUpdate``
    request, which has no way to return cell values, so read operations are
    rejected instead of being silently dropped.
    """
    pass
