"""
Sheets API request builders.

Translate queued operations into the exact envelopes of the Google Sheets v4
API: elementary ``spreadsheets.batchUpdate`` requests (``updateCells``,
``appendCells``, ``insertDimension``, ``deleteDimension``, ``insertRange``,
``deleteRange``) and the bodies/parameters of the values endpoints
(``values.batchUpdate``, ``values.batchClear``, ``values.batchGet``,
``values.append``).
"""

from typing import Any, Dict, List, Sequence, Tuple

from gridbatch.exceptions import UnsupportedOperationError
from gridbatch.spreadsheet.model import Box
from gridbatch.spreadsheet.operations import (
    AppendValues,
    ClearValues,
    Operation,
    ReadValues,
    StructuralAction,
    StructuralChange,
    UpdateValues,
)
from gridbatch.spreadsheet.values import (
    DEFAULT_PATTERNS,
    NUMBER_FORMAT_FIELDS,
    NumberFormatPatterns,
    VALUE_FIELDS,
    encode_rows,
    encode_values,
    number_formats,
    to_row_major,
)


# -- spreadsheets.batchUpdate requests -------------------------------------

def dimension_range(op: StructuralChange) -> Dict[str, Any]:
    """``DimensionRange`` for a row or column structural change."""
    box = op.region.box
    if op.action in (StructuralAction.INSERT_ROWS, StructuralAction.DELETE_ROWS):
        return {
            "sheetId": op.region.sheet_id,
            "dimension": "ROWS",
            "startIndex": box.r1 - 1,
            "endIndex": box.r2,
        }
    return {
        "sheetId": op.region.sheet_id,
        "dimension": "COLUMNS",
        "startIndex": box.c1 - 1,
        "endIndex": box.c2,
    }


def structural_request(op: StructuralChange) -> Dict[str, Any]:
    """Build the batchUpdate request for a structural change."""
    if op.action in (StructuralAction.INSERT_ROWS, StructuralAction.INSERT_COLUMNS):
        return {
            "insertDimension": {
                "range": dimension_range(op),
                "inheritFromBefore": op.inherit_from_before,
            }
        }
    if op.action in (StructuralAction.DELETE_ROWS, StructuralAction.DELETE_COLUMNS):
        return {"deleteDimension": {"range": dimension_range(op)}}
    if op.action is StructuralAction.INSERT_RANGE:
        return {
            "insertRange": {
                "range": op.region.grid_range().to_dict(),
                "shiftDimension": op.shift_dimension,
            }
        }
    return {
        "deleteRange": {
            "range": op.region.grid_range().to_dict(),
            "shiftDimension": op.shift_dimension,
        }
    }


def update_cells_request(
    op: UpdateValues,
    patterns: NumberFormatPatterns = DEFAULT_PATTERNS,
) -> Dict[str, Any]:
    """``updateCells`` request writing ``op.values`` from the region's top-left."""
    rows, fields = encode_rows(to_row_major(op.values, op.options.major_dimension), patterns)
    box = op.region.box
    return {
        "updateCells": {
            "start": {
                "sheetId": op.region.sheet_id,
                "rowIndex": box.r1 - 1,
                "columnIndex": box.c1 - 1,
            },
            "rows": rows,
            "fields": fields,
        }
    }


def clear_request(op: ClearValues) -> Dict[str, Any]:
    """``updateCells`` request with no rows: clears values, keeps formats."""
    return {
        "updateCells": {
            "range": op.region.grid_range().to_dict(),
            "fields": VALUE_FIELDS,
        }
    }


def append_cells_request(
    op: AppendValues,
    patterns: NumberFormatPatterns = DEFAULT_PATTERNS,
) -> Dict[str, Any]:
    """``appendCells`` request (appends after the sheet's last row with data).

    Only the single-call strategy uses this: a batchUpdate has no request
    that appends to a range's table, so the target's columns are not kept.
    """
    rows, fields = encode_rows(to_row_major(op.values, op.options.major_dimension), patterns)
    return {
        "appendCells": {
            "sheetId": op.region.sheet_id,
            "rows": rows,
            "fields": fields,
        }
    }


def append_format_requests(
    op: AppendValues,
    written: Box,
    patterns: NumberFormatPatterns = DEFAULT_PATTERNS,
) -> List[Dict[str, Any]]:
    """``repeatCell`` requests giving appended date-like cells their number format.

    ``values.append`` writes dates as bare serial numbers; these requests
    format exactly the cells that need it, relative to ``written`` (the
    ``updatedRange`` the append reported).
    """
    formats = number_formats(to_row_major(op.values, op.options.major_dimension), patterns) or []
    requests = []
    for i, row in enumerate(formats):
        for j, fmt in enumerate(row):
            if fmt is None:
                continue
            cell = Box(c1=written.c1 + j, r1=written.r1 + i, c2=written.c1 + j, r2=written.r1 + i)
            requests.append({
                "repeatCell": {
                    "range": cell.to_grid_range(op.region.sheet_id).to_dict(),
                    "cell": {"userEnteredFormat": {"numberFormat": fmt}},
                    "fields": NUMBER_FORMAT_FIELDS,
                }
            })
    return requests


def batch_update_requests(
    operations: Sequence[Operation],
    patterns: NumberFormatPatterns = DEFAULT_PATTERNS,
) -> List[Dict[str, Any]]:
    """Translate operations to one ordered list of elementary requests.

    Raises:
        UnsupportedOperationError: If any operation is a read, which a
            batchUpdate request cannot express
    """
    requests: List[Dict[str, Any]] = []
    for op in operations:
        if isinstance(op, UpdateValues):
            requests.append(update_cells_request(op, patterns))
        elif isinstance(op, ClearValues):
            requests.append(clear_request(op))
        elif isinstance(op, AppendValues):
            requests.append(append_cells_request(op, patterns))
        elif isinstance(op, StructuralChange):
            requests.append(structural_request(op))
        elif isinstance(op, ReadValues):
            raise UnsupportedOperationError(
                f"Cannot read {op.region.a1} in a single combined batchUpdate call"
            )
        else:
            raise TypeError(f"Unknown operation type: {type(op).__name__}")
    return requests


# -- values endpoints ----------------------------------------------------------

def values_update_body(operations: Sequence[UpdateValues]) -> Dict[str, Any]:
    """Body of ``values.batchUpdate`` for a group of option-compatible updates."""
    options = operations[0].options
    body: Dict[str, Any] = {
        "valueInputOption": options.value_input_option,
        "data": [
            {
                "range": op.region.a1,
                "majorDimension": op.options.major_dimension,
                "values": encode_values(op.values),
            }
            for op in operations
        ],
        "includeValuesInResponse": options.include_values_in_response,
    }
    if options.response_value_render_option:
        body["responseValueRenderOption"] = options.response_value_render_option
    if options.response_date_time_render_option:
        body["responseDateTimeRenderOption"] = options.response_date_time_render_option
    return body


def values_clear_body(operations: Sequence[ClearValues]) -> Dict[str, Any]:
    """Body of ``values.batchClear``."""
    return {"ranges": [op.region.a1 for op in operations]}


def values_get_args(operations: Sequence[ReadValues]) -> Tuple[List[str], Dict[str, str]]:
    """``(ranges, params)`` for ``values.batchGet``."""
    return [op.region.a1 for op in operations], operations[0].options.to_params()


def values_append_args(op: AppendValues) -> Tuple[str, Dict[str, Any], Dict[str, Any]]:
    """``(range, params, body)`` for ``values.append``."""
    params: Dict[str, Any] = {
        "valueInputOption": op.options.value_input_option,
        "insertDataOption": op.insert_data_option,
        "includeValuesInResponse": op.options.include_values_in_response,
    }
    if op.options.response_value_render_option:
        params["responseValueRenderOption"] = op.options.response_value_render_option
    if op.options.response_date_time_render_option:
        params["responseDateTimeRenderOption"] = op.options.response_date_time_render_option
    body = {
        "majorDimension": op.options.major_dimension,
        "values": encode_values(op.values),
    }
    return op.region.a1, params, body
