"""
Response normalization.

Every executor returns one response per flush, shaped like the Sheets API
response of the call the flush would make in grouped-calls mode:

- updates     -> ``BatchUpdateValuesResponse`` (``totalUpdated*``, ``responses``)
- clears      -> ``BatchClearValuesResponse`` (``clearedRanges``)
- reads       -> ``BatchGetValuesResponse`` (``valueRanges``)
- appends     -> ``AppendValuesResponse`` (``tableRange``, ``updates``)
- structural  -> ``BatchUpdateSpreadsheetResponse`` (``replies``)

The API omits empty fields (a read of empty cells has no ``values`` key, a
request without a reply yields ``{}``), so the helpers here fill in every key
callers may rely on. Responses synthesized locally (direct-apply, or updates
sent as ``updateCells``) are built with the same helpers.
"""

from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from gridbatch.spreadsheet.model import Box, quote_sheet_name
from gridbatch.spreadsheet.operations import (
    AppendValues,
    ClearValues,
    ReadValues,
    UpdateValues,
)
from gridbatch.spreadsheet.values import encode_values, matrix_shape


def qualified_a1(sheet_title: str, box: Box) -> str:
    return f"{quote_sheet_name(sheet_title)}!{box.with_sheet(None).a1}"


def update_values_response(
    spreadsheet_id: str,
    sheet_title: str,
    box: Box,
    values: Optional[List[List[Any]]] = None,
    major_dimension: str = "ROWS",
) -> Dict[str, Any]:
    """One ``UpdateValuesResponse`` entry for a write covering ``box``."""
    rows, cols = box.height or 0, box.width or 0
    response: Dict[str, Any] = {
        "spreadsheetId": spreadsheet_id,
        "updatedRange": qualified_a1(sheet_title, box),
        "updatedRows": rows,
        "updatedColumns": cols,
        "updatedCells": rows * cols,
    }
    if values is not None:
        response["updatedData"] = {
            "range": response["updatedRange"],
            "majorDimension": major_dimension,
            "values": values,
        }
    return response


def summarize_updates(spreadsheet_id: str, responses: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Wrap per-range update responses into a ``BatchUpdateValuesResponse``."""
    sheets = {r["updatedRange"].rsplit("!", 1)[0] for r in responses}
    return {
        "spreadsheetId": spreadsheet_id,
        "totalUpdatedRows": sum(r.get("updatedRows", 0) for r in responses),
        "totalUpdatedColumns": max((r.get("updatedColumns", 0) for r in responses), default=0),
        "totalUpdatedCells": sum(r.get("updatedCells", 0) for r in responses),
        "totalUpdatedSheets": len(sheets),
        "responses": responses,
    }


def synthesize_update(spreadsheet_id: str, operations: Sequence[UpdateValues]) -> Dict[str, Any]:
    """Build a ``BatchUpdateValuesResponse`` from the operations themselves."""
    responses = []
    for op in operations:
        rows, cols = matrix_shape(op.values, op.options.major_dimension)
        echo = encode_values(op.values) if op.options.include_values_in_response else None
        responses.append(update_values_response(
            spreadsheet_id,
            op.region.sheet_title,
            op.region.box.resized(rows, cols),
            echo,
            op.options.major_dimension,
        ))
    return summarize_updates(spreadsheet_id, responses)


def normalize_update(
    raw: Optional[Dict[str, Any]],
    spreadsheet_id: str,
    operations: Sequence[UpdateValues],
) -> Dict[str, Any]:
    """Complete a ``values.batchUpdate`` response; API-provided fields win."""
    response = synthesize_update(spreadsheet_id, operations)
    if raw:
        response.update({k: v for k, v in raw.items() if v is not None})
    return response


def normalize_clear(
    raw: Optional[Dict[str, Any]],
    spreadsheet_id: str,
    operations: Sequence[ClearValues],
) -> Dict[str, Any]:
    raw = raw or {}
    return {
        "spreadsheetId": raw.get("spreadsheetId", spreadsheet_id),
        "clearedRanges": list(raw.get("clearedRanges") or [op.region.a1 for op in operations]),
    }


def value_range(range_a1: str, values: List[List[Any]], major_dimension: str = "ROWS") -> Dict[str, Any]:
    return {"range": range_a1, "majorDimension": major_dimension, "values": values}


def normalize_batch_get(
    raw: Optional[Dict[str, Any]],
    spreadsheet_id: str,
    operations: Sequence[ReadValues],
) -> Dict[str, Any]:
    """Complete a ``values.batchGet`` response: one value range per read, each with ``values``."""
    raw = raw or {}
    received = list(raw.get("valueRanges") or [])
    value_ranges = []
    for i, op in enumerate(operations):
        entry = received[i] if i < len(received) else {}
        value_ranges.append(value_range(
            entry.get("range", op.region.a1),
            entry.get("values", []),
            entry.get("majorDimension", op.options.major_dimension),
        ))
    return {
        "spreadsheetId": raw.get("spreadsheetId", spreadsheet_id),
        "valueRanges": value_ranges,
    }


def normalize_append(
    raw: Optional[Dict[str, Any]],
    spreadsheet_id: str,
    op: AppendValues,
) -> Dict[str, Any]:
    """Complete a ``values.append`` response."""
    raw = raw or {}
    updates = dict(raw.get("updates") or {})
    rows, cols = matrix_shape(op.values, op.options.major_dimension)
    updates.setdefault("spreadsheetId", spreadsheet_id)
    updates.setdefault("updatedRange", op.region.a1)
    updates.setdefault("updatedRows", rows)
    updates.setdefault("updatedColumns", cols)
    updates.setdefault("updatedCells", rows * cols)
    response: Dict[str, Any] = {
        "spreadsheetId": raw.get("spreadsheetId", spreadsheet_id),
        "updates": updates,
    }
    if raw.get("tableRange"):
        response["tableRange"] = raw["tableRange"]
    return response


def normalize_structural(
    raw: Optional[Dict[str, Any]],
    spreadsheet_id: str,
    request_count: int,
) -> Dict[str, Any]:
    """Complete a ``spreadsheets.batchUpdate`` response: one reply per request."""
    raw = raw or {}
    replies = list(raw.get("replies") or [])
    replies.extend({} for _ in range(request_count - len(replies)))
    return {
        "spreadsheetId": raw.get("spreadsheetId", spreadsheet_id),
        "replies": replies,
    }


def value_range_to_frame(value_range_: Dict[str, Any], header: bool = True) -> pd.DataFrame:
    """Convert one normalized value range into a DataFrame.

    Short rows (the API drops trailing empty cells) are padded with ``""``.

    Args:
        value_range_: An entry of ``valueRanges`` from a read response
        header: Use the first row as column labels

    Returns:
        pandas DataFrame of the range's values
    """
    values = [list(row) for row in value_range_.get("values", [])]
    if value_range_.get("majorDimension") == "COLUMNS":
        height = max((len(col) for col in values), default=0)
        values = [[col[i] if i < len(col) else "" for col in values] for i in range(height)]
    width = max((len(row) for row in values), default=0)
    values = [row + [""] * (width - len(row)) for row in values]
    if header and values:
        return pd.DataFrame(values[1:], columns=values[0])
    return pd.DataFrame(values)
