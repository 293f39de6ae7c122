"""
A1 address algebra module.

This module provides the sheet-independent pieces: column letter codecs, the
Box value type with its parser/composer, geometric relations between boxes,
cell value encoding, and the queued operation descriptors.
"""

from gridbatch.spreadsheet.columns import column_range, index_to_letters, letters_to_index
from gridbatch.spreadsheet.geometry import Relation, RelationMatch, find_matches, relate
from gridbatch.spreadsheet.model import (
    Box,
    GridRange,
    Region,
    RegionList,
    compose_box,
    parse_box,
    quote_sheet_name,
    split_sheet_qualifier,
)
from gridbatch.spreadsheet.operations import (
    AppendValues,
    ClearValues,
    Operation,
    OpKind,
    ReadOptions,
    ReadValues,
    StructuralAction,
    StructuralChange,
    UpdateValues,
    WriteOptions,
)

__all__ = [
    "letters_to_index",
    "index_to_letters",
    "column_range",
    "Box",
    "GridRange",
    "Region",
    "RegionList",
    "parse_box",
    "compose_box",
    "quote_sheet_name",
    "split_sheet_qualifier",
    "Relation",
    "RelationMatch",
    "relate",
    "find_matches",
    "OpKind",
    "StructuralAction",
    "WriteOptions",
    "ReadOptions",
    "UpdateValues",
    "ClearValues",
    "AppendValues",
    "ReadValues",
    "StructuralChange",
    "Operation",
]
