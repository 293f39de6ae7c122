"""
Queued operation classes.

This module defines the operations a Batch can queue against a grid:
- UpdateValues: Write a value matrix into a region
- ClearValues: Clear the values of a region
- AppendValues: Append rows after the table found in a region
- ReadValues: Read the values of a region
- StructuralChange: Insert/delete rows, columns or shifted ranges

Operations are plain descriptors. They are created (and validated) by the
Batch producer methods and consumed exactly once by an executor at commit.
Every operation's target is an already-resolved Region.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from gridbatch.spreadsheet.model import Region


class OpKind(Enum):
    """Operation kinds; consecutive operations group only within one kind."""
    UPDATE = "update"
    CLEAR = "clear"
    APPEND = "append"
    READ = "read"
    STRUCTURAL = "structural"


class StructuralAction(Enum):
    """Structural changes, each mapping to one Sheets API request type."""
    INSERT_ROWS = "insert_rows"
    INSERT_COLUMNS = "insert_columns"
    DELETE_ROWS = "delete_rows"
    DELETE_COLUMNS = "delete_columns"
    INSERT_RANGE = "insert_range"
    DELETE_RANGE = "delete_range"


@dataclass(frozen=True)
class WriteOptions:
    """Options shared by writes and appends.

    Only the fields in ``group_key`` must agree for two updates to share a
    ``values.batchUpdate`` call; ``major_dimension`` is set per entry.

    Attributes:
        value_input_option: ``USER_ENTERED`` (parse like typed input) or ``RAW``
        major_dimension: ``ROWS`` or ``COLUMNS`` - orientation of the matrix
        include_values_in_response: Echo written values in the response
        response_value_render_option: Render option for echoed values
        response_date_time_render_option: Date render option for echoed values
    """
    value_input_option: str = "USER_ENTERED"
    major_dimension: str = "ROWS"
    include_values_in_response: bool = False
    response_value_render_option: Optional[str] = None
    response_date_time_render_option: Optional[str] = None

    def group_key(self) -> Tuple[Any, ...]:
        return (
            self.value_input_option,
            self.include_values_in_response,
            self.response_value_render_option,
            self.response_date_time_render_option,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value_input_option": self.value_input_option,
            "major_dimension": self.major_dimension,
            "include_values_in_response": self.include_values_in_response,
            "response_value_render_option": self.response_value_render_option,
            "response_date_time_render_option": self.response_date_time_render_option,
        }


@dataclass(frozen=True)
class ReadOptions:
    """Options for reads; all reads in one ``values.batchGet`` share them."""
    major_dimension: str = "ROWS"
    value_render_option: str = "FORMATTED_VALUE"
    date_time_render_option: str = "SERIAL_NUMBER"

    def group_key(self) -> Tuple[Any, ...]:
        return (self.major_dimension, self.value_render_option, self.date_time_render_option)

    def to_params(self) -> Dict[str, str]:
        """Query parameters for ``values.batchGet``."""
        return {
            "majorDimension": self.major_dimension,
            "valueRenderOption": self.value_render_option,
            "dateTimeRenderOption": self.date_time_render_option,
        }


@dataclass
class UpdateValues:
    """Write a value matrix into a region.

    Attributes:
        region: Target region (already sized to the payload when auto-resized)
        values: Value matrix in ``options.major_dimension`` orientation
        options: Write options
    """
    region: Region
    values: List[List[Any]]
    options: WriteOptions = field(default_factory=WriteOptions)

    kind = OpKind.UPDATE

    def group_key(self) -> Tuple[Any, ...]:
        return self.options.group_key()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "UpdateValues",
            "region": self.region.to_dict(),
            "values": self.values,
            "options": self.options.to_dict(),
        }


@dataclass
class ClearValues:
    """Clear cell values (formats are kept) in a region."""
    region: Region

    kind = OpKind.CLEAR

    def group_key(self) -> Tuple[Any, ...]:
        return ()

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "ClearValues", "region": self.region.to_dict()}


@dataclass
class AppendValues:
    """Append rows after the last row of the table found in a region.

    Where the rows land depends on the grid's contents at call time, so
    appends are never grouped with neighbours.

    Attributes:
        region: Region whose table is extended
        values: Rows (or columns, per ``options.major_dimension``) to append
        options: Write options
        insert_data_option: ``INSERT_ROWS`` or ``OVERWRITE``
    """
    region: Region
    values: List[List[Any]]
    options: WriteOptions = field(default_factory=WriteOptions)
    insert_data_option: str = "INSERT_ROWS"

    kind = OpKind.APPEND

    def group_key(self) -> Tuple[Any, ...]:
        return (id(self),)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "AppendValues",
            "region": self.region.to_dict(),
            "values": self.values,
            "options": self.options.to_dict(),
            "insert_data_option": self.insert_data_option,
        }


@dataclass
class ReadValues:
    """Read the values of a region."""
    region: Region
    options: ReadOptions = field(default_factory=ReadOptions)

    kind = OpKind.READ

    def group_key(self) -> Tuple[Any, ...]:
        return self.options.group_key()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "ReadValues",
            "region": self.region.to_dict(),
            "options": self.options.to_params(),
        }


@dataclass
class StructuralChange:
    """Insert or delete rows, columns, or a range with shifting.

    For row/column actions the region's box is row-only (``5:7``) or
    column-only (``B:C``) and names exactly the rows/columns inserted or
    deleted. For range actions the box is finite and ``shift_dimension``
    says which way neighbouring cells move.

    Attributes:
        region: Affected rows, columns or range
        action: What to do
        shift_dimension: ``ROWS`` or ``COLUMNS`` (range actions only)
        inherit_from_before: Inserted rows/columns copy the format of the
            row/column before them instead of after
    """
    region: Region
    action: StructuralAction
    shift_dimension: Optional[str] = None
    inherit_from_before: bool = False

    kind = OpKind.STRUCTURAL

    def group_key(self) -> Tuple[Any, ...]:
        return ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "StructuralChange",
            "region": self.region.to_dict(),
            "action": self.action.value,
            "shift_dimension": self.shift_dimension,
            "inherit_from_before": self.inherit_from_before,
        }


# Type alias for all operation types
Operation = Union[UpdateValues, ClearValues, AppendValues, ReadValues, StructuralChange]
