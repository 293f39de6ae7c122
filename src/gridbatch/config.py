"""
Batch configuration.

``BatchConfig`` gathers the defaults a Batch applies to every operation and
the choice of execution strategy. Individual producer calls can still
override the value-input and insert-data options per operation.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Mapping

from gridbatch.executor.middleware import Middleware
from gridbatch.spreadsheet.values import (
    DEFAULT_DATE_PATTERN,
    DEFAULT_DATE_TIME_PATTERN,
    DEFAULT_TIME_PATTERN,
    NumberFormatPatterns,
)


class ExecutionMode(Enum):
    """How a Batch turns its queue into calls at commit."""
    GROUPED_CALLS = "grouped_calls"
    SINGLE_CALL = "single_call"
    DIRECT_APPLY = "direct_apply"


@dataclass
class BatchConfig:
    """Defaults for a Batch.

    Attributes:
        mode: Execution strategy used at commit
        clear_after_commit: Empty the queue after a successful commit
        value_input_option: Default ``USER_ENTERED`` or ``RAW``
        insert_data_option: Default for appends, ``INSERT_ROWS`` or ``OVERWRITE``
        date_pattern: Number format attached to ``date`` values
        date_time_pattern: Number format attached to ``datetime`` values
        time_pattern: Number format attached to ``time`` values
        rate_limit_delay: Pause between grouped calls in seconds
        middleware: Wrappers applied to every remote call, outermost first
    """
    mode: ExecutionMode = ExecutionMode.GROUPED_CALLS
    clear_after_commit: bool = True
    value_input_option: str = "USER_ENTERED"
    insert_data_option: str = "INSERT_ROWS"
    date_pattern: str = DEFAULT_DATE_PATTERN
    date_time_pattern: str = DEFAULT_DATE_TIME_PATTERN
    time_pattern: str = DEFAULT_TIME_PATTERN
    rate_limit_delay: float = 0.0
    middleware: List[Middleware] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.mode = ExecutionMode(self.mode)
        if self.value_input_option not in ("USER_ENTERED", "RAW"):
            raise ValueError(f"Invalid value_input_option: {self.value_input_option!r}")
        if self.insert_data_option not in ("INSERT_ROWS", "OVERWRITE"):
            raise ValueError(f"Invalid insert_data_option: {self.insert_data_option!r}")

    @property
    def patterns(self) -> NumberFormatPatterns:
        return NumberFormatPatterns(
            date=self.date_pattern,
            date_time=self.date_time_pattern,
            time=self.time_pattern,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BatchConfig":
        """Create from a mapping, e.g. a parsed settings file.

        Raises:
            ValueError: If the mapping has keys that are not config fields
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown BatchConfig keys: {sorted(unknown)}")
        return cls(**dict(data))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (middleware omitted)."""
        return {
            "mode": self.mode.value,
            "clear_after_commit": self.clear_after_commit,
            "value_input_option": self.value_input_option,
            "insert_data_option": self.insert_data_option,
            "date_pattern": self.date_pattern,
            "date_time_pattern": self.date_time_pattern,
            "time_pattern": self.time_pattern,
            "rate_limit_delay": self.rate_limit_delay,
        }
