"""
Tests for BatchConfig.
"""

import pytest

from gridbatch.config import BatchConfig, ExecutionMode
from gridbatch.executor.middleware import log_timing
from gridbatch.spreadsheet.values import NumberFormatPatterns


class TestBatchConfig:
    """Test suite for BatchConfig."""

    def test_defaults(self):
        config = BatchConfig()
        assert config.mode is ExecutionMode.GROUPED_CALLS
        assert config.clear_after_commit
        assert config.value_input_option == "USER_ENTERED"
        assert config.insert_data_option == "INSERT_ROWS"
        assert config.middleware == []

    def test_mode_from_string(self):
        assert BatchConfig(mode="direct_apply").mode is ExecutionMode.DIRECT_APPLY

    def test_invalid_mode(self):
        with pytest.raises(ValueError):
            BatchConfig(mode="eventually")

    @pytest.mark.parametrize("field, value", [
        ("value_input_option", "PARSED"),
        ("insert_data_option", "PREPEND"),
    ])
    def test_invalid_options(self, field, value):
        with pytest.raises(ValueError, match=field):
            BatchConfig(**{field: value})

    def test_patterns(self):
        config = BatchConfig(date_pattern="dd/mm/yyyy")
        assert config.patterns == NumberFormatPatterns(date="dd/mm/yyyy")

    def test_from_dict(self):
        config = BatchConfig.from_dict({
            "mode": "single_call",
            "value_input_option": "RAW",
            "rate_limit_delay": 0.25,
        })
        assert config.mode is ExecutionMode.SINGLE_CALL
        assert config.value_input_option == "RAW"
        assert config.rate_limit_delay == 0.25

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ValueError, match="retries"):
            BatchConfig.from_dict({"retries": 3})

    def test_to_dict_round_trip(self):
        config = BatchConfig(mode=ExecutionMode.SINGLE_CALL, clear_after_commit=False,
                             middleware=[log_timing])
        data = config.to_dict()
        assert "middleware" not in data
        assert BatchConfig.from_dict(data) == BatchConfig(mode=ExecutionMode.SINGLE_CALL,
                                                          clear_after_commit=False)
