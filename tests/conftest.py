"""Shared pytest configuration and fixtures for gridbatch tests."""

from unittest.mock import Mock

import gspread
import pytest
from gspread.exceptions import WorksheetNotFound

from gridbatch.grid.handle import SpreadsheetHandle
from gridbatch.grid.memory import MemoryGrid

from tests.helpers.sheets import make_worksheet


def pytest_addoption(parser):
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Include tests marked @pytest.mark.slow (e.g. live Google Sheets)",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: marks tests as slow (skipped unless --run-slow)")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-slow"):
        return
    skip = pytest.mark.skip(reason="slow test, pass --run-slow to include")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip)


@pytest.fixture
def worksheets():
    return {
        "Log": make_worksheet("Log", 0, rows=100, cols=5),
        "My Data": make_worksheet("My Data", 7, rows=5, cols=3),
    }


@pytest.fixture
def spreadsheet(worksheets):
    """A mocked ``gspread.Spreadsheet`` whose first sheet is ``Log``."""
    mock_spreadsheet = Mock(spec=gspread.Spreadsheet)
    mock_spreadsheet.id = "sheet-123"
    mock_spreadsheet.sheet1 = worksheets["Log"]

    def worksheet(name):
        if name not in worksheets:
            raise WorksheetNotFound(name)
        return worksheets[name]

    mock_spreadsheet.worksheet.side_effect = worksheet
    mock_spreadsheet.values_batch_update.return_value = {}
    mock_spreadsheet.values_batch_clear.return_value = {}
    mock_spreadsheet.values_batch_get.return_value = {}
    mock_spreadsheet.values_append.return_value = {}
    mock_spreadsheet.batch_update.return_value = {}
    return mock_spreadsheet


@pytest.fixture
def handle(spreadsheet):
    return SpreadsheetHandle(spreadsheet)


@pytest.fixture
def grid():
    """An in-memory grid with a 10x4 ``Log`` sheet (active) and a 5x3 ``My Data`` sheet."""
    memory_grid = MemoryGrid("memory-1")
    memory_grid.add_sheet("Log", rows=10, cols=4)
    memory_grid.add_sheet("My Data", rows=5, cols=3)
    return memory_grid
