"""
End-to-end correctness tests for gridbatch.

Runs a handful of small batch programs (the kinds of workloads the library
serves: a header-plus-log table, push-down rotation, config cells) and
checks them at three levels:

- Offline call counting against a mocked spreadsheet (always run)
- Direct-apply results on a MemoryGrid (always run)
- Live Google Sheets, compared cell by cell with the MemoryGrid result
  (marked @pytest.mark.slow, skipped by default)

Usage:
    pytest tests/test_correctness.py -v                    # fast tests only
    pytest tests/test_correctness.py -v --run-slow         # all tests
"""

import uuid

import pytest

from gridbatch import Batch, ExecutionMode, MemoryGrid, SpreadsheetHandle
from gridbatch.executor.plan import group_operations

SHEET = "Sheet1"


def header_and_log(batch):
    batch.update("A1:C1", [["event", "source", "count"]])
    batch.append("A:C", [["start", "cli", 1]])
    batch.append("A:C", [["stop", "cli", 2]])


def push_down_rotation(batch):
    batch.update("A1:B1", [["newest", "value"]])
    for i in range(3):
        batch.push_down_insert("A2", [[f"entry {i}", i]])


def config_cells(batch):
    batch.update("A1:B3", [["key", "value"], ["mode", "fast"], ["debug", False]])
    batch.write_cell("B2", "slow")
    batch.clear("A3:B3")
    batch.update("D1:D3", [["x", "y", "z"]], major_dimension="COLUMNS")


def shifted_block(batch):
    batch.update("A1:C3", [[1, 2, 3], [4, 5, 6], [7, 8, 9]])
    batch.insert_region("B2", shift="COLUMNS")
    batch.delete_region("A1:C1", shift="ROWS")
    batch.insert_columns("A")


PROGRAMS = [
    ("header_and_log", header_and_log, "A1:C3"),
    ("push_down_rotation", push_down_rotation, "A1:B4"),
    ("config_cells", config_cells, "A1:D3"),
    ("shifted_block", shifted_block, "A1:E3"),
]
PROGRAM_IDS = [name for name, _, _ in PROGRAMS]


def run_locally(program, read_range):
    grid = MemoryGrid("local")
    grid.add_sheet(SHEET, rows=1000, cols=26)
    batch = Batch(grid, mode=ExecutionMode.DIRECT_APPLY)
    program(batch)
    batch.commit()
    batch.read(read_range, value_render_option="UNFORMATTED_VALUE")
    return batch.commit()[0]["valueRanges"][0]["values"]


class TestOfflineCallCounts:
    """Each program makes exactly one remote call per planned group."""

    @pytest.mark.parametrize("name, program, read_range", PROGRAMS, ids=PROGRAM_IDS)
    def test_one_call_per_group(self, name, program, read_range, handle, spreadsheet):
        batch = Batch(handle)
        program(batch)
        expected = len(group_operations(batch.operations))

        responses = batch.commit()

        calls = (
            spreadsheet.values_batch_update.call_count
            + spreadsheet.values_batch_clear.call_count
            + spreadsheet.values_append.call_count
            + spreadsheet.batch_update.call_count
        )
        assert calls == expected == len(responses)

    @pytest.mark.parametrize("name, program, read_range", PROGRAMS, ids=PROGRAM_IDS)
    def test_single_call_mode(self, name, program, read_range, handle, spreadsheet):
        batch = Batch(handle, mode=ExecutionMode.SINGLE_CALL)
        program(batch)
        batch.commit()
        spreadsheet.batch_update.assert_called_once()


class TestDirectApply:
    """Expected grid contents after each program."""

    def test_header_and_log(self):
        assert run_locally(header_and_log, "A1:C3") == [
            ["event", "source", "count"],
            ["start", "cli", 1],
            ["stop", "cli", 2],
        ]

    def test_push_down_rotation(self):
        assert run_locally(push_down_rotation, "A1:B4") == [
            ["newest", "value"],
            ["entry 2", 2],
            ["entry 1", 1],
            ["entry 0", 0],
        ]

    def test_config_cells(self):
        assert run_locally(config_cells, "A1:D3") == [
            ["key", "value", "", "x"],
            ["mode", "slow", "", "y"],
            ["", "", "", "z"],
        ]

    def test_shifted_block(self):
        assert run_locally(shifted_block, "A1:E3") == [
            ["", 4, "", 5],
            ["", 7, 8, 9, 6],
        ]


@pytest.mark.slow
class TestLiveCorrectness:
    """Run each program on a real spreadsheet and compare with the MemoryGrid."""

    @pytest.fixture(scope="class")
    def gc(self):
        """Session-wide authenticated gspread client."""
        import gspread

        try:
            return gspread.service_account()
        except Exception:
            pass
        try:
            return gspread.oauth()
        except Exception as exc:
            pytest.skip(f"No Google Sheets credentials available: {exc}")

    @pytest.mark.parametrize("name, program, read_range", PROGRAMS, ids=PROGRAM_IDS)
    def test_matches_memory_grid(self, name, program, read_range, gc):
        spreadsheet = gc.create(f"gridbatch_test_{name}_{uuid.uuid4().hex[:8]}")
        try:
            worksheet = spreadsheet.sheet1
            worksheet.update_title(SHEET)
            worksheet.resize(rows=1000, cols=26)

            handle = SpreadsheetHandle(spreadsheet)
            batch = Batch(handle)
            program(batch)
            batch.commit()
            batch.read(read_range, value_render_option="UNFORMATTED_VALUE")
            actual = batch.commit()[0]["valueRanges"][0]["values"]

            assert actual == run_locally(program, read_range)
        finally:
            gc.del_spreadsheet(spreadsheet.id)
