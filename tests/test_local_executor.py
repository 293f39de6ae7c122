"""
Tests for the direct-apply executor and response helpers.

LocalExecutor runs entirely in-process against a MemoryGrid, so these tests
check both the grid contents and that responses have the same shape as the
grouped-calls executor's.
"""

from datetime import date

import pandas as pd

from gridbatch.executor.local_executor import LocalExecutor
from gridbatch.executor.responses import normalize_structural, value_range_to_frame
from gridbatch.grid.resolver import resolve
from gridbatch.spreadsheet.operations import (
    AppendValues,
    ClearValues,
    ReadOptions,
    ReadValues,
    StructuralAction,
    StructuralChange,
    UpdateValues,
    WriteOptions,
)


def update(grid, address, values, **options):
    return UpdateValues(region=resolve(address, grid), values=values, options=WriteOptions(**options))


def read(grid, address, **options):
    return ReadValues(region=resolve(address, grid), options=ReadOptions(**options))


class TestLocalExecutor:
    """Test suite for LocalExecutor."""

    def test_update_writes_values(self, grid):
        results = LocalExecutor(grid).execute([update(grid, "A1:B2", [[1, "x"], [None, True]])])

        log = grid["Log"]
        assert log.value("A1") == 1
        assert log.value("B1") == "x"
        assert log.value("A2") is None
        assert log.value("B2") is True
        assert results[0]["totalUpdatedCells"] == 4
        assert results[0]["responses"][0]["updatedRange"] == "Log!A1:B2"

    def test_formula_is_stored_as_text(self, grid):
        LocalExecutor(grid).execute([update(grid, "C1", [["=SUM(A1:A2)"]])])
        assert grid["Log"].value("C1") == "=SUM(A1:A2)"

    def test_columns_major_dimension(self, grid):
        LocalExecutor(grid).execute([update(grid, "A1:A3", [[1, 2, 3]], major_dimension="COLUMNS")])
        assert [grid["Log"].value(f"A{i}") for i in range(1, 4)] == [1, 2, 3]

    def test_formatted_read(self, grid):
        executor = LocalExecutor(grid)
        executor.execute([update(grid, "A1:C1", [[True, 1.0, "x"]])])

        results = executor.execute([read(grid, "A1:D3")])

        value_range = results[0]["valueRanges"][0]
        assert value_range["range"] == "Log!A1:D3"
        assert value_range["values"] == [["TRUE", "1", "x"]]

    def test_unformatted_read(self, grid):
        executor = LocalExecutor(grid)
        executor.execute([update(grid, "A1:B1", [[True, 2.5]])])

        results = executor.execute([read(grid, "A1:B1", value_render_option="UNFORMATTED_VALUE")])

        assert results[0]["valueRanges"][0]["values"] == [[True, 2.5]]

    def test_date_round_trip(self, grid):
        executor = LocalExecutor(grid)
        executor.execute([update(grid, "A1", [[date(2024, 3, 15)]])])

        formatted, raw = executor.execute([
            read(grid, "A1"),
            read(grid, "A1", value_render_option="UNFORMATTED_VALUE"),
        ])

        assert grid["Log"].number_format("A1") == {"type": "DATE", "pattern": "yyyy-mm-dd"}
        assert formatted["valueRanges"][0]["values"] == [["2024-03-15"]]
        assert raw["valueRanges"][0]["values"] == [[45366.0]]

    def test_read_columns(self, grid):
        executor = LocalExecutor(grid)
        executor.execute([update(grid, "A1:B2", [["a", "b"], ["c", "d"]])])

        results = executor.execute([read(grid, "A1:B2", major_dimension="COLUMNS")])

        value_range = results[0]["valueRanges"][0]
        assert value_range["majorDimension"] == "COLUMNS"
        assert value_range["values"] == [["a", "c"], ["b", "d"]]

    def test_clear(self, grid):
        executor = LocalExecutor(grid)
        executor.execute([update(grid, "A1:B1", [[1, 2]])])

        results = executor.execute([ClearValues(region=resolve("A:A", grid))])

        assert grid["Log"].value("A1") is None
        assert grid["Log"].value("B1") == 2
        assert results[0]["clearedRanges"] == ["Log!A1:A10"]

    def test_append(self, grid):
        executor = LocalExecutor(grid)
        executor.execute([update(grid, "A1:B1", [["name", "qty"]])])
        op = AppendValues(region=resolve("A:B", grid), values=[["apple", 3]])

        results = executor.execute([op])

        assert results[0]["tableRange"] == "Log!A1:B1"
        assert results[0]["updates"]["updatedRange"] == "Log!A2:B2"
        assert grid["Log"].value("A2") == "apple"
        assert grid["Log"].row_count == 11

    def test_structural(self, grid):
        executor = LocalExecutor(grid)
        executor.execute([update(grid, "A1:A2", [["first"], ["second"]])])
        ops = [
            StructuralChange(region=resolve("1:1", grid), action=StructuralAction.INSERT_ROWS),
            StructuralChange(region=resolve("B:B", grid), action=StructuralAction.DELETE_COLUMNS),
        ]

        results = executor.execute(ops)

        assert grid["Log"].value("A2") == "first"
        assert grid["Log"].col_count == 3
        assert results[0]["replies"] == [{}, {}]

    def test_groups_flush_in_order(self, grid):
        flushed = []
        ops = [
            update(grid, "A1", [[1]]),
            update(grid, "A2", [[2]]),
            read(grid, "A1:A2", value_render_option="UNFORMATTED_VALUE"),
        ]

        results = LocalExecutor(grid).execute(ops, on_flush=lambda group, response: flushed.append(group.label))

        assert flushed == ["update", "read"]
        assert results[1]["valueRanges"][0]["values"] == [[1], [2]]


class TestResponses:
    """Test suite for response helpers."""

    def test_normalize_structural_keeps_replies(self):
        raw = {"spreadsheetId": "abc", "replies": [{"addSheet": {}}]}
        assert normalize_structural(raw, "abc", 3)["replies"] == [{"addSheet": {}}, {}, {}]

    def test_value_range_to_frame(self):
        frame = value_range_to_frame({
            "range": "Config!A1:B3",
            "majorDimension": "ROWS",
            "values": [["key", "value"], ["mode", "fast"], ["debug"]],
        })
        expected = pd.DataFrame([["mode", "fast"], ["debug", ""]], columns=["key", "value"])
        pd.testing.assert_frame_equal(frame, expected)

    def test_value_range_to_frame_columns_without_header(self):
        frame = value_range_to_frame(
            {"majorDimension": "COLUMNS", "values": [["a", "b"], ["c"]]},
            header=False,
        )
        assert frame.values.tolist() == [["a", "c"], ["b", ""]]

    def test_empty_value_range(self):
        assert value_range_to_frame({"range": "Config!A1"}).empty
