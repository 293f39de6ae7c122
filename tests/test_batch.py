"""
Tests for the Batch operation queue.

Covers synchronous validation at enqueue time, the three execution modes,
merge/commit semantics (including resuming after a failed commit), and
push-down inserts.
"""

import logging

import pytest
from gspread.exceptions import APIError

from gridbatch import Batch, BatchConfig, ExecutionMode
from gridbatch.exceptions import (
    AddressSyntaxError,
    EmptyPayloadError,
    ShapeMismatchError,
    SheetNotFoundError,
    UnsupportedOperationError,
)
from gridbatch.spreadsheet.operations import OpKind, StructuralAction

from tests.helpers.sheets import make_api_error


@pytest.fixture
def local_batch(grid):
    return Batch(grid, mode=ExecutionMode.DIRECT_APPLY)


class TestConstruction:
    """Test suite for Batch construction."""

    def test_defaults(self, handle):
        batch = Batch(handle)
        assert batch.mode is ExecutionMode.GROUPED_CALLS
        assert len(batch) == 0
        assert batch.operations == ()

    def test_mode_shortcut_accepts_string(self, handle):
        assert Batch(handle, mode="single_call").mode is ExecutionMode.SINGLE_CALL

    def test_mode_shortcut_does_not_touch_shared_config(self, handle):
        config = BatchConfig()
        Batch(handle, config, mode=ExecutionMode.SINGLE_CALL)
        assert config.mode is ExecutionMode.GROUPED_CALLS

    def test_direct_apply_needs_memory_grid(self, handle):
        with pytest.raises(UnsupportedOperationError):
            Batch(handle, mode=ExecutionMode.DIRECT_APPLY)

    def test_remote_modes_need_a_client(self, grid):
        with pytest.raises(UnsupportedOperationError):
            Batch(grid)


class TestValidation:
    """Test suite for enqueue-time validation."""

    def test_shape_mismatch(self, handle):
        batch = Batch(handle)
        with pytest.raises(ShapeMismatchError, match="auto_resize"):
            batch.update("A1:B2", [[1, 2, 3]])
        assert len(batch) == 0

    def test_auto_resize_uses_top_left_anchor(self, handle):
        op = Batch(handle).update("B2:Z99", [[1, 2, 3]], auto_resize=True)
        assert op.region.a1 == "Log!B2:D2"

    def test_allow_mismatch_keeps_target(self, handle):
        op = Batch(handle).update("A1:B2", [[1]], allow_mismatch=True)
        assert op.region.a1 == "Log!A1:B2"

    def test_columns_major_dimension_is_checked_after_transposition(self, handle):
        batch = Batch(handle)
        batch.update("A1:A3", [[1, 2, 3]], major_dimension="COLUMNS")
        with pytest.raises(ShapeMismatchError):
            batch.update("A1:C1", [[1, 2, 3]], major_dimension="COLUMNS")

    def test_open_axis_accepts_any_length(self, handle):
        op = Batch(handle).update("A:B", [[1, 2]] * 7)
        assert op.region.a1 == "Log!A:B"

    @pytest.mark.parametrize("values", [[], [[]], [[1], []]])
    def test_empty_payload(self, handle, values):
        with pytest.raises(EmptyPayloadError):
            Batch(handle).update("A1", values)

    def test_values_must_be_a_matrix(self, handle):
        with pytest.raises(TypeError):
            Batch(handle).update("A1", "abc")

    def test_invalid_major_dimension(self, handle):
        with pytest.raises(ValueError):
            Batch(handle).update("A1", [[1]], major_dimension="DIAGONAL")

    def test_address_errors_are_synchronous(self, handle):
        batch = Batch(handle)
        with pytest.raises(SheetNotFoundError):
            batch.update("Nope!A1", [[1]])
        with pytest.raises(AddressSyntaxError):
            batch.clear("A0")
        assert len(batch) == 0

    def test_write_cell(self, handle):
        batch = Batch(handle)
        assert batch.write_cell("B3", 5).values == [[5]]
        with pytest.raises(ShapeMismatchError):
            batch.write_cell("A1:B2", 1)
        assert batch.write_cell("C1:D9", "x", auto_resize=True).region.a1 == "Log!C1"

    def test_config_defaults_apply(self, handle):
        batch = Batch(handle, BatchConfig(value_input_option="RAW", insert_data_option="OVERWRITE"))
        assert batch.update("A1", [[1]]).options.value_input_option == "RAW"
        assert batch.update("A1", [[1]], value_input_option="USER_ENTERED").options.value_input_option == "USER_ENTERED"
        assert batch.append("A:A", [[1]]).insert_data_option == "OVERWRITE"

    def test_append_width_is_checked_against_wide_targets(self, handle):
        batch = Batch(handle)
        with pytest.raises(ShapeMismatchError):
            batch.append("A:C", [[1, 2]])
        batch.append("A:C", [[1, 2]], allow_mismatch=True)
        batch.append("A1", [[1, 2, 3, 4]])
        assert len(batch) == 2

    def test_invalid_insert_data_option(self, handle):
        with pytest.raises(ValueError):
            Batch(handle).append("A:A", [[1]], insert_data_option="PREPEND")

    def test_reads_rejected_in_single_call_mode(self, handle):
        batch = Batch(handle, mode=ExecutionMode.SINGLE_CALL)
        with pytest.raises(UnsupportedOperationError):
            batch.read("A1")
        assert len(batch) == 0


class TestStructural:
    """Test suite for structural producers."""

    def test_insert_rows(self, handle):
        op = Batch(handle).insert_rows(5, 3, sheet="My Data", inherit_from_before=True)
        assert op.action is StructuralAction.INSERT_ROWS
        assert op.region.a1 == "'My Data'!5:7"
        assert op.inherit_from_before

    def test_cannot_inherit_before_first_row(self, handle):
        with pytest.raises(ValueError):
            Batch(handle).insert_rows(1, inherit_from_before=True)

    @pytest.mark.parametrize("start, count", [(0, 1), (3, 0)])
    def test_invalid_row_arguments(self, handle, start, count):
        with pytest.raises(ValueError):
            Batch(handle).delete_rows(start, count)

    def test_columns_accept_letters_or_indices(self, handle):
        batch = Batch(handle)
        assert batch.insert_columns("B", 2).region.a1 == "Log!B:C"
        assert batch.delete_columns(4).region.a1 == "Log!D:D"

    def test_region_changes(self, handle):
        batch = Batch(handle)
        op = batch.insert_region("B2:C3", shift="COLUMNS")
        assert (op.action, op.shift_dimension) == (StructuralAction.INSERT_RANGE, "COLUMNS")
        assert batch.delete_region("B2:C3").shift_dimension == "ROWS"
        with pytest.raises(ValueError):
            batch.delete_region("B2", shift="SIDEWAYS")

    def test_unknown_sheet(self, handle):
        with pytest.raises(SheetNotFoundError):
            Batch(handle).insert_rows(2, sheet="Nope")


class TestCommit:
    """Test suite for commit in grouped-calls mode."""

    def test_disjoint_updates_make_one_call(self, handle, spreadsheet):
        batch = Batch(handle)
        for i in range(1, 11):
            batch.write_cell(f"A{i}", i)

        responses = batch.commit()

        spreadsheet.values_batch_update.assert_called_once()
        body = spreadsheet.values_batch_update.call_args[0][0]
        assert len(body["data"]) == 10
        assert len(responses) == 1
        assert len(batch) == 0

    def test_update_append_update(self, handle, spreadsheet):
        batch = Batch(handle)
        batch.update("A1", [[1]])
        batch.append("A:B", [["x", "y"]])
        batch.update("A2", [[2]])

        assert len(batch.commit()) == 3

    def test_empty_commit_makes_no_call(self, handle, spreadsheet):
        assert Batch(handle).commit() == []
        spreadsheet.values_batch_update.assert_not_called()

    def test_commit_without_clear_keeps_queue(self, handle, spreadsheet):
        batch = Batch(handle, BatchConfig(clear_after_commit=False))
        batch.update("A1", [[1]])

        batch.commit()
        assert len(batch) == 1

        batch.commit(clear=True)
        assert len(batch) == 0
        assert spreadsheet.values_batch_update.call_count == 2

    def test_failed_commit_keeps_unflushed_operations(self, handle, spreadsheet):
        error = make_api_error()
        spreadsheet.values_append.side_effect = error
        batch = Batch(handle)
        batch.update("A1", [[1]])
        batch.append("A:B", [["x", "y"]])
        batch.update("A2", [[2]])

        with pytest.raises(APIError) as exc_info:
            batch.commit()

        assert exc_info.value is error
        assert [op.kind for op in batch.operations] == [OpKind.APPEND, OpKind.UPDATE]

        spreadsheet.values_append.side_effect = None
        assert len(batch.commit()) == 2
        assert spreadsheet.values_batch_update.call_count == 2
        assert len(batch) == 0

    def test_structural_commit_refreshes_sheet_metadata(self, handle, spreadsheet):
        batch = Batch(handle)
        batch.insert_rows(2, sheet="My Data")
        batch.update("'My Data'!A1", [[1]])
        assert spreadsheet.worksheet.call_count == 1

        batch.commit()
        batch.update("'My Data'!A1", [[1]])

        assert spreadsheet.worksheet.call_count == 2

    def test_commit_logs_summary(self, handle, caplog):
        batch = Batch(handle)
        batch.update("A1", [[1]])
        with caplog.at_level(logging.INFO, logger="gridbatch.batch"):
            batch.commit()
        assert "Committed 1 operation(s) in 1 flush(es)" in caplog.text

    def test_middleware_from_config(self, handle):
        seen = []

        def record(call, description):
            seen.append(description)
            return call()

        batch = Batch(handle, BatchConfig(middleware=[record]))
        batch.update("A1", [[1]])
        batch.commit()

        assert seen == ["batch update 1 value range(s)"]


class TestSingleCall:
    """Test suite for commit in single-call mode."""

    def test_one_batch_update(self, handle, spreadsheet):
        batch = Batch(handle, mode=ExecutionMode.SINGLE_CALL)
        batch.update("A1", [[1]])
        batch.append("A:B", [["x", "y"]])
        batch.delete_rows(10)

        responses = batch.commit()

        spreadsheet.batch_update.assert_called_once()
        spreadsheet.values_batch_update.assert_not_called()
        spreadsheet.values_append.assert_not_called()
        assert len(responses) == 1
        assert len(responses[0]["replies"]) == 3

    def test_explain_shows_one_call(self, handle):
        batch = Batch(handle, mode=ExecutionMode.SINGLE_CALL)
        batch.update("A1", [[1]])
        batch.clear("B1")
        text = batch.explain()
        assert "Remote calls: 1" in text
        assert "Combined" in text


class TestMerge:
    """Test suite for merging batches."""

    def test_merge_appends_in_order_and_empties_other(self, handle):
        first, second = Batch(handle), Batch(handle)
        first.update("A1", [[1]])
        second.clear("B1")
        second.update("A2", [[2]])

        assert first.merge(second) is first

        assert [op.region.a1 for op in first.operations] == ["Log!A1", "Log!B1", "Log!A2"]
        assert len(second) == 0

    def test_merge_reads_into_single_call_batch(self, handle):
        target = Batch(handle, mode=ExecutionMode.SINGLE_CALL)
        source = Batch(handle)
        source.read("A1")

        with pytest.raises(UnsupportedOperationError):
            target.merge(source)
        assert len(source) == 1

    def test_merge_rejects_other_handle(self, handle, grid):
        remote = Batch(handle)
        local = Batch(grid, mode=ExecutionMode.DIRECT_APPLY)
        local.update("A1", [[1]])

        with pytest.raises(ValueError, match="different grid handles"):
            remote.merge(local)
        assert len(remote) == 0
        assert len(local) == 1


class TestDirectApply:
    """Test suite for commit in direct-apply mode."""

    def test_write_and_read_back(self, grid, local_batch):
        local_batch.update("A1:B1", [["name", "qty"]])
        local_batch.append("A:B", [["apple", 3]])
        local_batch.read("A1:B2", value_render_option="UNFORMATTED_VALUE")

        responses = local_batch.commit()

        assert responses[-1]["valueRanges"][0]["values"] == [["name", "qty"], ["apple", 3]]

    def test_append_to_anchor_lands_below_table(self, grid, local_batch):
        local_batch.update("A1:B3", [["name", "qty"], ["r1", 1], ["r2", 2]])
        local_batch.append("A1", [["new", 9]])

        responses = local_batch.commit()

        assert responses[1]["tableRange"] == "Log!A1:B3"
        assert responses[1]["updates"]["updatedRange"] == "Log!A4:B4"
        assert [grid["Log"].value(f"A{i}") for i in range(1, 5)] == ["name", "r1", "r2", "new"]

    def test_push_down_insert_keeps_row_count(self, grid, local_batch):
        log = grid["Log"]
        log.set_values(1, 1, [[i] for i in range(1, 11)])

        ops = local_batch.push_down_insert("A2", [["new"]])
        local_batch.commit()

        assert [op.kind for op in ops] == [OpKind.STRUCTURAL, OpKind.UPDATE, OpKind.STRUCTURAL]
        assert ops[0].inherit_from_before
        assert log.row_count == 10
        assert [log.value(f"A{i}") for i in range(1, 11)] == [1, "new", 2, 3, 4, 5, 6, 7, 8, 9]

    def test_push_down_at_row_one_inherits_from_below(self, local_batch):
        ops = local_batch.push_down_insert("A1", [["x", "y"], ["z", "w"]])
        assert not ops[0].inherit_from_before
        assert ops[1].region.a1 == "Log!A1:B2"
        assert ops[2].region.a1 == "Log!11:12"

    def test_push_down_accounts_for_pending_row_changes(self, grid, local_batch):
        local_batch.insert_rows(1, 2)
        local_batch.delete_rows(5)

        ops = local_batch.push_down_insert("A3", [["x"]])
        local_batch.commit()

        assert ops[2].region.a1 == "Log!12:12"
        assert grid["Log"].row_count == 11

    def test_push_down_without_removal(self, grid, local_batch):
        ops = local_batch.push_down_insert("B4", [["x"]], remove_from_bottom=False)
        local_batch.commit()

        assert len(ops) == 2
        assert grid["Log"].row_count == 11
        assert grid["Log"].value("B4") == "x"

    def test_to_dict(self, local_batch):
        local_batch.update("A1", [[1]])
        data = local_batch.to_dict()
        assert data["mode"] == "direct_apply"
        assert data["operations"][0]["type"] == "UpdateValues"
        assert data["operations"][0]["region"]["range"] == "Log!A1"
