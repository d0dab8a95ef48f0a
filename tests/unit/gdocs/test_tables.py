"""Unit tests for locating and populating tables."""

import pytest

from core.errors import TablePopulationError
from gdocs.operations import BOLD, ApplyTextStyle, InsertText, StyleRange
from gdocs.tables import (
    PendingTable,
    TableState,
    find_table_near,
    find_tables,
    resolve_pending_tables,
)

# Layout from make_document("\n", ("table", 2, 2)): table at 2, cell content at 5, 7 / 10, 12
CELL_00, CELL_01, CELL_10, CELL_11 = 5, 7, 10, 12


@pytest.fixture
def two_by_two(document_factory):
    return document_factory("\n", ("table", 2, 2))


@pytest.fixture
def two_tables(document_factory):
    # First table starts at 2, second at 8
    return document_factory("\n", ("table", 1, 1), "\n", ("table", 1, 1), "\n")


def _inserts(ops):
    return [(op.index, op.text) for op in ops if isinstance(op, InsertText)]


class TestFindTables:
    def test_parses_dimensions_and_cells(self, two_by_two):
        tables = find_tables(two_by_two)

        assert len(tables) == 1
        table = tables[0]
        assert table["start_index"] == 2
        assert (table["rows"], table["columns"]) == (2, 2)
        assert table["cells"] == [[CELL_00, CELL_01], [CELL_10, CELL_11]]

    def test_no_tables(self, empty_document):
        assert find_tables(empty_document) == []

    def test_tables_are_in_document_order(self, two_tables):
        assert [t["start_index"] for t in find_tables(two_tables)] == [2, 8]

    def test_cell_without_content_has_no_index(self, two_by_two):
        two_by_two["body"]["content"][2]["table"]["tableRows"][0]["tableCells"][1]["content"] = []
        assert find_tables(two_by_two)[0]["cells"][0] == [CELL_00, None]


class TestFindTableNear:
    def test_default_selects_most_recent_table(self, two_tables):
        assert find_table_near(two_tables)["start_index"] == 8

    def test_near_start_selects_first_table(self, two_tables):
        assert find_table_near(two_tables, near_index=1)["start_index"] == 2

    def test_ties_go_to_earlier_table(self, two_tables):
        assert find_table_near(two_tables, near_index=5)["start_index"] == 2

    def test_excluded_tables_are_skipped(self, two_tables):
        assert find_table_near(two_tables, exclude=[8])["start_index"] == 2

    def test_none_when_no_table(self, empty_document):
        assert find_table_near(empty_document) is None


class TestPendingTable:
    def test_headers_and_data_populate_in_descending_order(self, two_by_two):
        job = PendingTable(rows=2, columns=2, headers=["A", "B"], data=[["1", "2"]])
        job.resolve(two_by_two)

        ops = job.build_operations()

        assert _inserts(ops) == [(CELL_11, "2"), (CELL_10, "1"), (CELL_01, "B"), (CELL_00, "A")]
        assert ops[4:] == [
            ApplyTextStyle(range=StyleRange(CELL_00, CELL_00 + 1), style=BOLD, fields="bold"),
            ApplyTextStyle(range=StyleRange(CELL_01, CELL_01 + 1), style=BOLD, fields="bold"),
        ]

    def test_inserts_strictly_descending(self, two_by_two):
        job = PendingTable(rows=2, columns=2, data=[["a", "b"], ["c", "d"]])
        job.resolve(two_by_two)

        indices = [index for index, _ in _inserts(job.build_operations())]
        assert indices == sorted(indices, reverse=True)
        assert len(set(indices)) == len(indices)

    def test_data_without_headers_starts_at_first_row(self, two_by_two):
        job = PendingTable(rows=2, columns=2, data=[["x"]])
        job.resolve(two_by_two)
        assert _inserts(job.build_operations()) == [(CELL_00, "x")]

    def test_empty_cells_are_skipped(self, two_by_two):
        job = PendingTable(rows=2, columns=2, headers=["", "B"], data=[["", "y"]])
        job.resolve(two_by_two)

        ops = job.build_operations()

        assert _inserts(ops) == [(CELL_11, "y"), (CELL_01, "B")]
        assert len([op for op in ops if isinstance(op, ApplyTextStyle)]) == 1

    def test_data_beyond_table_size_is_ignored(self, two_by_two):
        job = PendingTable(rows=2, columns=2, data=[["a", "b", "c"], ["d"], ["e"]])
        job.resolve(two_by_two)
        assert _inserts(job.build_operations()) == [(CELL_10, "d"), (CELL_01, "b"), (CELL_00, "a")]

    def test_header_bold_counts_utf16_units(self, two_by_two):
        job = PendingTable(rows=2, columns=2, headers=["😀x"])
        job.resolve(two_by_two)

        style = job.build_operations()[-1]
        assert style.range == StyleRange(CELL_00, CELL_00 + 3)

    def test_has_content(self):
        assert not PendingTable(rows=1, columns=1).has_content
        assert PendingTable(rows=1, columns=1, headers=["h"]).has_content
        assert PendingTable(rows=1, columns=1, data=[["d"]]).has_content


class TestLifecycle:
    def test_starts_pending(self):
        assert PendingTable(rows=1, columns=1).state is TableState.PENDING

    def test_resolve_then_populate(self, two_by_two):
        job = PendingTable(rows=2, columns=2, headers=["A"])
        table = job.resolve(two_by_two)

        assert table["start_index"] == 2
        assert job.state is TableState.RESOLVED
        job.mark_populated()
        assert job.state is TableState.POPULATED

    def test_build_before_resolve_fails(self):
        with pytest.raises(TablePopulationError, match="pending"):
            PendingTable(rows=1, columns=1, headers=["A"]).build_operations()

    def test_resolve_twice_fails(self, two_by_two):
        job = PendingTable(rows=2, columns=2)
        job.resolve(two_by_two)
        with pytest.raises(TablePopulationError, match="resolved"):
            job.resolve(two_by_two)

    def test_mark_populated_requires_resolved(self):
        with pytest.raises(TablePopulationError):
            PendingTable(rows=1, columns=1).mark_populated()

    def test_build_after_populated_fails(self, two_by_two):
        job = PendingTable(rows=2, columns=2, headers=["A"])
        job.resolve(two_by_two)
        job.mark_populated()
        with pytest.raises(TablePopulationError, match="populated"):
            job.build_operations()

    def test_missing_table_fails(self, empty_document):
        job = PendingTable(rows=1, columns=1, headers=["A"])
        with pytest.raises(TablePopulationError, match="Table not found"):
            job.resolve(empty_document)
        assert job.state is TableState.PENDING


class TestResolvePendingTables:
    def test_jobs_claim_distinct_tables_from_the_end(self, two_tables):
        first = PendingTable(rows=1, columns=1, headers=["first"])
        second = PendingTable(rows=1, columns=1, headers=["second"])

        resolve_pending_tables([first, second], two_tables)

        assert first.table["start_index"] == 8
        assert second.table["start_index"] == 2

    def test_more_jobs_than_tables_fails(self, two_by_two):
        jobs = [PendingTable(rows=2, columns=2), PendingTable(rows=2, columns=2)]
        with pytest.raises(TablePopulationError):
            resolve_pending_tables(jobs, two_by_two)
