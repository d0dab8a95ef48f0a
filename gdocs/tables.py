"""
Google Docs Table Population

A table's cell indices are only known after the table exists, so tables are
filled in a second pass. Each `PendingTable` moves through an explicit lifecycle:

    PENDING   -> created when the table is compiled
    RESOLVED  -> bound to a real table in a fresh document snapshot
    POPULATED -> its cell inserts have been submitted

Cell inserts are emitted in strictly descending index order so that no insert
shifts an index that a later insert in the same batch still relies on.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from core.errors import TablePopulationError
from gdocs.operations import BOLD, ApplyTextStyle, InsertText, Operation, StyleRange
from gdocs.request_builder import utf16_len

logger = logging.getLogger(__name__)

# Proximity target that selects the last (most recently inserted) table
NEWEST_TABLE_INDEX = sys.maxsize


class TableState(Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    POPULATED = "populated"


@dataclass
class CellInsert:
    """A cell insert paired with its index, for ordering."""

    index: int
    operation: InsertText


def _parse_table(element: dict[str, Any]) -> dict[str, Any]:
    """
    Extract dimensions and per-cell insertion indices from a table structural element.

    A cell's insertion index is the start of its first content element, or None
    when the cell has no content.
    """
    table = element["table"]
    cells: list[list[int | None]] = []
    for row in table.get("tableRows", []):
        row_cells: list[int | None] = []
        for cell in row.get("tableCells", []):
            content = cell.get("content", [])
            row_cells.append(content[0].get("startIndex") if content else None)
        cells.append(row_cells)

    return {
        "start_index": element.get("startIndex", 0),
        "end_index": element.get("endIndex", 0),
        "rows": table.get("rows", len(cells)),
        "columns": table.get("columns", len(cells[0]) if cells else 0),
        "cells": cells,
    }


def find_tables(document: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Find all tables in a document snapshot, in document order.

    Args:
        document: Raw document data from the Docs API `documents.get`.

    Returns:
        List of dicts with start_index, end_index, rows, columns and cells.
    """
    content = document.get("body", {}).get("content", [])
    return [_parse_table(element) for element in content if "table" in element]


def find_table_near(
    document: dict[str, Any],
    near_index: int = NEWEST_TABLE_INDEX,
    exclude: Iterable[int] = (),
) -> dict[str, Any] | None:
    """
    Return the table whose start index is closest to near_index.

    With the default near_index this is the last table in the document, not the
    first. Tables whose start index is in exclude are skipped. Ties go to the
    earlier table.
    """
    excluded = set(exclude)
    best: dict[str, Any] | None = None
    best_distance = -1

    for table in find_tables(document):
        if table["start_index"] in excluded:
            continue
        distance = abs(table["start_index"] - near_index)
        if best is None or distance < best_distance:
            best = table
            best_distance = distance

    return best


@dataclass
class PendingTable:
    """
    A table whose contents are filled in after it has been created.

    Attributes:
        rows: Number of rows requested.
        columns: Number of columns requested.
        headers: Optional header row, written to the first table row in bold.
        data: Optional data rows, written below the header row when there is one.
    """

    rows: int
    columns: int
    headers: list[str] = field(default_factory=list)
    data: list[list[str]] = field(default_factory=list)
    state: TableState = TableState.PENDING
    table: dict[str, Any] | None = None

    @property
    def has_content(self) -> bool:
        return bool(self.headers) or bool(self.data)

    def resolve(
        self,
        document: dict[str, Any],
        near_index: int = NEWEST_TABLE_INDEX,
        exclude: Iterable[int] = (),
    ) -> dict[str, Any]:
        """
        Bind this job to the table in document closest to near_index.

        Raises:
            TablePopulationError: If the job is not pending or no table is found.
        """
        if self.state is not TableState.PENDING:
            raise TablePopulationError(f"Cannot resolve a table that is {self.state.value}")

        table = find_table_near(document, near_index, exclude)
        if table is None:
            logger.warning(f"No table found to populate ({self.rows}x{self.columns})")
            raise TablePopulationError("Table not found in document")

        self.table = table
        self.state = TableState.RESOLVED
        logger.debug(
            f"Resolved {self.rows}x{self.columns} table to [{table['start_index']}-{table['end_index']}] "
            f"({table['rows']}x{table['columns']})"
        )
        return table

    def _cell_index(self, row: int, column: int) -> int | None:
        cells = self.table["cells"]
        if row >= len(cells) or column >= len(cells[row]):
            return None
        return cells[row][column]

    def build_operations(self) -> list[Operation]:
        """
        Build the cell inserts and header styles for the resolved table.

        Header row first, then data rows (shifted down one row when headers exist).
        Rows and columns beyond the table's actual size and empty strings are skipped.
        Inserts are sorted by descending index; header bold styles follow them.

        Raises:
            TablePopulationError: If the job has not been resolved.
        """
        if self.state is not TableState.RESOLVED or self.table is None:
            raise TablePopulationError(f"Cannot populate a table that is {self.state.value}")

        inserts: list[CellInsert] = []
        header_styles: list[Operation] = []

        for col_idx, header in enumerate(self.headers):
            idx = self._cell_index(0, col_idx)
            if idx is None or not header:
                continue
            inserts.append(CellInsert(idx, InsertText(index=idx, text=header)))
            # Pre-insert index: exact for the first header only, later ones are shifted by earlier inserts
            header_styles.append(
                ApplyTextStyle(range=StyleRange(idx, idx + utf16_len(header)), style=BOLD, fields="bold")
            )

        data_start_row = 1 if self.headers else 0
        for row_idx, row_data in enumerate(self.data):
            table_row = data_start_row + row_idx
            for col_idx, value in enumerate(row_data):
                idx = self._cell_index(table_row, col_idx)
                if idx is None or not value:
                    continue
                inserts.append(CellInsert(idx, InsertText(index=idx, text=value)))

        inserts.sort(key=lambda ins: ins.index, reverse=True)
        operations: list[Operation] = [ins.operation for ins in inserts]
        operations.extend(header_styles)
        logger.debug(f"Table population: {len(inserts)} cell insert(s), {len(header_styles)} header style(s)")
        return operations

    def mark_populated(self) -> None:
        if self.state is not TableState.RESOLVED:
            raise TablePopulationError(f"Cannot mark a table populated that is {self.state.value}")
        self.state = TableState.POPULATED


def resolve_pending_tables(jobs: list[PendingTable], document: dict[str, Any]) -> list[PendingTable]:
    """
    Resolve every job against one snapshot, each claiming a distinct table.

    Jobs claim tables in proximity order to the end of the document (highest
    first), in the order the jobs were compiled. Populating them in that order
    never shifts a table that a later job still has to fill.

    Matching a job to the right table is only guaranteed when the new tables are
    the last ones in the document and appear in reverse compile order, which is
    how tables inserted at one frozen cursor land.
    """
    claimed: list[int] = []
    for job in jobs:
        table = job.resolve(document, exclude=claimed)
        claimed.append(table["start_index"])
    return jobs
