"""
Request Builder

Cursor-tracking accumulator for Google Docs batchUpdate operations. All index
arithmetic for the flat, character-indexed document body lives here: callers
append content and the builder remembers where the next insertion lands.

Indices are counted in UTF-16 code units, which is what the Docs API uses.

Example:
    >>> builder = RequestBuilder(start_index=1)
    >>> builder.insert_text("Hello\\n")
    >>> builder.apply_paragraph_style(1, 7, "HEADING_1")
    >>> builder.cursor
    7
"""

from __future__ import annotations

import logging
from typing import Any

from gdocs.operations import (
    ApplyParagraphStyle,
    ApplyTextStyle,
    CreateList,
    DeleteRange,
    InsertPageBreak,
    InsertTable,
    InsertText,
    Operation,
    ReplaceAllText,
    StyleRange,
    TextStyle,
    UpdateParagraphFormat,
)

logger = logging.getLogger(__name__)

HORIZONTAL_RULE_TEXT = "\n" + "_" * 50 + "\n"

# A page break occupies the break element plus the paragraph newline that follows it
PAGE_BREAK_LENGTH = 2


def utf16_len(text: str) -> int:
    """Length of text in UTF-16 code units (astral characters count as 2)."""
    return len(text.encode("utf-16-le")) // 2


class RequestBuilder:
    """
    Accumulates operations in order while tracking the virtual cursor.

    The cursor only moves forward: text advances it by its UTF-16 length, page
    breaks by 2. A table is inserted at the cursor without moving it, because its
    real size is only known once the document has been re-read.
    """

    def __init__(self, start_index: int = 1) -> None:
        if start_index < 1:
            raise ValueError(f"start_index must be at least 1, got {start_index}")
        self._cursor = start_index
        self._operations: list[Operation] = []

    @property
    def cursor(self) -> int:
        """Index where the next insertion will land."""
        return self._cursor

    def __len__(self) -> int:
        return len(self._operations)

    def insert_text(self, text: str) -> None:
        if not text:
            return
        self._operations.append(InsertText(index=self._cursor, text=text))
        self._cursor += utf16_len(text)

    def apply_paragraph_style(self, start: int, end: int, name: str) -> None:
        self._operations.append(ApplyParagraphStyle(range=StyleRange(start, end), style_name=name))

    def apply_text_style(self, start: int, end: int, style: TextStyle, fields: str | None = None) -> None:
        """Apply a character style to [start, end). Fields default to the style's set attributes."""
        self._operations.append(
            ApplyTextStyle(range=StyleRange(start, end), style=style, fields=fields or style.fields_mask())
        )

    def create_list(self, start: int, end: int, preset: str) -> None:
        self._operations.append(CreateList(range=StyleRange(start, end), preset=preset))

    def insert_table(self, rows: int, columns: int) -> None:
        if rows < 1 or columns < 1:
            raise ValueError("rows and columns must be at least 1")
        self._operations.append(InsertTable(index=self._cursor, rows=rows, columns=columns))
        logger.debug(f"Table {rows}x{columns} at {self._cursor}; cursor left in place")

    def insert_page_break(self) -> None:
        self._operations.append(InsertPageBreak(index=self._cursor))
        self._cursor += PAGE_BREAK_LENGTH

    def insert_horizontal_rule(self) -> None:
        self.insert_text(HORIZONTAL_RULE_TEXT)

    def delete_range(self, start: int, end: int) -> None:
        self._operations.append(DeleteRange(range=StyleRange(start, end)))

    def format_paragraph(self, start: int, end: int, paragraph_style: dict[str, Any], fields: str) -> None:
        self._operations.append(
            UpdateParagraphFormat(
                range=StyleRange(start, end),
                paragraph_style=tuple(paragraph_style.items()),
                fields=fields,
            )
        )

    def replace_all_text(self, find: str, replace: str, match_case: bool = False) -> None:
        if not find:
            raise ValueError("find text cannot be empty")
        self._operations.append(ReplaceAllText(find=find, replace=replace, match_case=match_case))

    def build(self) -> list[Operation]:
        """Return the accumulated operations in insertion order."""
        return list(self._operations)
