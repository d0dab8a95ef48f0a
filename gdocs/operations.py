"""
Document edit operations.

Each operation is an immutable description of one Google Docs batchUpdate
request. `to_request()` renders the API dict; `to_requests()` renders a batch.

Example:
    >>> op = InsertText(index=1, text="Hello\\n")
    >>> op.to_request()
    {'insertText': {'location': {'index': 1}, 'text': 'Hello\\n'}}
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, fields
from typing import Any, Union

from gdocs.docs_helpers import _normalize_color


@dataclass(frozen=True)
class StyleRange:
    """Half-open [start, end) span of document indices."""

    start: int
    end: int

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Invalid range: start {self.start} is after end {self.end}")

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def to_dict(self) -> dict[str, int]:
        return {"startIndex": self.start, "endIndex": self.end}


@dataclass(frozen=True)
class TextStyle:
    """
    Character formatting for an updateTextStyle request.

    Only set attributes are rendered. Booleans default to None (unset); colours are
    '#rrggbb' strings; font_size is in points.
    """

    bold: bool | None = None
    italic: bool | None = None
    underline: bool | None = None
    strikethrough: bool | None = None
    font_size: int | None = None
    font_family: str | None = None
    foreground_color: str | None = None
    background_color: str | None = None
    link_url: str | None = None

    def __post_init__(self):
        _normalize_color(self.foreground_color, "foreground_color")
        _normalize_color(self.background_color, "background_color")

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_dict(self) -> dict[str, Any]:
        style: dict[str, Any] = {}
        for key in ("bold", "italic", "underline", "strikethrough"):
            value = getattr(self, key)
            if value is not None:
                style[key] = value
        if self.font_size is not None:
            style["fontSize"] = {"magnitude": self.font_size, "unit": "PT"}
        if self.font_family is not None:
            style["weightedFontFamily"] = {"fontFamily": self.font_family}
        if self.foreground_color is not None:
            style["foregroundColor"] = {"color": {"rgbColor": _normalize_color(self.foreground_color, "fg")}}
        if self.background_color is not None:
            style["backgroundColor"] = {"color": {"rgbColor": _normalize_color(self.background_color, "bg")}}
        if self.link_url is not None:
            style["link"] = {"url": self.link_url}
        return style

    def fields_mask(self) -> str:
        """Fields mask naming exactly the attributes that are set."""
        return ",".join(self.to_dict().keys())


BOLD = TextStyle(bold=True)
ITALIC = TextStyle(italic=True)
STRIKETHROUGH = TextStyle(strikethrough=True)


def monospace(font_family: str) -> TextStyle:
    return TextStyle(font_family=font_family)


def hyperlink(url: str) -> TextStyle:
    return TextStyle(link_url=url)


@dataclass(frozen=True)
class InsertText:
    index: int
    text: str

    def to_request(self) -> dict[str, Any]:
        return {"insertText": {"location": {"index": self.index}, "text": self.text}}


@dataclass(frozen=True)
class ApplyParagraphStyle:
    """Apply a named paragraph style (HEADING_1, TITLE, ...) to a range."""

    range: StyleRange
    style_name: str

    def to_request(self) -> dict[str, Any]:
        return {
            "updateParagraphStyle": {
                "range": self.range.to_dict(),
                "paragraphStyle": {"namedStyleType": self.style_name},
                "fields": "namedStyleType",
            }
        }


@dataclass(frozen=True)
class ApplyTextStyle:
    range: StyleRange
    style: TextStyle
    fields: str

    def to_request(self) -> dict[str, Any]:
        return {
            "updateTextStyle": {
                "range": self.range.to_dict(),
                "textStyle": self.style.to_dict(),
                "fields": self.fields,
            }
        }


@dataclass(frozen=True)
class CreateList:
    range: StyleRange
    preset: str

    def to_request(self) -> dict[str, Any]:
        return {"createParagraphBullets": {"range": self.range.to_dict(), "bulletPreset": self.preset}}


@dataclass(frozen=True)
class InsertTable:
    index: int
    rows: int
    columns: int

    def to_request(self) -> dict[str, Any]:
        return {"insertTable": {"location": {"index": self.index}, "rows": self.rows, "columns": self.columns}}


@dataclass(frozen=True)
class InsertPageBreak:
    index: int

    def to_request(self) -> dict[str, Any]:
        return {"insertPageBreak": {"location": {"index": self.index}}}


@dataclass(frozen=True)
class DeleteRange:
    range: StyleRange

    def to_request(self) -> dict[str, Any]:
        return {"deleteContentRange": {"range": self.range.to_dict()}}


@dataclass(frozen=True)
class UpdateParagraphFormat:
    """
    Apply explicit paragraph formatting (alignment, indents, spacing) to a range.

    paragraph_style is stored as a tuple of (key, value) pairs.
    """

    range: StyleRange
    paragraph_style: tuple[tuple[str, Any], ...]
    fields: str

    def to_request(self) -> dict[str, Any]:
        return {
            "updateParagraphStyle": {
                "range": self.range.to_dict(),
                "paragraphStyle": dict(self.paragraph_style),
                "fields": self.fields,
            }
        }


@dataclass(frozen=True)
class ReplaceAllText:
    find: str
    replace: str
    match_case: bool = False

    def to_request(self) -> dict[str, Any]:
        return {
            "replaceAllText": {
                "containsText": {"text": self.find, "matchCase": self.match_case},
                "replaceText": self.replace,
            }
        }


Operation = Union[
    InsertText,
    ApplyParagraphStyle,
    ApplyTextStyle,
    CreateList,
    InsertTable,
    InsertPageBreak,
    DeleteRange,
    UpdateParagraphFormat,
    ReplaceAllText,
]


def to_requests(operations: Iterable[Operation]) -> list[dict[str, Any]]:
    """Render a batch of operations as batchUpdate request dicts, preserving order."""
    return [op.to_request() for op in operations]
