"""
Document Templates

Declarative content templates compiled into Google Docs operations. A template
has an optional title, sections (a heading plus content elements) and top-level
elements:

    {
        "title": {"text": "Quarterly Report", "style": {"named_style": "title"}},
        "sections": [
            {"heading": "Summary", "content": [{"type": "text", "text": "All good."}]}
        ],
        "elements": [
            {"type": "list", "list_type": "bullet", "items": ["One", "Two"]},
            {"type": "table", "rows": 2, "columns": 2, "headers": ["A", "B"], "table_data": [["1", "2"]]}
        ]
    }

Templates are validated in full before any operation is built. Unknown fields
and element types are rejected; an invalid template never yields a partial batch.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from core.errors import TemplateValidationError
from gdocs.docs_helpers import (
    build_paragraph_style,
    list_indent_style,
    map_list_glyph_preset,
    map_named_style,
    validate_alignment,
    validate_color,
    validate_font_size,
    validate_indent_level,
    validate_list_items,
    validate_list_type,
    validate_named_style,
)
from gdocs.operations import Operation, TextStyle
from gdocs.request_builder import RequestBuilder
from gdocs.tables import PendingTable

logger = logging.getLogger(__name__)

ElementType = Literal["text", "list", "table", "pagebreak", "hr"]

# Fields each element type accepts
ELEMENT_FIELDS: dict[str, set[str]] = {
    "text": {"type", "text", "style"},
    "list": {"type", "list_type", "items", "indent"},
    "table": {"type", "rows", "columns", "headers", "table_data"},
    "pagebreak": {"type"},
    "hr": {"type"},
}


class TemplateStyle(BaseModel):
    """Character and paragraph formatting for template text."""

    model_config = ConfigDict(extra="forbid")

    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    font_size: int = Field(0, description="Font size in points (8-72). 0 leaves it unchanged.")
    font_family: str = ""
    color: str = Field("", description="Foreground color as #RRGGBB.")
    bg_color: str = Field("", description="Background color as #RRGGBB.")
    named_style: str = Field("", description="heading1..heading4, title, subtitle or normal.")
    alignment: str = Field("", description="left, center, right or justify.")

    @field_validator("color", "bg_color")
    @classmethod
    def check_color(cls, v: str) -> str:
        return validate_color(v)

    @field_validator("font_size")
    @classmethod
    def check_font_size(cls, v: int) -> int:
        return validate_font_size(v)

    @field_validator("named_style")
    @classmethod
    def check_named_style(cls, v: str) -> str:
        return validate_named_style(v)

    @field_validator("alignment")
    @classmethod
    def check_alignment(cls, v: str) -> str:
        return validate_alignment(v)

    def to_text_style(self) -> TextStyle | None:
        """The character part of this style, or None when nothing is set."""
        style = TextStyle(
            bold=True if self.bold else None,
            italic=True if self.italic else None,
            underline=True if self.underline else None,
            strikethrough=True if self.strikethrough else None,
            font_size=self.font_size or None,
            font_family=self.font_family or None,
            foreground_color=self.color or None,
            background_color=self.bg_color or None,
        )
        return None if style.is_empty() else style


class TemplateText(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str
    style: TemplateStyle = Field(default_factory=TemplateStyle)


class TemplateElement(BaseModel):
    """One content element. Which fields apply depends on `type`."""

    model_config = ConfigDict(extra="forbid")

    type: ElementType
    text: str = ""
    style: TemplateStyle = Field(default_factory=TemplateStyle)
    list_type: str = ""
    items: list[str] = Field(default_factory=list)
    indent: int = 0
    rows: int = 0
    columns: int = 0
    headers: list[str] = Field(default_factory=list)
    table_data: list[list[str]] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_element(self) -> TemplateElement:
        inapplicable = self.model_fields_set - ELEMENT_FIELDS[self.type]
        if inapplicable:
            raise ValueError(f"fields not allowed for {self.type} element: {', '.join(sorted(inapplicable))}")

        if self.type == "list":
            validate_list_type(self.list_type)
            validate_list_items(self.items)
            validate_indent_level(self.indent)
        elif self.type == "table":
            if self.rows < 1 or self.columns < 1:
                raise ValueError("table rows and columns must be at least 1")
        return self


class TemplateSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    heading: str
    style: str = Field("", description="Named style for the heading. Defaults to heading2.")
    content: list[TemplateElement] = Field(default_factory=list)

    @field_validator("heading")
    @classmethod
    def check_heading(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("section heading cannot be empty")
        return v

    @field_validator("style")
    @classmethod
    def check_style(cls, v: str) -> str:
        return validate_named_style(v)


class DocumentTemplate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: TemplateText | None = None
    sections: list[TemplateSection] = Field(default_factory=list)
    elements: list[TemplateElement] = Field(default_factory=list)


@dataclass
class CompiledTemplate:
    """Operations for the first batch plus the tables to fill in afterwards."""

    operations: list[Operation] = field(default_factory=list)
    pending_tables: list[PendingTable] = field(default_factory=list)

    @property
    def tables_with_content(self) -> list[PendingTable]:
        return [t for t in self.pending_tables if t.has_content]


def _format_errors(error: PydanticValidationError) -> list[str]:
    messages = []
    for err in error.errors():
        location = ".".join(str(part) for part in err.get("loc", ()))
        message = err.get("msg", "invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return messages


def parse_template(template: DocumentTemplate | dict[str, Any] | str) -> DocumentTemplate:
    """
    Validate a template given as a model, a dict, or a JSON string.

    Raises:
        TemplateValidationError: If the template is malformed or fails any rule.
    """
    if isinstance(template, DocumentTemplate):
        return template

    try:
        if isinstance(template, str):
            return DocumentTemplate.model_validate(json.loads(template))
        return DocumentTemplate.model_validate(template)
    except json.JSONDecodeError as e:
        raise TemplateValidationError(f"Invalid template: failed to parse template JSON: {e}") from e
    except PydanticValidationError as e:
        errors = _format_errors(e)
        raise TemplateValidationError(f"Invalid template: {'; '.join(errors)}", errors=errors) from e


class TemplateCompiler:
    """
    Compiles a validated template into one operation batch.

    Order: title, then each section heading followed by its content, then the
    top-level elements. Tables are inserted at the cursor and recorded as
    pending; their contents are written in a second pass.
    """

    def __init__(self) -> None:
        self._after_table = False

    def compile(self, template: DocumentTemplate | dict[str, Any] | str, start_index: int = 1) -> CompiledTemplate:
        tmpl = parse_template(template)
        builder = RequestBuilder(start_index)
        compiled = CompiledTemplate()
        self._after_table = False

        if tmpl.title is not None:
            self._add_title(builder, tmpl.title)

        for section in tmpl.sections:
            self._add_section(builder, section)
            for element in section.content:
                self._add_element(builder, element, compiled)

        for element in tmpl.elements:
            self._add_element(builder, element, compiled)

        compiled.operations = builder.build()
        logger.debug(
            f"Compiled template into {len(compiled.operations)} operations and "
            f"{len(compiled.pending_tables)} pending table(s)"
        )
        return compiled

    def _note_content(self) -> None:
        if self._after_table:
            logger.warning(
                "Template content follows a table in the same batch; it is inserted at the table's "
                "index and will appear before the table"
            )
            self._after_table = False

    def _add_title(self, builder: RequestBuilder, title: TemplateText) -> None:
        start = builder.cursor
        builder.insert_text(title.text + "\n\n")
        end = builder.cursor

        style_type = map_named_style(title.style.named_style or "title")
        if style_type:
            builder.apply_paragraph_style(start, end, style_type)
        _apply_text_style(builder, start, end, title.style)

    def _add_section(self, builder: RequestBuilder, section: TemplateSection) -> None:
        self._note_content()
        start = builder.cursor
        builder.insert_text(section.heading + "\n")
        style_type = map_named_style(section.style or "heading2")
        if style_type:
            builder.apply_paragraph_style(start, builder.cursor, style_type)

    def _add_element(self, builder: RequestBuilder, element: TemplateElement, compiled: CompiledTemplate) -> None:
        if element.type == "table":
            builder.insert_table(element.rows, element.columns)
            compiled.pending_tables.append(
                PendingTable(
                    rows=element.rows,
                    columns=element.columns,
                    headers=list(element.headers),
                    data=[list(row) for row in element.table_data],
                )
            )
            self._after_table = True
            return

        self._note_content()

        if element.type == "text":
            add_styled_text(builder, element.text + "\n", element.style)

        elif element.type == "list":
            add_list(builder, element.list_type, element.items, element.indent)

        elif element.type == "pagebreak":
            builder.insert_page_break()

        elif element.type == "hr":
            builder.insert_horizontal_rule()


def _apply_text_style(builder: RequestBuilder, start: int, end: int, style: TemplateStyle) -> None:
    text_style = style.to_text_style()
    if text_style is not None:
        builder.apply_text_style(start, end, text_style)


def add_styled_text(builder: RequestBuilder, text: str, style: TemplateStyle) -> None:
    """Insert text at the cursor with an optional named style, text style and alignment."""
    start = builder.cursor
    builder.insert_text(text)
    end = builder.cursor

    if style.named_style:
        builder.apply_paragraph_style(start, end, map_named_style(style.named_style))
    _apply_text_style(builder, start, end, style)
    if style.alignment:
        paragraph_style, fields = build_paragraph_style(alignment=style.alignment)
        builder.format_paragraph(start, end, paragraph_style, ",".join(fields))


def add_list(builder: RequestBuilder, list_type: str, items: list[str], indent: int = 0) -> None:
    """Insert one paragraph per item at the cursor and turn them into a list."""
    start = builder.cursor
    builder.insert_text("".join(item + "\n" for item in items))
    end = builder.cursor

    builder.create_list(start, end, map_list_glyph_preset(list_type))
    if indent > 0:
        paragraph_style, fields = list_indent_style(indent)
        builder.format_paragraph(start, end, paragraph_style, ",".join(fields))


def compile_template(template: DocumentTemplate | dict[str, Any] | str, start_index: int = 1) -> CompiledTemplate:
    """Validate and compile a template. Raises TemplateValidationError before building anything."""
    return TemplateCompiler().compile(template, start_index)
