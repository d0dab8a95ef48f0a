"""
Markdown to Google Docs Converter

This module provides the `MarkdownToDocsConverter` class that translates Markdown
into an ordered batch of Google Docs operations. It handles headings, paragraphs,
single-level lists (including task lists), code blocks, thematic breaks, and the
inline styles bold, italic, code, links and strikethrough.

All index arithmetic goes through a `RequestBuilder`; inline style ranges come
from `InlineStyleResolver`.

Example:
    >>> converter = MarkdownToDocsConverter()
    >>> ops = converter.convert("# Hello\\n")
    >>> ops[0]
    InsertText(index=1, text='Hello\\n')
    >>> ops[1].style_name
    'HEADING_1'
"""

from __future__ import annotations

import logging
from typing import Any

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode
from mdit_py_plugins.tasklists import tasklists_plugin

from core.config import get_docs_config
from gdocs.inline_styles import InlineStyleResolver, is_task_checkbox
from gdocs.operations import Operation, monospace, to_requests
from gdocs.request_builder import RequestBuilder

logger = logging.getLogger(__name__)

# Named style mappings for headings (h1 -> HEADING_1, etc.)
HEADING_STYLE_MAP: dict[str, str] = {
    "h1": "HEADING_1",
    "h2": "HEADING_2",
    "h3": "HEADING_3",
    "h4": "HEADING_4",
    "h5": "HEADING_5",
    "h6": "HEADING_6",
}

# Bullet list presets for the Google Docs API
BULLET_PRESET_UNORDERED = "BULLET_DISC_CIRCLE_SQUARE"
BULLET_PRESET_ORDERED = "NUMBERED_DECIMAL_ALPHA_ROMAN"
BULLET_PRESET_CHECKBOX = "BULLET_CHECKBOX"


class MarkdownToDocsConverter:
    """
    Converts Markdown text into Google Docs operations.

    The converter uses markdown-it-py with the CommonMark preset plus strikethrough
    and task lists, and walks the resulting syntax tree block by block. Conversion
    never fails: blocks it does not model are descended into, and anything with no
    text is skipped.

    Each call to `convert()` uses a fresh `RequestBuilder`, so one converter can be
    reused across documents.

    Attributes:
        md: The markdown-it parser instance.
        code_font_family: Font used for code blocks and inline code.
    """

    def __init__(self, code_font_family: str | None = None) -> None:
        # Markdown tables are not enabled: table syntax degrades to paragraph text
        self.md = MarkdownIt("commonmark").enable("strikethrough").use(tasklists_plugin)
        self.code_font_family = code_font_family or get_docs_config().code_font_family
        self._inline = InlineStyleResolver(self.code_font_family)
        self._list_inline = InlineStyleResolver(self.code_font_family, keep_checkboxes=False)

    def convert(self, markdown_text: str, start_index: int = 1) -> list[Operation]:
        """
        Convert Markdown text to Google Docs operations.

        Args:
            markdown_text: The Markdown string to convert.
            start_index: The document index where the content is inserted (1-based).

        Returns:
            Operations in submission order. Empty for blank input.
        """
        if not markdown_text or not markdown_text.strip():
            return []

        builder = RequestBuilder(start_index)
        tree = SyntaxTreeNode(self.md.parse(markdown_text))
        for node in tree.children:
            self._handle_block(node, builder)

        operations = builder.build()
        logger.debug(f"Converted {len(markdown_text)} chars of Markdown into {len(operations)} operations")
        return operations

    def convert_to_requests(self, markdown_text: str, start_index: int = 1) -> list[dict[str, Any]]:
        """Like `convert()`, rendered as batchUpdate request dicts."""
        return to_requests(self.convert(markdown_text, start_index))

    def _handle_block(self, node: SyntaxTreeNode, builder: RequestBuilder) -> None:
        logger.debug(f"Block: type={node.type}, tag={node.tag}")

        if node.type == "heading":
            self._handle_heading(node, builder)
        elif node.type == "paragraph":
            self._handle_paragraph(node, builder)
        elif node.type in ("bullet_list", "ordered_list"):
            self._handle_list(node, builder)
        elif node.type in ("fence", "code_block"):
            self._handle_code_block(node, builder)
        elif node.type == "hr":
            builder.insert_horizontal_rule()
        else:
            for child in node.children:
                self._handle_block(child, builder)

    def _handle_heading(self, node: SyntaxTreeNode, builder: RequestBuilder) -> None:
        start = builder.cursor
        resolved = self._inline.resolve(_inline_child(node)) if node.children else None
        text = resolved.text if resolved else ""

        builder.insert_text(text + "\n")
        style_name = HEADING_STYLE_MAP.get(node.tag, "HEADING_1")
        builder.apply_paragraph_style(start, builder.cursor, style_name)

        if resolved:
            self._inline.apply_spans(builder, start, resolved)

    def _handle_paragraph(self, node: SyntaxTreeNode, builder: RequestBuilder) -> None:
        if not node.children:
            return
        resolved = self._inline.resolve(_inline_child(node))
        if not resolved.text:
            return

        start = builder.cursor
        builder.insert_text(resolved.text + "\n")
        self._inline.apply_spans(builder, start, resolved)

    def _handle_list(self, node: SyntaxTreeNode, builder: RequestBuilder) -> None:
        items = [child for child in node.children if child.type == "list_item"]
        if not items:
            return

        all_tasks = all(_is_task_item(item) for item in items)
        resolver = self._list_inline if all_tasks else self._inline

        text = ""
        for item in items:
            item_text = self._list_item_text(item, resolver)
            if all_tasks:
                item_text = item_text.lstrip()
            text += item_text + "\n"

        if all_tasks:
            preset = BULLET_PRESET_CHECKBOX
        elif node.type == "ordered_list":
            preset = BULLET_PRESET_ORDERED
        else:
            preset = BULLET_PRESET_UNORDERED

        start = builder.cursor
        builder.insert_text(text)
        builder.create_list(start, builder.cursor, preset)
        logger.debug(f"List of {len(items)} item(s) over [{start}, {builder.cursor}) preset={preset}")

    @staticmethod
    def _list_item_text(item: SyntaxTreeNode, resolver: InlineStyleResolver) -> str:
        # Only the item's own paragraphs; nested lists are not modelled
        paragraphs = [
            resolver.resolve(_inline_child(child)).text
            for child in item.children
            if child.type == "paragraph" and child.children
        ]
        return " ".join(p for p in paragraphs if p)

    def _handle_code_block(self, node: SyntaxTreeNode, builder: RequestBuilder) -> None:
        code = node.content
        if not code:
            return

        start = builder.cursor
        builder.insert_text(code)
        builder.apply_text_style(start, builder.cursor, monospace(self.code_font_family))
        builder.insert_text("\n")


def _inline_child(node: SyntaxTreeNode) -> SyntaxTreeNode:
    """The `inline` node holding a heading's or paragraph's inline content."""
    return node.children[0]


def _is_task_item(item: SyntaxTreeNode) -> bool:
    for child in item.children:
        if child.type == "paragraph" and child.children:
            inline = _inline_child(child)
            return bool(inline.children) and is_task_checkbox(inline.children[0])
    return False
