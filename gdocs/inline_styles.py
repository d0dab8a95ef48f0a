"""
Inline style resolution for Markdown blocks.

Walks the inline children of one block (a heading or paragraph) with a running
offset from the block start. Text extraction and style ranges come from the
same walk, so the ranges always line up with the inserted text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from core.config import DEFAULT_CODE_FONT_FAMILY
from gdocs.operations import BOLD, ITALIC, STRIKETHROUGH, TextStyle, hyperlink, monospace
from gdocs.request_builder import utf16_len

if TYPE_CHECKING:
    from markdown_it.tree import SyntaxTreeNode

    from gdocs.request_builder import RequestBuilder

logger = logging.getLogger(__name__)

# Task list checkbox characters (Unicode ballot box symbols)
CHECKBOX_UNCHECKED = "☐"  # U+2610 BALLOT BOX
CHECKBOX_CHECKED = "☑"  # U+2611 BALLOT BOX WITH CHECK

TASK_CHECKBOX_MARKER = 'class="task-list-item-checkbox"'


def is_task_checkbox(node: SyntaxTreeNode) -> bool:
    """True for the html_inline node the tasklists plugin emits for `[ ]` / `[x]`."""
    return node.type == "html_inline" and TASK_CHECKBOX_MARKER in node.content


@dataclass
class ResolvedInline:
    """Plain text of a block plus style spans relative to the block start."""

    text: str = ""
    spans: list[tuple[int, int, TextStyle]] = field(default_factory=list)


class InlineStyleResolver:
    """
    Resolves an inline syntax tree into text and [start, end) style spans.

    Leaf rules: text advances by its UTF-16 length, a soft break becomes a space
    and a hard break a newline (1 each). Strong, emphasis, code spans, links and
    strikethrough each contribute a span when the range they cover is non-empty.
    """

    def __init__(self, code_font_family: str = DEFAULT_CODE_FONT_FAMILY, keep_checkboxes: bool = True) -> None:
        self.code_font_family = code_font_family
        self.keep_checkboxes = keep_checkboxes

    def resolve(self, node: SyntaxTreeNode) -> ResolvedInline:
        result = ResolvedInline()
        parts: list[str] = []
        self._walk(node, 0, parts, result.spans)
        result.text = "".join(parts)
        return result

    @staticmethod
    def apply_spans(builder: RequestBuilder, block_start: int, resolved: ResolvedInline) -> None:
        """Append one text-style operation per span, shifted to absolute indices.

        Call after the block's text has been inserted at block_start.
        """
        for start, end, style in resolved.spans:
            builder.apply_text_style(block_start + start, block_start + end, style)

    def _walk(
        self,
        node: SyntaxTreeNode,
        offset: int,
        parts: list[str],
        spans: list[tuple[int, int, TextStyle]],
    ) -> int:
        for child in node.children:
            offset = self._visit(child, offset, parts, spans)
        return offset

    def _visit(
        self,
        node: SyntaxTreeNode,
        offset: int,
        parts: list[str],
        spans: list[tuple[int, int, TextStyle]],
    ) -> int:
        node_type = node.type

        if node_type == "text":
            return self._emit(node.content, offset, parts)
        if node_type == "softbreak":
            return self._emit(" ", offset, parts)
        if node_type == "hardbreak":
            return self._emit("\n", offset, parts)
        if node_type == "code_inline":
            start = offset
            offset = self._emit(node.content, offset, parts)
            self._add_span(spans, start, offset, monospace(self.code_font_family))
            return offset
        if node_type == "html_inline":
            if is_task_checkbox(node):
                if not self.keep_checkboxes:
                    return offset
                checked = 'checked="checked"' in node.content
                return self._emit(CHECKBOX_CHECKED if checked else CHECKBOX_UNCHECKED, offset, parts)
            # Raw inline HTML is kept as literal text
            return self._emit(node.content, offset, parts)

        style = self._style_for(node)
        start = offset
        offset = self._walk(node, offset, parts, spans)
        if style is not None:
            self._add_span(spans, start, offset, style)
        return offset

    def _style_for(self, node: SyntaxTreeNode) -> TextStyle | None:
        if node.type == "strong":
            return BOLD
        if node.type == "em":
            return ITALIC
        if node.type == "s":
            return STRIKETHROUGH
        if node.type == "link":
            href = node.attrs.get("href", "")
            return hyperlink(str(href)) if href else None
        return None

    @staticmethod
    def _emit(text: str, offset: int, parts: list[str]) -> int:
        if not text:
            return offset
        parts.append(text)
        return offset + utf16_len(text)

    @staticmethod
    def _add_span(spans: list[tuple[int, int, TextStyle]], start: int, end: int, style: TextStyle) -> None:
        if end > start:
            spans.append((start, end, style))
            logger.debug(f"Inline span [{start}, {end}) {style.fields_mask()}")


def extract_inline_text(node: SyntaxTreeNode, keep_checkboxes: bool = True) -> str:
    """Plain text of an inline tree, using the same leaf rules as the resolver."""
    return InlineStyleResolver(keep_checkboxes=keep_checkboxes).resolve(node).text
