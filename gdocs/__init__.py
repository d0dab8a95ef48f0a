"""
Google Docs Package

Compiles Markdown and content templates into Google Docs batchUpdate operations
and writes them to documents.
"""

from gdocs.markdown_parser import MarkdownToDocsConverter
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
    to_requests,
)
from gdocs.request_builder import RequestBuilder, utf16_len
from gdocs.tables import PendingTable, TableState, find_table_near, find_tables, resolve_pending_tables
from gdocs.templates import CompiledTemplate, DocumentTemplate, TemplateCompiler, compile_template, parse_template
from gdocs.writing import CreateResult, DocsWriter, UpdateResult

__all__ = [
    "ApplyParagraphStyle",
    "ApplyTextStyle",
    "CompiledTemplate",
    "compile_template",
    "CreateList",
    "CreateResult",
    "DeleteRange",
    "DocsWriter",
    "DocumentTemplate",
    "find_table_near",
    "find_tables",
    "InsertPageBreak",
    "InsertTable",
    "InsertText",
    "MarkdownToDocsConverter",
    "Operation",
    "parse_template",
    "PendingTable",
    "ReplaceAllText",
    "RequestBuilder",
    "resolve_pending_tables",
    "StyleRange",
    "TableState",
    "TemplateCompiler",
    "TextStyle",
    "to_requests",
    "UpdateParagraphFormat",
    "UpdateResult",
    "utf16_len",
]
