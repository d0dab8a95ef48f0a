"""
Google Docs Writing

`DocsWriter` submits compiled operations to a Google Docs service object. Every
remote call runs in a worker thread via `asyncio.to_thread` and is retried on
transient failures.

Content containing tables is written in two phases: the first batch creates the
tables, then a fresh snapshot supplies their cell indices and a second batch per
table fills them in. The phases are not atomic; if the second one fails, the
first phase's content stays in the document.
"""

import asyncio
import csv
import io
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from googleapiclient.errors import HttpError
from pydantic import ValidationError as PydanticValidationError

from core.config import get_docs_config
from core.errors import APIError, ResourceNotFoundError, TablePopulationError, ValidationError, handle_http_error
from core.retry import RetryConfig, with_retry
from gdocs.docs_helpers import (
    build_paragraph_style,
    find_sections,
    get_end_index,
    validate_indent_level,
    validate_list_items,
    validate_list_type,
)
from gdocs.markdown_parser import MarkdownToDocsConverter
from gdocs.operations import DeleteRange, Operation, StyleRange, to_requests
from gdocs.request_builder import RequestBuilder
from gdocs.tables import PendingTable, resolve_pending_tables
from gdocs.templates import DocumentTemplate, TemplateStyle, add_list, add_styled_text, compile_template, parse_template

logger = logging.getLogger(__name__)

# The public API cannot create a table of contents; this marker stands in for one
TOC_PLACEHOLDER = "[Table of Contents]\n\n"


@dataclass
class UpdateResult:
    document_id: str
    operations_applied: int = 0
    tables_populated: int = 0

    @property
    def link(self) -> str:
        return f"https://docs.google.com/document/d/{self.document_id}/edit"


@dataclass
class CreateResult:
    document_id: str
    title: str

    @property
    def link(self) -> str:
        return f"https://docs.google.com/document/d/{self.document_id}/edit"


class DocsWriter:
    """
    Write operations against one Google Docs API service.

    Args:
        service: An authorized `googleapiclient` Docs v1 service.
        retry_config: Retry policy for every remote call. Defaults to the
            environment-driven configuration.
        code_font_family: Font for Markdown code. Defaults to the configured font.
        sleep: Awaitable sleep used between retries.
    """

    def __init__(
        self,
        service: Any,
        retry_config: RetryConfig | None = None,
        code_font_family: str | None = None,
        sleep: Callable = asyncio.sleep,
    ) -> None:
        self.service = service
        self.retry_config = retry_config or get_docs_config().retry_config()
        self.converter = MarkdownToDocsConverter(code_font_family)
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Remote calls
    # ------------------------------------------------------------------

    async def _execute(self, make_request: Callable[[], Any], operation: str, document_id: str | None) -> Any:
        async def attempt():
            return await asyncio.to_thread(make_request().execute)

        try:
            return await with_retry(attempt, self.retry_config, operation=operation, sleep=self._sleep)
        except HttpError as e:
            logger.error(f"[{operation}] Google API error for Doc={document_id}: {e}", exc_info=True)
            raise handle_http_error(e, document_id) from e

    async def get_document(self, document_id: str) -> dict[str, Any]:
        """Fetch a fresh snapshot of the document."""
        return await self._execute(
            lambda: self.service.documents().get(documentId=document_id),
            "get_document",
            document_id,
        )

    async def submit(
        self, document_id: str, operations: list[Operation], operation: str = "batch_update"
    ) -> dict[str, Any] | None:
        """
        Submit operations as one batchUpdate, in order.

        Returns the API response, or None when there was nothing to submit.
        """
        if not operations:
            logger.debug(f"[{operation}] Nothing to submit for Doc={document_id}")
            return None
        return await self.submit_requests(document_id, to_requests(operations), operation)

    async def submit_requests(
        self, document_id: str, requests: list[dict[str, Any]], operation: str = "batch_update"
    ) -> dict[str, Any]:
        """Submit already-rendered request dicts as one batchUpdate."""
        logger.debug(f"[{operation}] Submitting {len(requests)} request(s) to Doc={document_id}")
        return await self._execute(
            lambda: self.service.documents().batchUpdate(documentId=document_id, body={"requests": requests}),
            operation,
            document_id,
        )

    @staticmethod
    def get_end_index(document: dict[str, Any]) -> int:
        return get_end_index(document)

    async def _end_index(self, document_id: str) -> int:
        return get_end_index(await self.get_document(document_id))

    async def _populate_tables(self, document_id: str, jobs: list[PendingTable]) -> int:
        """
        Second phase: resolve jobs against a fresh snapshot and fill each table.

        Returns the number of tables that received content.

        Raises:
            TablePopulationError: If any snapshot, resolution or submission fails.
        """
        if not any(job.has_content for job in jobs):
            return 0

        populated = 0
        try:
            document = await self.get_document(document_id)
            resolve_pending_tables(jobs, document)
            for job in jobs:
                operations = job.build_operations() if job.has_content else []
                if operations:
                    await self.submit(document_id, operations, "populate_table")
                    populated += 1
                job.mark_populated()
        except TablePopulationError as e:
            e.document_id = e.document_id or document_id
            raise
        except APIError as e:
            raise TablePopulationError(
                f"Content was written but failed to populate table: {e}",
                status_code=e.status_code,
                document_id=document_id,
            ) from e

        logger.info(f"Populated {populated} table(s) in Doc={document_id}")
        return populated

    # ------------------------------------------------------------------
    # Markdown and templates
    # ------------------------------------------------------------------

    async def insert_markdown(self, document_id: str, markdown: str) -> UpdateResult:
        """Append Markdown content to the end of the document."""
        logger.info(f"[insert_markdown] Doc={document_id}, length={len(markdown)}")

        end_index = await self._end_index(document_id)
        operations = self.converter.convert(markdown, start_index=end_index)
        await self.submit(document_id, operations, "insert_markdown")
        return UpdateResult(document_id=document_id, operations_applied=len(operations))

    async def replace_from_markdown(self, document_id: str, markdown: str) -> UpdateResult:
        """Clear the document body, then insert Markdown content."""
        logger.info(f"[replace_from_markdown] Doc={document_id}, length={len(markdown)}")

        end_index = await self._end_index(document_id)
        if end_index > 1:
            await self.submit(document_id, [DeleteRange(range=StyleRange(1, end_index))], "clear_body")
        return await self.insert_markdown(document_id, markdown)

    async def apply_template(
        self, document_id: str, template: DocumentTemplate | dict[str, Any] | str
    ) -> UpdateResult:
        """
        Append a content template to the end of the document.

        The template is validated before anything is read or written.

        Raises:
            TemplateValidationError: If the template is invalid. Nothing is submitted.
            TablePopulationError: If tables were created but could not be filled.
        """
        logger.info(f"[apply_template] Doc={document_id}")
        tmpl = parse_template(template)

        end_index = await self._end_index(document_id)
        compiled = compile_template(tmpl, start_index=end_index)
        await self.submit(document_id, compiled.operations, "apply_template")

        tables_populated = await self._populate_tables(document_id, compiled.pending_tables)
        return UpdateResult(
            document_id=document_id,
            operations_applied=len(compiled.operations),
            tables_populated=tables_populated,
        )

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    async def append_text(self, document_id: str, text: str) -> UpdateResult:
        logger.info(f"[append_text] Doc={document_id}, length={len(text)}")
        if not text:
            raise ValidationError("text cannot be empty")

        builder = RequestBuilder(await self._end_index(document_id))
        builder.insert_text(text)
        return await self._submit_builder(document_id, builder, "append_text")

    async def prepend_text(self, document_id: str, text: str) -> UpdateResult:
        logger.info(f"[prepend_text] Doc={document_id}, length={len(text)}")
        if not text:
            raise ValidationError("text cannot be empty")

        builder = RequestBuilder(1)
        builder.insert_text(text)
        return await self._submit_builder(document_id, builder, "prepend_text")

    async def insert_toc(self, document_id: str) -> UpdateResult:
        """Prepend a table of contents placeholder for the user to replace in the editor."""
        logger.info(f"[insert_toc] Doc={document_id}")
        builder = RequestBuilder(1)
        builder.insert_text(TOC_PLACEHOLDER)
        return await self._submit_builder(document_id, builder, "insert_toc")

    async def update_section(self, document_id: str, heading: str, content: str) -> UpdateResult:
        """
        Replace the body of the section whose heading text matches.

        The body runs from the end of the heading paragraph to the start of the
        next heading of any level, or to the end of the document. The old body is
        deleted and the content is inserted as its own paragraph after the heading.

        Raises:
            ValidationError: If heading is blank.
            ResourceNotFoundError: If no heading matches.
        """
        logger.info(f"[update_section] Doc={document_id}, heading='{heading}', length={len(content)}")
        if not heading or not heading.strip():
            raise ValidationError("heading cannot be empty")

        document = await self.get_document(document_id)
        sections = find_sections(document)
        target = heading.strip()
        for position, section in enumerate(sections):
            if section["heading"] == target:
                break
        else:
            raise ResourceNotFoundError(f"Section not found: {target}")

        end_index = get_end_index(document)
        heading_end = section["end_index"]
        if position + 1 < len(sections):
            body_end = sections[position + 1]["start_index"]
        else:
            body_end = end_index

        builder = RequestBuilder(min(heading_end, end_index))
        if body_end > heading_end:
            builder.delete_range(heading_end, body_end)
        start = builder.cursor
        builder.insert_text("\n" + content + "\n")
        if heading_end > end_index:
            # Heading is the last paragraph: the text splits it and would inherit its heading style
            builder.apply_paragraph_style(start + 1, builder.cursor, "NORMAL_TEXT")

        logger.debug(f"[update_section] Section '{target}' body [{heading_end}, {body_end})")
        return await self._submit_builder(document_id, builder, "update_section")

    async def batch_update(self, document_id: str, requests: list[dict[str, Any]] | str) -> UpdateResult:
        """
        Submit raw batchUpdate requests, given as a list of dicts or a JSON array.

        Requests are passed through unchanged, with the same retry and error handling
        as every other write.
        """
        if isinstance(requests, str):
            try:
                requests = json.loads(requests)
            except json.JSONDecodeError as e:
                raise ValidationError(f"failed to parse requests JSON: {e}") from e
        if not isinstance(requests, list) or not all(isinstance(r, dict) for r in requests):
            raise ValidationError("requests must be a list of request objects")
        if not requests:
            raise ValidationError("requests cannot be empty")

        logger.info(f"[batch_update] Doc={document_id}, requests={len(requests)}")
        await self.submit_requests(document_id, requests, "batch_update")
        return UpdateResult(document_id=document_id, operations_applied=len(requests))

    async def append_formatted(
        self, document_id: str, text: str, style: TemplateStyle | dict[str, Any] | None = None
    ) -> UpdateResult:
        """
        Append text with formatting.

        Args:
            style: bold, italic, underline, strikethrough, font_size, font_family,
                color, bg_color, named_style and alignment, as in template styles.
        """
        logger.info(f"[append_formatted] Doc={document_id}, length={len(text)}")
        if not text:
            raise ValidationError("text cannot be empty")
        if not isinstance(style, TemplateStyle):
            try:
                style = TemplateStyle.model_validate(style or {})
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid style: {e}") from e

        builder = RequestBuilder(await self._end_index(document_id))
        add_styled_text(builder, text, style)
        return await self._submit_builder(document_id, builder, "append_formatted")

    async def insert_list(self, document_id: str, list_type: str, items: list[str], indent: int = 0) -> UpdateResult:
        logger.info(f"[insert_list] Doc={document_id}, type={list_type}, items={len(items or [])}")
        try:
            validate_list_type(list_type)
            validate_list_items(items)
            validate_indent_level(indent)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        builder = RequestBuilder(await self._end_index(document_id))
        add_list(builder, list_type, items, indent)
        return await self._submit_builder(document_id, builder, "insert_list")

    async def format_paragraph(
        self,
        document_id: str,
        start_index: int,
        end_index: int,
        alignment: str = "",
        indent_start: float = 0,
        indent_end: float = 0,
        indent_first_line: float = 0,
        line_spacing: float = 0,
        space_above: float = 0,
        space_below: float = 0,
    ) -> UpdateResult:
        """Apply paragraph formatting to the paragraphs overlapping [start_index, end_index)."""
        logger.info(f"[format_paragraph] Doc={document_id}, range={start_index}-{end_index}")
        if start_index < 0 or end_index < start_index:
            raise ValidationError(f"invalid range: start_index={start_index}, end_index={end_index}")
        try:
            paragraph_style, fields = build_paragraph_style(
                alignment=alignment,
                indent_start=indent_start,
                indent_end=indent_end,
                indent_first_line=indent_first_line,
                line_spacing=line_spacing,
                space_above=space_above,
                space_below=space_below,
            )
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if not fields:
            raise ValidationError("no formatting options specified")

        builder = RequestBuilder()
        builder.format_paragraph(start_index, end_index, paragraph_style, ",".join(fields))
        return await self._submit_builder(document_id, builder, "format_paragraph")

    async def replace_text(self, document_id: str, find: str, replace: str, match_case: bool = False) -> UpdateResult:
        logger.info(f"[replace_text] Doc={document_id}, find='{find}', replace='{replace}'")
        if not find:
            raise ValidationError("find text cannot be empty")

        builder = RequestBuilder()
        builder.replace_all_text(find, replace, match_case)
        operations = builder.build()
        result = await self.submit(document_id, operations, "replace_text")

        replies = (result or {}).get("replies") or [{}]
        occurrences = replies[0].get("replaceAllText", {}).get("occurrencesChanged", 0)
        logger.info(f"[replace_text] Replaced {occurrences} occurrence(s) in Doc={document_id}")
        return UpdateResult(document_id=document_id, operations_applied=len(operations))

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    async def insert_table(
        self,
        document_id: str,
        rows: int,
        columns: int,
        headers: list[str] | None = None,
        data: list[list[str]] | None = None,
    ) -> UpdateResult:
        """
        Append a table, then fill it with headers and data if given.

        Raises:
            TablePopulationError: If the table was created but could not be filled.
        """
        logger.info(f"[insert_table] Doc={document_id}, size={rows}x{columns}")
        if rows < 1 or columns < 1:
            raise ValidationError("rows and columns must be at least 1")

        builder = RequestBuilder(await self._end_index(document_id))
        builder.insert_table(rows, columns)
        operations = builder.build()
        await self.submit(document_id, operations, "insert_table")

        job = PendingTable(rows=rows, columns=columns, headers=list(headers or []), data=list(data or []))
        tables_populated = await self._populate_tables(document_id, [job])
        return UpdateResult(
            document_id=document_id,
            operations_applied=len(operations),
            tables_populated=tables_populated,
        )

    async def insert_table_from_csv(self, document_id: str, csv_text: str, has_headers: bool = True) -> UpdateResult:
        """Append a table built from CSV text. The first record sets the column count."""
        try:
            records = list(csv.reader(io.StringIO(csv_text)))
        except csv.Error as e:
            raise ValidationError(f"failed to parse CSV: {e}") from e
        records = [record for record in records if record]
        if not records:
            raise ValidationError("CSV data is empty")

        columns = len(records[0])
        if has_headers:
            headers, data = records[0], records[1:]
        else:
            headers, data = [], records
        return await self.insert_table(document_id, len(records), columns, headers=headers, data=data)

    async def insert_page_break(self, document_id: str) -> UpdateResult:
        logger.info(f"[insert_page_break] Doc={document_id}")
        builder = RequestBuilder(await self._end_index(document_id))
        builder.insert_page_break()
        return await self._submit_builder(document_id, builder, "insert_page_break")

    async def insert_horizontal_rule(self, document_id: str) -> UpdateResult:
        logger.info(f"[insert_horizontal_rule] Doc={document_id}")
        builder = RequestBuilder(await self._end_index(document_id))
        builder.insert_horizontal_rule()
        return await self._submit_builder(document_id, builder, "insert_horizontal_rule")

    async def create_document(self, title: str, content: str = "") -> CreateResult:
        """Create a new document, optionally with initial plain text content."""
        logger.info(f"[create_document] Title='{title}'")
        doc = await self._execute(
            lambda: self.service.documents().create(body={"title": title}),
            "create_document",
            None,
        )
        doc_id = doc.get("documentId")
        if content:
            await self.append_text(doc_id, content)

        logger.info(f"Successfully created Google Doc '{title}' (ID: {doc_id})")
        return CreateResult(document_id=doc_id, title=doc.get("title", title))

    async def _submit_builder(self, document_id: str, builder: RequestBuilder, operation: str) -> UpdateResult:
        operations = builder.build()
        await self.submit(document_id, operations, operation)
        return UpdateResult(document_id=document_id, operations_applied=len(operations))
