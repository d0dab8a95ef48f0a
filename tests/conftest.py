"""Shared pytest fixtures for gdocs-writer tests."""

from unittest.mock import MagicMock

import pytest

from core.retry import RetryConfig


def _paragraph(start_index: int, text: str, named_style: str = "NORMAL_TEXT") -> dict:
    end_index = start_index + len(text)
    return {
        "startIndex": start_index,
        "endIndex": end_index,
        "paragraph": {
            "elements": [{"startIndex": start_index, "endIndex": end_index, "textRun": {"content": text}}],
            "paragraphStyle": {"namedStyleType": named_style},
        },
    }


def _table(start_index: int, rows: int, columns: int) -> dict:
    """An empty table laid out the way the Docs API reports one."""
    index = start_index + 1
    table_rows = []
    for _ in range(rows):
        row_start = index
        index += 1
        cells = []
        for _ in range(columns):
            cell_start = index
            cells.append(
                {
                    "startIndex": cell_start,
                    "endIndex": cell_start + 2,
                    "content": [_paragraph(cell_start + 1, "\n")],
                }
            )
            index += 2
        table_rows.append({"startIndex": row_start, "endIndex": index, "tableCells": cells})
    return {
        "startIndex": start_index,
        "endIndex": index + 1,
        "table": {"rows": rows, "columns": columns, "tableRows": table_rows},
    }


def make_document(*blocks) -> dict:
    """
    Build a document snapshot from blocks.

    Each block is a paragraph string, a ("heading", level, text) tuple or a
    ("table", rows, columns) tuple. Indices are laid out contiguously from 1,
    after the section break at 0.
    """
    content = [{"endIndex": 1, "sectionBreak": {}}]
    index = 1
    for block in blocks:
        if isinstance(block, str):
            element = _paragraph(index, block)
        elif block[0] == "heading":
            _, level, text = block
            element = _paragraph(index, text, f"HEADING_{level}")
        else:
            _, rows, columns = block
            element = _table(index, rows, columns)
        content.append(element)
        index = element["endIndex"]
    return {"documentId": "doc123", "title": "Test Doc", "body": {"content": content}}


@pytest.fixture
def document_factory():
    """Factory for document snapshots: document_factory("Hello\\n", ("table", 2, 2))."""
    return make_document


@pytest.fixture
def empty_document():
    return make_document("\n")


@pytest.fixture
def mock_docs_service():
    """Create a mock Google Docs service with an empty document."""
    service = MagicMock()
    documents = service.documents.return_value
    documents.get.return_value.execute.return_value = make_document("\n")
    documents.batchUpdate.return_value.execute.return_value = {"documentId": "doc123", "replies": []}
    documents.create.return_value.execute.return_value = {"documentId": "new-doc", "title": "New Doc"}
    return service


@pytest.fixture
def fast_retry():
    """Retry policy with no backoff delay."""
    return RetryConfig(max_attempts=3, initial_backoff=0.0, max_backoff=0.0)


@pytest.fixture
def env_override(monkeypatch):
    """Helper to override environment variables."""

    def _override(**kwargs):
        for key, value in kwargs.items():
            if value is None:
                monkeypatch.delenv(key, raising=False)
            else:
                monkeypatch.setenv(key, value)

    return _override


@pytest.fixture
def submitted_requests():
    """Returns the request lists passed to each batchUpdate call on a mock service, in call order."""

    def _submitted(service) -> list[list[dict]]:
        calls = service.documents.return_value.batchUpdate.call_args_list
        return [call.kwargs["body"]["requests"] for call in calls]

    return _submitted
