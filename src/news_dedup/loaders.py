"""Data Loader Module

Provides utilities to load collected news documents from JSON files and
turn them into Document records. Collectors do not always manage to
extract every field; missing values are replaced with explicit
placeholders so one bad source never silently shrinks the batch.
"""

import json
import logging
from pathlib import Path
from typing import List, Dict, Any

from .models import Document
from .transformers import clean_text

logger = logging.getLogger(__name__)

TITLE_PLACEHOLDER = "title unavailable"
CONTENT_PLACEHOLDER = "content unavailable"
SOURCE_PLACEHOLDER = "source unavailable"
DATE_PLACEHOLDER = "date unavailable"

_FIELD_ALIASES = {
    "title": ("title", "headline"),
    "content": ("content", "text", "body"),
    "source": ("source", "website"),
    "date": ("date", "publication_date", "published_at"),
}

_PLACEHOLDERS = {
    "title": TITLE_PLACEHOLDER,
    "content": CONTENT_PLACEHOLDER,
    "source": SOURCE_PLACEHOLDER,
    "date": DATE_PLACEHOLDER,
}


def load_raw_documents(path: str | Path) -> List[Dict[str, Any]]:
    """Load raw documents from a JSON file.

    Supports flexible input formats:
      - Direct list of documents: [{...}, {...}, ...]
      - Wrapped in 'documents' key: {"documents": [...]}
      - Wrapped in 'results' key: {"results": [...]}

    Args:
        path: File path to JSON file containing raw documents

    Returns:
        List of raw document dictionaries

    Raises:
        FileNotFoundError: If file does not exist
        json.JSONDecodeError: If file is not valid JSON
        ValueError: If the top-level value is neither a list nor an object
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, list):
        return data
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a JSON list of documents or an object wrapping one, "
            f"got {type(data).__name__}"
        )
    # fall back if wrapped
    return data.get("documents") or data.get("results") or []


def _first_value(raw: Dict[str, Any], field: str) -> str:
    for key in _FIELD_ALIASES[field]:
        value = raw.get(key)
        if value is None:
            continue
        cleaned = clean_text(str(value))
        if cleaned:
            return cleaned
    return ""


def to_document(raw: Dict[str, Any]) -> Document:
    """Build a Document from a raw record, substituting placeholders for gaps."""
    values = {}
    for field, placeholder in _PLACEHOLDERS.items():
        value = _first_value(raw, field)
        if not value:
            logger.warning(
                "Document %r has no usable %s; using placeholder",
                raw.get("title") or raw.get("headline"),
                field,
            )
            value = placeholder
        values[field] = value
    return Document(**values)


def load_documents(path: str | Path) -> List[Document]:
    """Load a JSON file and convert every record into a Document."""
    raw_docs = load_raw_documents(path)
    documents: List[Document] = []
    for idx, raw in enumerate(raw_docs):
        if not isinstance(raw, dict):
            logger.warning(
                "Record %d is not an object (got %s); using placeholders",
                idx,
                type(raw).__name__,
            )
            raw = {}
        documents.append(to_document(raw))
    return documents
