"""Text Transformation Module

Provides the text cleaning applied to collected documents before they are
vectorized.

Key responsibilities:
  - Clean collector output (whitespace noise, CSV delimiter characters)
  - Normalize article content into a canonical token stream: lowercase,
    no diacritics, no markup, letters only, stopwords removed
  - Normalize whole Document records without mutating the originals
"""

import re
import unicodedata
from typing import AbstractSet, List, Optional

from .models import Document
from .stopwords import get_stopwords

import logging

logger = logging.getLogger(__name__)

# Regex patterns (define at module level for performance)
TAG_RE = re.compile(r'</?[^>]+(>|$)')  # an unterminated tag runs to the end
NON_LETTER_RE = re.compile(r'[^a-z\s]')
WHITESPACE_RE = re.compile(r'\s+')


def clean_text(text: str) -> str:
    """
    Clean a raw field as handed over by a collector.

    Steps:
    1. Collapse every whitespace run (newlines, tabs, nbsp) to one space
    2. Replace ';' with a space so the field never breaks the CSV output
    3. Strip leading/trailing whitespace

    Args:
        text: Raw field value

    Returns:
        Cleaned single-line string, or empty string if nothing remains
    """
    if not text:
        return ""

    text = WHITESPACE_RE.sub(" ", text)
    text = text.replace(";", " ")
    return text.strip()


def strip_diacritics(text: str) -> str:
    """Decompose accented characters (NFD) and drop the combining marks."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_text(text: str, stopwords: Optional[AbstractSet[str]] = None) -> str:
    """
    Normalize article content for vectorization.

    Steps (order matters):
    1. Lowercase
    2. Strip diacritics
    3. Remove angle-bracket markup
    4. Drop every character that is not a-z or whitespace
    5. Split on whitespace, remove stopwords, rejoin with single spaces
    6. Trim

    The result only contains lowercase ASCII letters separated by single
    spaces, and normalizing it again returns it unchanged.

    Args:
        text: Raw content
        stopwords: Tokens to drop (defaults to the English list)

    Returns:
        Normalized text, empty string for empty input
    """
    if not text:
        return ""

    if stopwords is None:
        stopwords = get_stopwords()

    text = text.lower()
    text = strip_diacritics(text)
    text = TAG_RE.sub("", text)
    text = NON_LETTER_RE.sub("", text)

    tokens = [token for token in text.split() if token not in stopwords]
    return " ".join(tokens).strip()


def normalize_document(
    doc: Document,
    stopwords: Optional[AbstractSet[str]] = None,
) -> Document:
    """Return a copy of ``doc`` whose content is normalized."""
    return doc.model_copy(update={"content": normalize_text(doc.content, stopwords)})


def normalize_documents(
    docs: List[Document],
    stopwords: Optional[AbstractSet[str]] = None,
) -> List[Document]:
    """Normalize every document of a batch, preserving order."""
    if stopwords is None:
        stopwords = get_stopwords()

    normalized = [normalize_document(doc, stopwords) for doc in docs]

    empty = sum(1 for doc in normalized if not doc.content)
    if empty:
        logger.warning(
            "%d/%d documents have no content left after normalization",
            empty,
            len(normalized),
        )
    return normalized
