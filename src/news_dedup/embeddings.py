"""Embeddings Generation Module

Produces dense semantic vectors for article text using OpenAI's embedding
API. The dense vectorizer only depends on the narrow ``Embedder``
capability (``embed_batch(texts) -> list[list[float]]``), so tests and
offline runs can swap in a deterministic stub.

Key features:
  - Text truncation to fit embedding model context window
  - One request per batch with count and dimension validation
  - Exponential backoff retry logic for rate limiting
  - Per-request timeout
  - Fake embeddings mode for testing without API calls

Environment variables:
  OPENAI_API_KEY: Required API key for OpenAI (defaults to None)
  EMBEDDING_MODEL: Embedding model name (default: text-embedding-3-small)
  USE_FAKE_EMBEDDINGS: Set to '1' to use fake vectors for testing
  MAX_EMBEDDING_CHARS: Maximum characters per text (default: 8000)
"""

from typing import List, Optional, Protocol
import hashlib
import os
import time
import logging

import openai
from openai import OpenAI

logger = logging.getLogger(__name__)

# Created lazily so importing this module never requires an API key
client: Optional[OpenAI] = None
USE_FAKE_EMBEDDINGS = os.getenv("USE_FAKE_EMBEDDINGS", "0") == "1"

EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
FAKE_EMBEDDING_DIM = 8

# Conservative character limit to stay well under OpenAI's 8191 token limit
# (~4 chars/token average, using 8000 chars gives ~2000 tokens = safe margin)
MAX_EMBEDDING_CHARS = int(os.getenv("MAX_EMBEDDING_CHARS", "8000"))


class Embedder(Protocol):
    """Anything that turns a batch of texts into fixed-length vectors."""

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        ...


def get_client() -> OpenAI:
    """Return the shared OpenAI client, creating it on first use."""
    global client
    if client is None:
        client = OpenAI(api_key=os.getenv("OPENAI_API_KEY"))
    return client


def _truncate_for_embedding(text: str, max_chars: int = MAX_EMBEDDING_CHARS) -> str:
    """
    Truncate text to fit embedding model's context window.

    Strategy:
    - If text <= max_chars: return as-is
    - If text > max_chars: truncate at max_chars, then backtrack to last space
      to avoid breaking words (if space found in last 20% of truncated text)

    Args:
        text: Input text to truncate
        max_chars: Maximum characters to keep

    Returns:
        Truncated text, guaranteed to be <= max_chars characters
    """
    if not text:
        return ""

    if len(text) <= max_chars:
        return text

    original_len = len(text)
    truncated = text[:max_chars]

    # Only backtrack if space is in last 20% (avoids over-truncating)
    last_space = truncated.rfind(" ")
    if last_space > int(max_chars * 0.8):
        truncated = truncated[:last_space]

    logger.info(
        "Truncated text for embedding: %d -> %d chars (%.1f%% reduction)",
        original_len,
        len(truncated),
        100 * (original_len - len(truncated)) / original_len,
    )

    return truncated


def _fake_vector(text: str, dim: int = FAKE_EMBEDDING_DIM) -> List[float]:
    """Deterministic pseudo-embedding derived from a hash of the text."""
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    return [(digest[i % len(digest)] / 255.0) - 0.5 for i in range(dim)]


def embed_texts(
    texts: List[str],
    model: str = EMBEDDING_MODEL,
    max_chars: int = MAX_EMBEDDING_CHARS,
    timeout: Optional[float] = None,
) -> List[List[float]]:
    """
    Embed a batch of texts with a single OpenAI API request.

    Args:
        texts: Texts to embed, sent together in one request
        model: OpenAI embedding model (default: text-embedding-3-small)
        max_chars: Character limit per text (default: 8000)
        timeout: Per-request timeout in seconds (None = client default)

    Returns:
        One embedding vector per text, in input order

    Raises:
        ValueError: If the response count or dimensions are inconsistent
        Exception: On OpenAI API errors
    """
    if not texts:
        logger.debug("embed_texts called with empty list; returning []")
        return []

    if USE_FAKE_EMBEDDINGS:
        logger.warning(
            "USE_FAKE_EMBEDDINGS=1 set; returning hash-based fake vectors instead "
            "of calling OpenAI. Similarity scores are meaningless in this mode."
        )
        return [_fake_vector(text) for text in texts]

    processed_texts = [
        _truncate_for_embedding(text, max_chars) for text in texts
    ]
    api = get_client()

    try:
        logger.debug(
            "Calling OpenAI embeddings API: model=%s, size=%d",
            model, len(processed_texts)
        )

        request = {"model": model, "input": processed_texts}
        if timeout is not None:
            request["timeout"] = timeout
        response = api.embeddings.create(**request)

        vectors = [list(item.embedding) for item in response.data]
        if len(vectors) != len(texts):
            raise ValueError(
                f"Expected {len(texts)} embeddings, received {len(vectors)}"
            )

        expected_dim = len(vectors[0])
        for idx, vec in enumerate(vectors):
            if len(vec) != expected_dim:
                raise ValueError(
                    f"Inconsistent embedding dimension at index {idx}: "
                    f"expected {expected_dim}, got {len(vec)}"
                )

        logger.debug("Generated %d embeddings (dim=%d)", len(vectors), expected_dim)
        return vectors

    except Exception:
        logger.exception(
            "Failed to generate embeddings for %d texts", len(texts)
        )
        raise


def embed_texts_with_retry(
    texts: List[str],
    model: str = EMBEDDING_MODEL,
    max_chars: int = MAX_EMBEDDING_CHARS,
    max_retries: int = 5,
    timeout: Optional[float] = None,
) -> List[List[float]]:
    """
    Wraps embed_texts to handle rate limiting with retries.
    Retries up to `max_retries` times with exponential backoff.
    """
    retries = 0
    while True:
        try:
            return embed_texts(
                texts,
                model=model,
                max_chars=max_chars,
                timeout=timeout,
            )
        except openai.RateLimitError as e:
            retries += 1
            # For pure "insufficient_quota" errors, retries won't help - fail fast
            if getattr(e, "code", None) == "insufficient_quota" or "insufficient_quota" in str(e):
                logger.error("Insufficient quota - cannot retry. Error: %s", e)
                raise

            if retries > max_retries:
                logger.error(
                    "Max retries exceeded (%d). Last error: %s",
                    max_retries,
                    e,
                )
                raise

            wait_time = 2 ** retries
            logger.warning(
                "Rate limit error from OpenAI (attempt %d/%d). "
                "Sleeping for %d seconds before retry. Error: %s",
                retries,
                max_retries,
                wait_time,
                e,
            )
            time.sleep(wait_time)


class OpenAIEmbedder:
    """Embedder backed by the OpenAI embeddings endpoint, one request per batch."""

    def __init__(
        self,
        model: str = EMBEDDING_MODEL,
        timeout: Optional[float] = None,
        max_retries: int = 5,
    ):
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        return embed_texts_with_retry(
            texts,
            model=self.model,
            max_retries=self.max_retries,
            timeout=self.timeout,
        )

    def __repr__(self) -> str:
        return f"OpenAIEmbedder(model={self.model!r})"
