"""Vectorization Strategies

Maps a whole batch of normalized texts to vectors. One strategy is chosen
per run:

  - TfidfVectorizer ("sparse"): corpus-relative term weighting on top of
    scikit-learn. Corpus statistics depend on every document, so the batch
    is processed in two explicit phases: fit the vocabulary and idf on all
    texts, then weight all texts.
  - EmbeddingVectorizer ("dense"): texts are sent to an external Embedder in
    batches, fanned out over a thread pool and joined before returning.

Both raise VectorizationError instead of returning a partial batch.
"""

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Dict, List, Optional
import logging
import time

from sklearn.feature_extraction.text import TfidfVectorizer as SklearnTfidfVectorizer

from .embeddings import Embedder, OpenAIEmbedder
from .errors import ConfigurationError, VectorizationError
from .vectors import DenseVector, SparseVector

logger = logging.getLogger(__name__)

SPARSE = "sparse"
DENSE = "dense"
STRATEGIES = (SPARSE, DENSE)

DEFAULT_ENCODER_TIMEOUT = 30.0
DEFAULT_ENCODER_WORKERS = 4
DEFAULT_ENCODER_BATCH_SIZE = 16


class Vectorizer(ABC):
    """Turns an ordered batch of texts into vectors of a single kind."""

    name: str

    @abstractmethod
    def vectorize(self, texts: List[str]) -> list:
        """Return one vector per text, in input order."""


class TfidfVectorizer(Vectorizer):
    """Sparse term-frequency x inverse-document-frequency weighting.

    Texts are already normalized, so tokens are the whitespace-separated
    words and no further lowercasing or token filtering is applied. Weights
    are raw counts times the smoothed idf ``1 + ln((1 + N) / (1 + df))``,
    left unnormalized (cosine takes care of length).
    """

    name = SPARSE

    @staticmethod
    def collect(texts: List[str]) -> SklearnTfidfVectorizer:
        """Fit vocabulary and document frequencies over the whole batch."""
        model = SklearnTfidfVectorizer(
            tokenizer=str.split,
            token_pattern=None,
            lowercase=False,
            norm=None,
            smooth_idf=True,
        )
        return model.fit(texts)

    @staticmethod
    def weigh(model: SklearnTfidfVectorizer, texts: List[str]) -> List[SparseVector]:
        """Weight every text against statistics fitted on the full batch."""
        terms = model.get_feature_names_out()
        matrix = model.transform(texts).tocsr()

        vectors = []
        for row in range(matrix.shape[0]):
            start, end = matrix.indptr[row], matrix.indptr[row + 1]
            vectors.append(SparseVector({
                str(terms[col]): float(weight)
                for col, weight in zip(matrix.indices[start:end], matrix.data[start:end])
            }))
        return vectors

    def vectorize(self, texts: List[str]) -> List[SparseVector]:
        if not texts:
            raise VectorizationError("Cannot build TF-IDF weights for an empty batch")

        if not any(text.split() for text in texts):
            logger.warning("No terms left in any of the %d documents", len(texts))
            return [SparseVector() for _ in texts]

        model = self.collect(texts)
        vectors = self.weigh(model, texts)

        logger.debug(
            "TF-IDF weights computed for %d documents (vocabulary=%d terms)",
            len(texts),
            len(model.vocabulary_),
        )
        return vectors


class EmbeddingVectorizer(Vectorizer):
    """Dense vectors from an external semantic encoder.

    Empty texts are never sent to the encoder; they get a zero vector of the
    batch dimension, which scores 0.0 against every other document.
    """

    name = DENSE

    def __init__(
        self,
        embedder: Embedder,
        timeout: float = DEFAULT_ENCODER_TIMEOUT,
        max_workers: int = DEFAULT_ENCODER_WORKERS,
        batch_size: int = DEFAULT_ENCODER_BATCH_SIZE,
    ):
        self.embedder = embedder
        self.timeout = timeout
        self.max_workers = max_workers
        self.batch_size = batch_size

    def _encode(self, texts: List[str], positions: List[int]) -> Dict[int, list]:
        chunks = [
            positions[i : i + self.batch_size]
            for i in range(0, len(positions), self.batch_size)
        ]
        raw_vectors: Dict[int, list] = {}

        pool = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(chunks)),
            thread_name_prefix="embed",
        )
        try:
            futures = [
                pool.submit(self.embedder.embed_batch, [texts[idx] for idx in chunk])
                for chunk in chunks
            ]
            _, pending = wait(futures, timeout=self.timeout)
            if pending:
                raise VectorizationError(
                    f"Encoder timed out after {self.timeout:.1f}s "
                    f"({len(pending)}/{len(futures)} batches pending)"
                )

            for chunk, future in zip(chunks, futures):
                try:
                    batch_vectors = future.result()
                except Exception as e:
                    raise VectorizationError(
                        f"Encoder failed for documents {chunk[0]}-{chunk[-1]}: {e}"
                    ) from e
                if len(batch_vectors) != len(chunk):
                    raise VectorizationError(
                        f"Encoder returned {len(batch_vectors)} vectors "
                        f"for {len(chunk)} documents"
                    )
                raw_vectors.update(zip(chunk, batch_vectors))
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        return raw_vectors

    def vectorize(self, texts: List[str]) -> List[DenseVector]:
        if not texts:
            raise VectorizationError("Cannot embed an empty batch")

        start = time.time()
        positions = [idx for idx, text in enumerate(texts) if text]
        raw_vectors = self._encode(texts, positions) if positions else {}

        try:
            encoded = {idx: DenseVector(values) for idx, values in raw_vectors.items()}
        except (TypeError, ValueError) as e:
            raise VectorizationError(f"Encoder returned a malformed vector: {e}") from e

        expected_dim = encoded[positions[0]].dimension if positions else 0
        if positions and expected_dim == 0:
            raise VectorizationError("Encoder returned an empty vector")
        for idx in positions:
            if encoded[idx].dimension != expected_dim:
                raise VectorizationError(
                    f"Inconsistent embedding dimension at index {idx}: "
                    f"expected {expected_dim}, got {encoded[idx].dimension}"
                )

        skipped = len(texts) - len(positions)
        if skipped:
            logger.warning(
                "%d/%d documents have no content to embed; using zero vectors",
                skipped,
                len(texts),
            )
        zero = DenseVector([0.0] * expected_dim)

        logger.debug(
            "Embedded %d documents (dim=%d) in %.2fs",
            len(positions),
            expected_dim,
            time.time() - start,
        )
        return [encoded.get(idx, zero) for idx in range(len(texts))]


def get_vectorizer(
    strategy: str,
    embedder: Optional[Embedder] = None,
    timeout: float = DEFAULT_ENCODER_TIMEOUT,
    max_workers: int = DEFAULT_ENCODER_WORKERS,
    batch_size: int = DEFAULT_ENCODER_BATCH_SIZE,
) -> Vectorizer:
    """
    Build the vectorizer for a run.

    Args:
        strategy: "sparse" or "dense"
        embedder: Encoder for the dense strategy (defaults to OpenAIEmbedder)
        timeout: Seconds to wait for all encoder calls of a batch
        max_workers: Concurrent encoder calls
        batch_size: Texts sent per encoder call

    Raises:
        ConfigurationError: On an unknown strategy
    """
    if strategy == SPARSE:
        return TfidfVectorizer()
    if strategy == DENSE:
        if embedder is None:
            embedder = OpenAIEmbedder(timeout=timeout)
        return EmbeddingVectorizer(
            embedder,
            timeout=timeout,
            max_workers=max_workers,
            batch_size=batch_size,
        )
    raise ConfigurationError(
        f"Unknown vectorization strategy {strategy!r}; expected one of {STRATEGIES}"
    )
