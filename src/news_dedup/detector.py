"""Duplicate Detection Module

Scores document pairs by cosine similarity and keeps the ones at or above
the threshold.

The default candidate enumeration is every unordered pair (i, j) with
i < j, which is fine for the batch sizes this pipeline handles (tens of
articles). Subclasses may override ``candidate_pairs`` with a pruning
strategy; the report is de-duplicated and ordered by (i, j) regardless, so
the output only depends on which pairs pass the threshold.
"""

from typing import Iterator, List, Sequence, Tuple
import logging

from .errors import ConfigurationError, ScoringError
from .models import Document, DuplicatePair
from .vectors import cosine

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.85


class DuplicateDetector:
    """Threshold-based near-duplicate detector over a vectorized batch."""

    def __init__(self, threshold: float = DEFAULT_THRESHOLD):
        if not -1.0 <= threshold <= 1.0:
            raise ConfigurationError(
                f"Similarity threshold must be within [-1, 1], got {threshold}"
            )
        self.threshold = threshold

    def candidate_pairs(self, vectors: Sequence) -> Iterator[Tuple[int, int]]:
        """Yield index pairs to score, each with i < j."""
        n = len(vectors)
        for i in range(n):
            for j in range(i + 1, n):
                yield i, j

    def detect(
        self,
        documents: Sequence[Document],
        vectors: Sequence,
    ) -> List[DuplicatePair]:
        """
        Return the duplicate pairs of a batch.

        Args:
            documents: Batch documents (titles are used in the report)
            vectors: One vector per document, same order

        Returns:
            Pairs with score >= threshold, ordered by increasing i then j

        Raises:
            ScoringError: If counts differ or vectors are not comparable
        """
        if len(documents) != len(vectors):
            raise ScoringError(
                f"Got {len(vectors)} vectors for {len(documents)} documents"
            )

        if len(documents) < 2:
            return []

        scores = {}
        for i, j in self.candidate_pairs(vectors):
            if i > j:
                i, j = j, i
            if i == j or (i, j) in scores:
                continue
            scores[(i, j)] = cosine(vectors[i], vectors[j])

        duplicates = [
            DuplicatePair(
                index_a=i,
                index_b=j,
                title_a=documents[i].title,
                title_b=documents[j].title,
                score=round(score, 2),
            )
            for (i, j), score in sorted(scores.items())
            if score >= self.threshold
        ]

        logger.debug(
            "Scored %d pairs, %d at or above threshold %.2f",
            len(scores),
            len(duplicates),
            self.threshold,
        )
        return duplicates


def detect_duplicates(
    documents: Sequence[Document],
    vectors: Sequence,
    threshold: float = DEFAULT_THRESHOLD,
) -> List[DuplicatePair]:
    """Shortcut for ``DuplicateDetector(threshold).detect(documents, vectors)``."""
    return DuplicateDetector(threshold).detect(documents, vectors)
