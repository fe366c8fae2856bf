"""Vector Representations and Cosine Similarity

Two concrete vector kinds share the small capability the scorer needs
(``dot``, ``norm``, ``kind``, ``dimension``):

  - SparseVector: term -> weight mapping produced by TF-IDF weighting
  - DenseVector: fixed-length float array produced by an embedding model

``cosine`` is written once against that capability.
"""

import math
from typing import Dict, Iterable, Mapping, Optional

import numpy as np

from .errors import ScoringError


class SparseVector:
    """Term-weight mapping; absent terms weigh zero."""

    kind = "sparse"

    def __init__(self, weights: Optional[Mapping[str, float]] = None):
        # zero weights carry no information for dot products or norms
        self._weights: Dict[str, float] = {
            term: float(w) for term, w in (weights or {}).items() if w
        }
        self._norm = math.sqrt(math.fsum(w * w for w in self._weights.values()))

    @property
    def weights(self) -> Dict[str, float]:
        return dict(self._weights)

    @property
    def dimension(self) -> Optional[int]:
        return None

    def terms(self) -> Iterable[str]:
        return self._weights.keys()

    def norm(self) -> float:
        return self._norm

    def dot(self, other: "SparseVector") -> float:
        small, large = self._weights, other._weights
        if len(small) > len(large):
            small, large = large, small
        return math.fsum(w * large[term] for term, w in small.items() if term in large)

    def __len__(self) -> int:
        return len(self._weights)

    def __repr__(self) -> str:
        return f"SparseVector(terms={len(self._weights)}, norm={self._norm:.4f})"


class DenseVector:
    """Fixed-length float vector."""

    kind = "dense"

    def __init__(self, values: Iterable[float]):
        array = np.asarray(list(values), dtype=np.float64)
        if array.ndim != 1:
            raise ValueError(f"Dense vector must be one-dimensional, got shape {array.shape}")
        if not np.all(np.isfinite(array)):
            raise ValueError("Dense vector has non-finite components (NaN or inf)")
        array.setflags(write=False)
        self._values = array

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def dimension(self) -> int:
        return int(self._values.shape[0])

    def norm(self) -> float:
        return float(np.linalg.norm(self._values))

    def dot(self, other: "DenseVector") -> float:
        return float(np.dot(self._values, other._values))

    def __len__(self) -> int:
        return self.dimension

    def __repr__(self) -> str:
        return f"DenseVector(dim={self.dimension})"


def _check_compatible(vec_a, vec_b) -> None:
    if vec_a.kind != vec_b.kind:
        raise ScoringError(
            f"Cannot compare a {vec_a.kind} vector with a {vec_b.kind} vector"
        )
    if vec_a.dimension != vec_b.dimension:
        raise ScoringError(
            f"Vector dimensions differ: {vec_a.dimension} != {vec_b.dimension}"
        )


def cosine(vec_a, vec_b) -> float:
    """
    Cosine similarity between two vectors of the same kind.

    Returns 0.0 when either vector has zero magnitude, since no similarity
    can be established. The result is symmetric and clamped to [-1, 1].

    Raises:
        ScoringError: If the vectors differ in kind or dense length
    """
    _check_compatible(vec_a, vec_b)

    norm_a = vec_a.norm()
    norm_b = vec_b.norm()
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    score = vec_a.dot(vec_b) / (norm_a * norm_b)
    return max(-1.0, min(1.0, score))
