"""Data Models Module

Defines Pydantic models for the records that flow through the pipeline:
collected news documents, the duplicate pairs reported by the detector,
and the final detection result handed to the output collaborators.
"""

from typing import List
from pydantic import BaseModel, model_validator


class Document(BaseModel):
    """A collected news article.

    Identity is the position in the batch. ``content`` is raw text when the
    record comes from a collector and normalized text after the normalizer
    has run over it.
    """
    title: str
    content: str
    source: str
    date: str


class DuplicatePair(BaseModel):
    """Two documents whose similarity reached the threshold.

    ``score`` is rounded to 2 decimal places; ``similarity`` is the same
    value formatted the way it is reported.
    """
    index_a: int
    index_b: int
    title_a: str
    title_b: str
    score: float

    @model_validator(mode="after")
    def _check_order(self) -> "DuplicatePair":
        if not 0 <= self.index_a < self.index_b:
            raise ValueError(
                f"index_a must be lower than index_b "
                f"(got {self.index_a}, {self.index_b})"
            )
        return self

    @property
    def similarity(self) -> str:
        return f"{self.score:.2f}"

    def to_report_row(self) -> dict:
        return {
            "title_a": self.title_a,
            "title_b": self.title_b,
            "similarity": self.similarity,
        }


class DetectionResult(BaseModel):
    """Normalized documents plus the duplicate report for one run."""
    documents: List[Document]
    duplicates: List[DuplicatePair]
    strategy: str
    threshold: float
