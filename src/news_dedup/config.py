"""Run Configuration

Environment-driven defaults for a detection run, validated through a
Pydantic model. CLI flags override these values.

Environment variables:
  DEDUP_SIMILARITY_THRESHOLD: Duplicate threshold (default: 0.85)
  DEDUP_STRATEGY: "sparse" (TF-IDF) or "dense" (embeddings), default sparse
  DEDUP_LANGUAGE: Stopword language, "en" or "fr" (default: en)
  ENCODER_TIMEOUT_SECONDS: Timeout for the encoder calls of a batch (default: 30)
  ENCODER_MAX_WORKERS: Concurrent encoder calls (default: 4)
  ENCODER_BATCH_SIZE: Texts per encoder call (default: 16)

Variables are read when a DetectionConfig is built and go through the same
validation as explicit values, so a malformed variable raises a
ValidationError instead of failing at import time.
"""

import os

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .stopwords import DEFAULT_LANGUAGE, available_languages
from .vectorizers import SPARSE, STRATEGIES

# Score distributions differ between strategies: identical wording drives
# TF-IDF scores to 1.0, while embeddings of unrelated news in the same
# language often land around 0.3-0.5 and paraphrases around 0.8-0.9.
# These are starting points only; 0.85 stays the default for both.
RECOMMENDED_THRESHOLDS = {
    "sparse": 0.85,
    "dense": 0.90,
}


def _from_env(name: str, default: str):
    return lambda: os.getenv(name, default)


class DetectionConfig(BaseModel):
    """Settings for one detection run."""
    model_config = ConfigDict(validate_default=True)

    threshold: float = Field(default_factory=_from_env("DEDUP_SIMILARITY_THRESHOLD", "0.85"))
    strategy: str = Field(default_factory=_from_env("DEDUP_STRATEGY", SPARSE))
    language: str = Field(default_factory=_from_env("DEDUP_LANGUAGE", DEFAULT_LANGUAGE))
    encoder_timeout: float = Field(default_factory=_from_env("ENCODER_TIMEOUT_SECONDS", "30"))
    encoder_max_workers: int = Field(default_factory=_from_env("ENCODER_MAX_WORKERS", "4"))
    encoder_batch_size: int = Field(default_factory=_from_env("ENCODER_BATCH_SIZE", "16"))

    @field_validator("threshold")
    @classmethod
    def _threshold_in_range(cls, value: float) -> float:
        if not -1.0 <= value <= 1.0:
            raise ValueError(f"threshold must be within [-1, 1], got {value}")
        return value

    @field_validator("strategy")
    @classmethod
    def _known_strategy(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in STRATEGIES:
            raise ValueError(f"strategy must be one of {STRATEGIES}, got {value!r}")
        return value

    @field_validator("language")
    @classmethod
    def _known_language(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in available_languages():
            raise ValueError(
                f"language must be one of {available_languages()}, got {value!r}"
            )
        return value

    @field_validator("encoder_timeout", "encoder_max_workers", "encoder_batch_size")
    @classmethod
    def _positive(cls, value):
        if value <= 0:
            raise ValueError(f"must be positive, got {value}")
        return value
