"""Error Types

Exception hierarchy for the near-duplicate detection pipeline. Stage
failures carry the name of the stage they came from so the CLI can report
where a run aborted.
"""


class DedupError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(DedupError):
    """Invalid threshold, strategy or stopword language."""


class PipelineError(DedupError):
    """A run-level failure raised by one of the pipeline stages."""

    stage = "pipeline"

    def __init__(self, message: str, stage: str | None = None):
        if stage is not None:
            self.stage = stage
        super().__init__(message)


class NormalizationError(PipelineError):
    stage = "normalization"


class VectorizationError(PipelineError):
    """Empty batch, encoder unavailable or timed out, or inconsistent dimensions."""

    stage = "vectorization"


class ScoringError(PipelineError):
    """Vectors of different kinds or lengths were compared."""

    stage = "scoring"


class PersistenceError(PipelineError):
    stage = "persistence"
