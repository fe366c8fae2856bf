"""
Near-Duplicate Detection Pipeline

This module sequences the detection of near-duplicate news articles:
normalization -> vectorization -> pairwise similarity -> threshold filter.

Features:
- One vectorization strategy per run (TF-IDF or embeddings)
- Full batch barrier: every document is vectorized before any pair is scored
- Fail-closed: a failing stage aborts the run without a partial report
- File-level run with timestamped outputs and run metadata
- Progress tracking and structured logging
"""

from pathlib import Path
import json
from typing import List, Dict, Any, Optional, Tuple
import logging
import time
from datetime import datetime

from .config import DetectionConfig
from .detector import DuplicateDetector
from .embeddings import Embedder
from .errors import NormalizationError, PipelineError, ScoringError, VectorizationError
from .loaders import load_documents
from .models import DetectionResult, Document, DuplicatePair
from .stopwords import get_stopwords
from .transformers import normalize_documents
from .vectorizers import get_vectorizer
from .writers import save_documents_csv, save_duplicates_json


logger = logging.getLogger(__name__)


def normalize_batch(documents: List[Document], language: str = "en") -> List[Document]:
    """Normalize the content of every document.

    Raises:
        NormalizationError: If the transform fails for any document
    """
    stopwords = get_stopwords(language)
    try:
        return normalize_documents(documents, stopwords)
    except Exception as e:
        raise NormalizationError(f"Failed to normalize batch: {e}") from e


def find_duplicates(
    documents: List[Document],
    config: DetectionConfig,
    embedder: Optional[Embedder] = None,
) -> List[DuplicatePair]:
    """
    Vectorize an already-normalized batch and report its duplicate pairs.

    Batches of fewer than two documents have no pairs, so they are not
    vectorized at all.

    Raises:
        VectorizationError: If the batch could not be vectorized
        ScoringError: If the vectors could not be compared
    """
    if len(documents) < 2:
        logger.info("Fewer than two documents (%d); nothing to compare", len(documents))
        return []

    vectorizer = get_vectorizer(
        config.strategy,
        embedder=embedder,
        timeout=config.encoder_timeout,
        max_workers=config.encoder_max_workers,
        batch_size=config.encoder_batch_size,
    )

    t0 = time.time()
    try:
        vectors = vectorizer.vectorize([doc.content for doc in documents])
    except PipelineError:
        raise
    except Exception as e:
        raise VectorizationError(f"{vectorizer.name} vectorization failed: {e}") from e
    logger.info(
        "✓ Vectorized %d documents with the %s strategy (%.2fs)",
        len(vectors),
        vectorizer.name,
        time.time() - t0,
    )

    detector = DuplicateDetector(config.threshold)
    try:
        return detector.detect(documents, vectors)
    except PipelineError:
        raise
    except Exception as e:
        raise ScoringError(f"Pairwise scoring failed: {e}") from e


def detect_near_duplicates(
    documents: List[Document],
    config: Optional[DetectionConfig] = None,
    embedder: Optional[Embedder] = None,
) -> DetectionResult:
    """
    Run normalization, vectorization and duplicate detection over a batch.

    Args:
        documents: Raw documents in batch order
        config: Run settings (defaults read from the environment)
        embedder: Encoder for the dense strategy (defaults to OpenAI)

    Returns:
        DetectionResult with the normalized documents and the duplicate report

    Raises:
        PipelineError: Subclass naming the failing stage
    """
    config = config or DetectionConfig()

    normalized = normalize_batch(documents, config.language)
    duplicates = find_duplicates(normalized, config, embedder=embedder)

    return DetectionResult(
        documents=normalized,
        duplicates=duplicates,
        strategy=config.strategy,
        threshold=config.threshold,
    )


def log_duplicates(duplicates: List[DuplicatePair]) -> None:
    if not duplicates:
        logger.info("No duplicates detected.")
        return

    logger.info("Duplicates detected:")
    for pair in duplicates:
        logger.info(
            '- "%s" and "%s" have a similarity of %s',
            pair.title_a,
            pair.title_b,
            pair.similarity,
        )


def run_pipeline(
    input_path: Path | str = "data/news.json",
    output_dir: Path | str = "output",
    config: Optional[DetectionConfig] = None,
    limit: Optional[int] = None,
    dry_run: bool = False,
    keep_history: bool = True,
    embedder: Optional[Embedder] = None,
) -> Tuple[int, List[DuplicatePair], Dict[str, Path]]:
    """
    Run the complete near-duplicate detection pipeline over a JSON file.

    Pipeline Steps:
    1. Load collected documents from JSON
    2. Normalize content
    3. Save normalized documents to CSV
    4. Vectorize and detect duplicates
    5. Report duplicates and save the report

    Normalized documents are written before detection starts, so a failing
    detection step still leaves the CSV behind but never a report.

    Args:
        input_path: Path to input JSON file with collected documents
        output_dir: Directory for all output files
        config: Detection settings (threshold, strategy, language, encoder)
        limit: Maximum documents to process (None = all)
        dry_run: If True, detect and log but write no files
        keep_history: If True, keep timestamped versions; if False, overwrite
        embedder: Encoder for the dense strategy (defaults to OpenAI)

    Returns:
        Tuple of (total_documents, duplicate_pairs, output_paths_dict)

    Raises:
        FileNotFoundError: If input_path doesn't exist
        json.JSONDecodeError: If input file is invalid JSON
        ValueError: If input file holds neither a list nor an object
        PipelineError: If a stage fails
    """
    config = config or DetectionConfig()
    input_path = Path(input_path)
    output_dir = Path(output_dir)

    run_timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    job_start = time.time()
    logger.debug("Starting pipeline run %s (config=%s)", run_timestamp, config.model_dump())

    # ========== STEP 1: LOAD DOCUMENTS ==========
    t0 = time.time()
    logger.info("STEP 1/5: Loading documents")

    try:
        documents = load_documents(input_path)
    except FileNotFoundError:
        logger.exception("Input file not found: %s", input_path)
        raise
    except json.JSONDecodeError:
        logger.exception("Invalid JSON in input file: %s", input_path)
        raise
    except ValueError:
        logger.exception("Unsupported document layout in input file: %s", input_path)
        raise

    if limit is not None:
        logger.info("Applying limit: %d documents", limit)
        documents = documents[:limit]

    total = len(documents)
    logger.info("✓ Loaded %d documents in %.2fs", total, time.time() - t0)

    # ========== STEP 2: NORMALIZE ==========
    t1 = time.time()
    logger.info("STEP 2/5: Normalizing %d documents (language=%s)", total, config.language)
    normalized = normalize_batch(documents, config.language)
    logger.info("✓ Normalization completed in %.2fs", time.time() - t1)

    # ========== STEP 3: SAVE NORMALIZED DOCUMENTS ==========
    output_paths: Dict[str, Path] = {}
    suffix = f"_{run_timestamp}" if keep_history else ""

    if dry_run:
        logger.info("DRY RUN: skipping write of normalized documents")
    else:
        logger.info("STEP 3/5: Saving normalized documents")
        output_dir.mkdir(parents=True, exist_ok=True)
        output_paths["documents"] = save_documents_csv(
            normalized, output_dir / f"news_combined{suffix}.csv"
        )
        logger.info("✓ Wrote %d documents to %s", total, output_paths["documents"].name)

    # ========== STEP 4: DETECT DUPLICATES ==========
    t3 = time.time()
    logger.info(
        "STEP 4/5: Detecting duplicates (strategy=%s, threshold=%.2f)",
        config.strategy,
        config.threshold,
    )
    try:
        duplicates = find_duplicates(normalized, config, embedder=embedder)
    except PipelineError:
        logger.exception("Duplicate detection failed; no report will be written")
        raise
    logger.info(
        "✓ Detection completed in %.2fs (%d duplicate pairs)",
        time.time() - t3,
        len(duplicates),
    )

    # ========== STEP 5: REPORT ==========
    logger.info("STEP 5/5: Reporting duplicates")
    log_duplicates(duplicates)

    if not dry_run:
        output_paths["duplicates"] = save_duplicates_json(
            duplicates, output_dir / f"duplicates{suffix}.json"
        )
        _save_metadata(output_dir, run_timestamp, keep_history, {
            "input_file": str(input_path),
            "total_documents": total,
            "strategy": config.strategy,
            "threshold": config.threshold,
            "language": config.language,
            "duplicates_found": len(duplicates),
            "outputs": {k: str(v) for k, v in output_paths.items()},
            "duration_seconds": time.time() - job_start,
        })

    logger.debug(
        "Pipeline run completed: %d documents -> %d duplicate pairs",
        total,
        len(duplicates),
    )
    return total, duplicates, output_paths


def _save_metadata(
    output_dir: Path,
    run_timestamp: str,
    keep_history: bool,
    metadata: Dict[str, Any]
) -> None:
    """Save pipeline run metadata."""
    if keep_history:
        meta_filename = f"run_metadata_{run_timestamp}.json"
    else:
        meta_filename = "run_metadata.json"

    meta_path = output_dir / meta_filename
    metadata["timestamp"] = run_timestamp

    try:
        with meta_path.open("w", encoding="utf-8") as f:
            json.dump(metadata, f, ensure_ascii=False, indent=2)
        logger.info("✓ Saved: %s", meta_filename)
    except Exception:
        logger.warning("Failed to save metadata (non-fatal)", exc_info=True)
