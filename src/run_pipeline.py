"""Pipeline CLI Entry Point

Provides the command-line interface for the news near-duplicate detection
pipeline. Handles argument parsing, logging configuration, and the
end-to-end run from collected documents to the normalized CSV and the
duplicate report.

Usage:
    python src/run_pipeline.py --input data/news.json --output-dir output
    news-dedup --input data/news.json --strategy dense --threshold 0.9
"""

import argparse
import logging
import time
from pathlib import Path

from pydantic import ValidationError

from news_dedup.config import DetectionConfig
from news_dedup.errors import PipelineError
from news_dedup.pipeline import run_pipeline
from news_dedup.stopwords import DEFAULT_LANGUAGE, available_languages
from news_dedup.vectorizers import SPARSE, STRATEGIES


def configure_logging() -> None:
    """Configure logging with both console and file output.

    Sets up:
      - Root logger at DEBUG level
      - Console handler at INFO level for user-facing messages
      - File handler at DEBUG level for detailed troubleshooting
      - Reduced verbosity for httpx and openai loggers
    """
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)
    log_file = log_dir / "pipeline.log"

    # Root logger
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    # Console handler: high-level INFO+
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    # File handler: detailed DEBUG+
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    # Clear existing handlers to avoid duplicates if run multiple times
    logger.handlers.clear()
    logger.addHandler(console_handler)
    logger.addHandler(file_handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Detect near-duplicate news articles"
    )
    parser.add_argument(
        "--input",
        type=Path,
        default=Path("data/news.json"),
        help="Path to the JSON file of collected documents.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("output"),
        help="Directory where output files will be written.",
    )
    parser.add_argument(
        "--strategy",
        choices=STRATEGIES,
        default=None,
        help=f"Vectorization strategy (default: DEDUP_STRATEGY or {SPARSE})",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Similarity threshold for duplicates (default: DEDUP_SIMILARITY_THRESHOLD or 0.85)",
    )
    parser.add_argument(
        "--language",
        choices=available_languages(),
        default=None,
        help=f"Stopword language (default: DEDUP_LANGUAGE or {DEFAULT_LANGUAGE})",
    )
    parser.add_argument(
        "--encoder-timeout",
        type=float,
        default=None,
        help="Seconds to wait for the embedding calls of a batch (dense only)",
    )
    parser.add_argument(
        "--encoder-workers",
        type=int,
        default=None,
        help="Concurrent embedding calls (dense only)",
    )
    parser.add_argument(
        "--encoder-batch-size",
        type=int,
        default=None,
        help="Texts sent per embedding call (dense only)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Optional limit on number of documents to process.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Detect and log duplicates without writing any file",
    )
    parser.add_argument(
        "--no-history",
        action="store_true",
        help="Overwrite output files instead of creating timestamped versions"
    )
    return parser


def main(argv=None) -> int:
    """
    CLI entrypoint for the near-duplicate detection pipeline.

    Parses command-line arguments, runs the pipeline end-to-end,
    and returns a Unix-style exit code (0 on success, non-zero on failure).
    """
    configure_logging()
    logger = logging.getLogger(__name__)

    args = build_parser().parse_args(argv)

    # flags left unset fall back to the environment defaults
    overrides = {
        "threshold": args.threshold,
        "strategy": args.strategy,
        "language": args.language,
        "encoder_timeout": args.encoder_timeout,
        "encoder_max_workers": args.encoder_workers,
        "encoder_batch_size": args.encoder_batch_size,
    }
    try:
        config = DetectionConfig(
            **{key: value for key, value in overrides.items() if value is not None}
        )
    except ValidationError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    logger.info("=== Starting news near-duplicate detection ===")
    logger.info("Input: %s", args.input)
    logger.info("Output directory: %s", args.output_dir)
    logger.info("Strategy: %s", config.strategy)
    logger.info("Threshold: %.2f", config.threshold)
    logger.info("Language: %s", config.language)
    logger.info("Limit: %s", args.limit if args.limit else "None (all documents)")
    logger.info("Dry_run: %s", args.dry_run)
    logger.info("Keep history: %s", not args.no_history)

    try:
        start_time = time.time()

        total, duplicates, output_paths = run_pipeline(
            input_path=args.input,
            output_dir=args.output_dir,
            config=config,
            limit=args.limit,
            dry_run=args.dry_run,
            keep_history=not args.no_history,
        )

        elapsed_time = time.time() - start_time

        logger.info("=" * 70)
        logger.info("Pipeline completed successfully in %.2fs", elapsed_time)
        logger.info("")
        logger.info("Summary:")
        logger.info("  Input:      %s", args.input)
        logger.info("  Documents:  %d", total)
        logger.info("  Duplicates: %d pairs", len(duplicates))
        logger.info("")
        logger.info("Output files:")
        for name, path in output_paths.items():
            logger.info("  %-12s %s", f"{name}:", path)
        logger.info("=" * 70)

    except PipelineError as e:
        logger.error("Pipeline failed at stage '%s': %s", e.stage, e)
        return 1
    except Exception as e:
        logger.exception(f"Pipeline failed with an unhandled exception: {e}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
