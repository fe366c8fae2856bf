"""Output Writers

Persist what a run produced:
  - normalized documents as a ';'-delimited CSV, every field quoted
  - the duplicate report as JSON

Any I/O failure is re-raised as PersistenceError.
"""

import csv
import json
import logging
from pathlib import Path
from typing import List, Sequence

from .errors import PersistenceError
from .models import Document, DuplicatePair

logger = logging.getLogger(__name__)

CSV_DELIMITER = ";"
CSV_HEADER = ["Title", "Content", "Source", "Publication Date"]
CSV_FIELDS = ["title", "content", "source", "date"]


def save_documents_csv(documents: Sequence[Document], path: str | Path) -> Path:
    """Write documents to ``path`` with a header row."""
    path = Path(path)
    try:
        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f, delimiter=CSV_DELIMITER, quoting=csv.QUOTE_ALL)
            writer.writerow(CSV_HEADER)
            for doc in documents:
                writer.writerow([getattr(doc, field) for field in CSV_FIELDS])
    except OSError as e:
        raise PersistenceError(f"Failed to write documents to {path}: {e}") from e

    logger.debug("Wrote %d documents to %s", len(documents), path)
    return path


def save_duplicates_json(duplicates: Sequence[DuplicatePair], path: str | Path) -> Path:
    """Write the duplicate report as a list of {title_a, title_b, similarity}."""
    path = Path(path)
    rows: List[dict] = [pair.to_report_row() for pair in duplicates]
    try:
        with path.open("w", encoding="utf-8") as f:
            json.dump(rows, f, ensure_ascii=False, indent=2)
    except OSError as e:
        raise PersistenceError(f"Failed to write duplicate report to {path}: {e}") from e

    logger.debug("Wrote %d duplicate pairs to %s", len(rows), path)
    return path
