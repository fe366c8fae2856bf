"""Output Validation Script

Validates the files written by a pipeline run:
  - Normalized documents CSV: header row, four quoted ';'-separated fields
    per row, content made only of lowercase ASCII words separated by
    single spaces
  - Duplicate report JSON (optional): list of objects with two titles and
    a similarity formatted with 2 decimals

Usage:
    python -m news_dedup.scripts.validate_output \\
        --path output/news_combined.csv \\
        --report output/duplicates.json

Exits with code 0 on success, 1 on validation failure, 2 on argument error.
"""

import argparse
import csv
import json
import re
from pathlib import Path
from typing import Any, Dict, List, Tuple, Optional

from news_dedup.writers import CSV_DELIMITER, CSV_HEADER

NORMALIZED_RE = re.compile(r"^(?:[a-z]+(?: [a-z]+)*)?$")
SIMILARITY_RE = re.compile(r"^-?\d\.\d{2}$")


def load_rows(path: Path) -> Tuple[List[str], List[List[str]]]:
    """Load the header and data rows of a documents CSV."""
    with path.open("r", encoding="utf-8", newline="") as f:
        rows = list(csv.reader(f, delimiter=CSV_DELIMITER))

    if not rows:
        raise ValueError("CSV file is empty (no header row).")

    return rows[0], rows[1:]


def validate_header(header: List[str]) -> List[str]:
    if header != CSV_HEADER:
        return [f"header {header!r} != expected {CSV_HEADER!r}"]
    return []


def validate_row(row: List[str], idx: int) -> Tuple[List[str], List[str]]:
    """Validate a single CSV data row.

    Returns:
        (errors, warnings)
    """
    errors: List[str] = []
    warnings: List[str] = []

    if len(row) != len(CSV_HEADER):
        errors.append(
            f"[row={idx}] expected {len(CSV_HEADER)} fields, got {len(row)}"
        )
        return errors, warnings

    title, content, source, date = row

    if not title.strip():
        errors.append(f"[row={idx}] empty title")

    if not NORMALIZED_RE.match(content):
        errors.append(f"[row={idx}] content is not normalized text: {content[:60]!r}")
    elif not content:
        warnings.append(f"[row={idx}] content is empty after normalization")

    for name, value in (("source", source), ("date", date)):
        if not value.strip():
            warnings.append(f"[row={idx}] empty {name}")

    return errors, warnings


def validate_report_entry(entry: Any, idx: int) -> List[str]:
    """Validate one duplicate report entry."""
    errors: List[str] = []
    if not isinstance(entry, dict):
        return [f"[pair={idx}] should be an object, got {type(entry).__name__}"]

    for key in ("title_a", "title_b"):
        if not isinstance(entry.get(key), str):
            errors.append(f"[pair={idx}] missing or non-string '{key}'")

    similarity = entry.get("similarity")
    if not isinstance(similarity, str) or not SIMILARITY_RE.match(similarity):
        errors.append(
            f"[pair={idx}] similarity should be a 2-decimal string, got {similarity!r}"
        )
    return errors


def load_report(path: Path) -> List[Dict[str, Any]]:
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError("Top-level JSON is not a list of pairs.")
    return data


def main(argv: Optional[List[str]] = None) -> None:
    """Validate the documents CSV (and optionally the duplicate report).

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:]

    Raises:
        SystemExit: With code 0 on success, 1 on validation failure
    """
    parser = argparse.ArgumentParser(
        description="Validate near-duplicate pipeline outputs."
    )
    parser.add_argument(
        "--path",
        type=str,
        required=True,
        help="Path to the normalized documents CSV",
    )
    parser.add_argument(
        "--report",
        type=str,
        default=None,
        help="Path to the duplicate report JSON (optional)",
    )
    args = parser.parse_args(argv)

    try:
        header, rows = load_rows(Path(args.path))
        report = load_report(Path(args.report)) if args.report else []
    except Exception as e:
        print(f"FAILED TO LOAD FILE: {e}")
        raise SystemExit(1)

    all_errors: List[str] = validate_header(header)
    all_warnings: List[str] = []

    for idx, row in enumerate(rows):
        errors, warnings = validate_row(row, idx)
        all_errors.extend(errors)
        all_warnings.extend(warnings)

    for idx, entry in enumerate(report):
        all_errors.extend(validate_report_entry(entry, idx))

    if all_errors:
        print("VALIDATION FAILED:\n")
        for err in all_errors:
            print(err)
        print(f"\nTotal errors: {len(all_errors)}")
        if all_warnings:
            print(f"Total warnings: {len(all_warnings)}")
        raise SystemExit(1)

    print("VALIDATION PASSED")
    print(f"Total documents: {len(rows)}")
    if args.report:
        print(f"Total duplicate pairs: {len(report)}")
    if all_warnings:
        print("\nWarnings (non-fatal):")
        for w in all_warnings:
            print(w)
        print(f"\nTotal warnings: {len(all_warnings)}")

    raise SystemExit(0)


if __name__ == "__main__":
    main()
