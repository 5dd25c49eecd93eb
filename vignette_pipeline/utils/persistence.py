"""Persistence helpers for vignette batches and validation reports."""

import json
import logging
from pathlib import Path

import pandas as pd
from pydantic import ValidationError

from vignette_pipeline.schemas import (
    INTEGER_FIELDS,
    ValidationReport,
    VignetteRecord,
)

logger = logging.getLogger(__name__)


def _record_rows(
    records: list[VignetteRecord], columns: list[str] | None = None
) -> list[dict]:
    """Dump records to plain dicts, optionally restricted to ordered columns."""
    rows = [record.model_dump(mode="json") for record in records]
    if columns is None:
        return rows
    return [{column: row[column] for column in columns} for row in rows]


def records_to_frame(
    records: list[VignetteRecord], columns: list[str] | None = None
) -> pd.DataFrame:
    """
    Build a DataFrame with one row per record.

    Args:
        records (list[VignetteRecord]): Records in batch order.
        columns (list[str] | None): Columns to keep, in order. Defaults to all.

    Returns:
        pd.DataFrame: Tabular view of the records.
    """
    columns = columns or list(VignetteRecord.model_fields)
    frame = pd.DataFrame(_record_rows(records, columns), columns=columns)
    # missing integers become <NA> rather than turning the column float
    return frame.astype(
        {column: "Int64" for column in columns if column in INTEGER_FIELDS}
    )


def write_records_csv(
    records: list[VignetteRecord], path: Path, columns: list[str] | None = None
) -> Path:
    """Write records as CSV, creating the parent directory if needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    records_to_frame(records, columns).to_csv(path, index=False)
    logger.info(f"Saved {len(records)} records to: {path}")
    return path


def write_records_json(
    records: list[VignetteRecord], path: Path, columns: list[str] | None = None
) -> Path:
    """Write records as a pretty-printed JSON array."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(_record_rows(records, columns), indent=2))
    logger.info(f"Saved {len(records)} records to: {path}")
    return path


def load_vignettes(path: Path) -> list[VignetteRecord]:
    """
    Load a generated vignette batch from JSON.

    Args:
        path (Path): JSON file written by the generator.

    Returns:
        list[VignetteRecord]: Records in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not a non-empty array of unique records.
    """
    if not path.exists():
        raise FileNotFoundError(
            f"Vignette file not found: {path}. Run the generator first."
        )

    payload = json.loads(path.read_text())
    if not isinstance(payload, list) or not payload:
        raise ValueError(f"Expected a non-empty JSON array of vignettes in {path}")

    try:
        records = [VignetteRecord.model_validate(item) for item in payload]
    except ValidationError as exc:
        raise ValueError(f"Invalid vignette record in {path}: {exc}")

    ensure_unique_ids(records)
    logger.info(f"Loaded {len(records)} vignettes from {path}")
    return records


def ensure_unique_ids(records: list[VignetteRecord]) -> None:
    """
    Reject batches where two records share an id.

    Raises:
        ValueError: If any id is duplicated.
    """
    seen: set[int] = set()
    duplicates: list[int] = []
    for record in records:
        if record.id in seen:
            duplicates.append(record.id)
        seen.add(record.id)
    if duplicates:
        raise ValueError(f"Duplicate vignette ids: {sorted(set(duplicates))}")


def write_report(report: ValidationReport, path: Path) -> Path:
    """Persist a validation report as pretty-printed JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.model_dump_json(indent=2))
    logger.info(f"Validation report saved to: {path}")
    return path
