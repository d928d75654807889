"""
Export / Import of Account Data

An export is a single pretty-printed JSON document holding every record
of one account. Importing parses and validates the whole document before
anything is written, so a broken file never leaves half an import behind.
"""

import json
from datetime import date
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from budgetwise.models.budget import ExportData


EXPORT_FILENAME_PREFIX = "budget-wise-export"


class ImportFormatError(Exception):
    """The import file is not a valid BudgetWise export."""
    pass


def export_to_json(data: ExportData) -> str:
    """Serialize an export with 2-space indentation."""
    return json.dumps(data.model_dump(mode="json"), indent=2, ensure_ascii=False)


def export_filename(today: date) -> str:
    return f"{EXPORT_FILENAME_PREFIX}-{today.isoformat()}.json"


def write_export(
    data: ExportData,
    directory: Union[str, Path],
    today: date,
) -> Path:
    """
    Write an export file into a directory.

    Returns:
        Path of the written file
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export_filename(today)
    path.write_text(export_to_json(data), encoding="utf-8")
    return path


def parse_import(text: str) -> ExportData:
    """
    Parse the contents of an export file.

    Raises:
        ImportFormatError: If the text is not JSON, misses a collection,
            or contains an invalid record
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ImportFormatError(f"Failed to parse import file: {e}")

    if not isinstance(payload, dict):
        raise ImportFormatError("Invalid export file format")

    required = (
        "transactions",
        "categories",
        "limits",
        "templates",
        "recurring_items",
        "savings_goals",
    )
    missing = [key for key in required if key not in payload]
    if missing:
        raise ImportFormatError(f"Invalid export file format: missing {', '.join(missing)}")

    try:
        return ExportData.model_validate(payload)
    except ValidationError as e:
        raise ImportFormatError(f"Invalid record in import file: {e}")


def read_import(path: Union[str, Path]) -> ExportData:
    """Read and parse an export file from disk."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ImportFormatError(f"Failed to read import file: {e}")
    return parse_import(text)
