"""Load lab rows from CSV or JSON files."""

import csv
import json
from pathlib import Path

from godata_cases.exceptions import ConfigurationError
from godata_cases.models.rows import SourceRow


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def read_source_rows(path: str | Path) -> list[SourceRow]:
    """Read .csv (blank cells become None) or .json (array of objects)."""
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Input file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".csv":
        with path.open(newline="", encoding="utf-8-sig") as f:
            return [
                SourceRow(data={k: _blank_to_none(v) for k, v in record.items() if k is not None})
                for record in csv.DictReader(f)
            ]
    if suffix == ".json":
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list) or not all(isinstance(d, dict) for d in data):
            raise ConfigurationError(f"{path} must contain a JSON array of objects.")
        return [SourceRow(data=d) for d in data]

    raise ConfigurationError(f"Unsupported input format '{path.suffix}'. Use .csv or .json.")
