"""Flatten Go.Data export payloads into a fixed tabular shape.

Export documents are nested (age.years, documents[]) and partially null. The
normalizer:
1. flattens nested objects with "." and turns null/absent values into None
2. unnests the documents list into documents_type / documents_number, one row
   per document; cases without documents keep one row with empty columns
3. parses platform date-times (dob and date* columns) into aware datetimes
4. strips the person-type token prefix from type and lower-cases it
5. renames "." to "_" and orders columns canonically, then the rest by name
"""

import logging
from enum import Enum
from typing import Any, Union

from pydantic import ValidationError

from godata_cases.dates import parse_platform_datetime
from godata_cases.exceptions import PlatformError
from godata_cases.models.case import CANONICAL_COLUMNS, CaseTable, NormalizedCase

logger = logging.getLogger(__name__)

PERSON_TYPE_PREFIX = "LNG_REFERENCE_DATA_CATEGORY_PERSON_TYPE_"
NESTED_COLUMN = "documents"
NESTED_SEPARATOR = "_"
NESTED_COLUMNS = ("documents_type", "documents_number")


class NoRecords(Enum):
    """Sentinel type: the platform returned nothing, as opposed to an empty table."""

    NO_RECORDS = "no records"


NO_RECORDS = NoRecords.NO_RECORDS

NormalizeResult = Union[CaseTable, NoRecords]


def _flatten(doc: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in doc.items():
        name = f"{prefix}.{key}" if prefix else key
        if not prefix and key == NESTED_COLUMN:
            out[name] = value
        elif isinstance(value, dict) and value:
            out.update(_flatten(value, name))
        elif isinstance(value, dict):
            out[name] = None
        else:
            out[name] = value
    return out


def _unnest_documents(row: dict[str, Any]) -> list[dict[str, Any]]:
    entries = row.pop(NESTED_COLUMN, None)
    if isinstance(entries, dict):
        entries = [entries]
    if not entries:
        return [{**row, **{col: None for col in NESTED_COLUMNS}}]

    rows = []
    for entry in entries:
        unnested = dict(row)
        if isinstance(entry, dict):
            for key, value in entry.items():
                unnested[f"{NESTED_COLUMN}{NESTED_SEPARATOR}{key}"] = value
        else:
            unnested["documents_number"] = entry
        for col in NESTED_COLUMNS:
            unnested.setdefault(col, None)
        rows.append(unnested)
    return rows


def _is_date_column(name: str) -> bool:
    return name == "dob" or name.startswith("date")


def _parse_dates(row: dict[str, Any]) -> None:
    for key, value in row.items():
        if not _is_date_column(key) or not isinstance(value, str):
            continue
        try:
            row[key] = parse_platform_datetime(value)
        except ValueError as e:
            raise PlatformError(f"Unparseable date in column {key}: {value!r}") from e


def _clean_person_type(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    return value.replace(PERSON_TYPE_PREFIX, "").lower()


class ResponseNormalizer:
    """Turns a downloaded export payload into a CaseTable (or NO_RECORDS)."""

    def normalize(self, payload: Any) -> NormalizeResult:
        if isinstance(payload, dict):
            payload = [payload]
        if not payload:
            return NO_RECORDS
        if not isinstance(payload, list) or not all(isinstance(d, dict) for d in payload):
            raise PlatformError("Export payload is not a list of JSON objects.")

        # Flatten first so every row sees the union of columns
        flat = [_flatten(doc) for doc in payload]
        all_columns: set[str] = set()
        for row in flat:
            all_columns.update(row)
        flat = [{col: row.get(col) for col in sorted(all_columns)} for row in flat]

        rows: list[dict[str, Any]] = []
        for row in flat:
            rows.extend(_unnest_documents(row))

        for row in rows:
            _parse_dates(row)
            if "type" in row:
                row["type"] = _clean_person_type(row["type"])

        renamed = [{key.replace(".", "_"): value for key, value in row.items()} for row in rows]
        extra_columns = sorted(
            {key for row in renamed for key in row} - set(CANONICAL_COLUMNS)
        )

        records = []
        for row in renamed:
            canonical = {col: row.get(col) for col in CANONICAL_COLUMNS}
            extras = {col: row.get(col) for col in extra_columns}
            try:
                records.append(NormalizedCase.model_validate({**canonical, "extras": extras}))
            except ValidationError as e:
                raise PlatformError(f"Malformed case record in export payload: {e}") from e

        logger.debug("Normalized %d document(s) into %d row(s)", len(payload), len(records))
        return CaseTable(columns=[*CANONICAL_COLUMNS, *extra_columns], records=records)
