"""Flat case records produced from Go.Data export payloads."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# Output column order; columns not listed here follow, sorted by name
CANONICAL_COLUMNS: tuple[str, ...] = (
    "_id",
    "visualId",
    "firstName",
    "lastName",
    "dob",
    "age_years",
    "documents_type",
    "documents_number",
    "dateOfReporting",
    "dateOfOnset",
    "type",
)


class NormalizedCase(BaseModel):
    """One flattened case row. None is the empty value for every column."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: Optional[str] = Field(default=None, alias="_id")
    visual_id: Optional[str] = Field(default=None, alias="visualId")
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    dob: Optional[datetime] = None
    age_years: Optional[int] = None
    documents_type: Optional[str] = None
    documents_number: Optional[str] = None
    date_of_reporting: Optional[datetime] = Field(default=None, alias="dateOfReporting")
    date_of_onset: Optional[datetime] = Field(default=None, alias="dateOfOnset")
    type: Optional[str] = None

    extras: dict[str, Any] = Field(
        default_factory=dict,
        description="Other flattened columns from the payload",
    )

    def to_row(self) -> dict[str, Any]:
        """Column name -> value, canonical columns first."""
        row = self.model_dump(by_alias=True, exclude={"extras"})
        ordered = {col: row[col] for col in CANONICAL_COLUMNS}
        ordered.update(self.extras)
        return ordered


class CaseTable(BaseModel):
    """Normalized export result: every record has exactly `columns`, in order."""

    columns: list[str] = Field(default_factory=lambda: list(CANONICAL_COLUMNS))
    records: list[NormalizedCase] = Field(default_factory=list)

    def rows(self) -> list[dict[str, Any]]:
        return [r.to_row() for r in self.records]

    def __len__(self) -> int:
        return len(self.records)
