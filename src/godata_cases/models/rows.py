"""Lab data rows and the case records built from them."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SourceRow(BaseModel):
    """
    One lab result row, column name -> scalar value.
    Only the columns bound in the config are read; others are carried untouched.
    """

    data: dict[str, Any] = Field(default_factory=dict)

    def get(self, column: str, default: Any = None) -> Any:
        return self.data.get(column, default)


class CreationCandidate(BaseModel):
    """A new case in Go.Data field names, ready for serialization."""

    model_config = ConfigDict(populate_by_name=True)

    visual_id: str = Field(..., alias="visualId")
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    dob: Optional[str] = None
    age_years: Optional[int] = Field(default=None, alias="age.years")
    date_of_onset: Optional[str] = Field(default=None, alias="dateOfOnset")
    date_of_reporting: str = Field(..., alias="dateOfReporting")
    type: str
    comment: str = Field(..., alias="dateRanges.comments")

    def to_payload(self) -> dict[str, Any]:
        """
        Request body for one case. Dotted field names become nested objects
        and the comment goes into the dateRanges list.
        """
        flat = self.model_dump(by_alias=True, exclude_none=True)
        comment = flat.pop("dateRanges.comments")
        payload: dict[str, Any] = {}
        for key, value in flat.items():
            head, _, tail = key.partition(".")
            if tail:
                payload.setdefault(head, {})[tail] = value
            else:
                payload[key] = value
        payload["dateRanges"] = [{"comments": comment}]
        return payload
