"""Build the case creation request from lab rows with no existing case."""

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from godata_cases.config import PipelineConfig
from godata_cases.dates import encode_platform_date, parse_source_date
from godata_cases.exceptions import ConfigurationError
from godata_cases.identifiers import IdentifierGenerator
from godata_cases.models.rows import CreationCandidate, SourceRow

CASE_TYPE = "case"
ONSET_COMMENT = "Onset date is from specimen date; please update"


@dataclass
class CreationBatch:
    """Non-empty, ordered set of cases sent as one request. Submitted at most once."""

    candidates: list[CreationCandidate]
    submitted: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        if not self.candidates:
            raise ConfigurationError("No cases to create: creation batch is empty.")

    def __len__(self) -> int:
        return len(self.candidates)

    @property
    def visual_ids(self) -> list[str]:
        return [c.visual_id for c in self.candidates]

    def to_payload(self) -> list[dict[str, Any]]:
        return [c.to_payload() for c in self.candidates]

    def to_json(self) -> str:
        """Compact JSON array: no indentation or spacing, scalars left unwrapped."""
        return json.dumps(self.to_payload(), separators=(",", ":"), ensure_ascii=False)


def check_source_columns(rows: list[SourceRow], config: PipelineConfig) -> dict[str, str]:
    """
    Validate bound columns against the lab rows before anything touches the network.
    Returns role -> column.
    """
    bound = config.bound_columns()
    if not rows:
        raise ConfigurationError("No lab rows supplied; there is nothing to create.")
    for role, column in bound.items():
        for index, row in enumerate(rows, start=1):
            if column not in row.data:
                raise ConfigurationError(
                    f"Column '{column}' ({role.replace('_', ' ')}) not found in lab data row {index}."
                )
    return bound


def check_row_values(rows: list[SourceRow], config: PipelineConfig) -> list[Optional[date]]:
    """
    Parse every bound date and age so a bad cell fails before any network call.
    Returns the reference date of each row.
    """
    bound = check_source_columns(rows, config)
    order = config.date_order
    for row in rows:
        if "date_of_birth" in bound:
            parse_source_date(row.get(bound["date_of_birth"]), order)
        else:
            parse_age(row.get(bound["age_years"]))
    return [parse_source_date(row.get(bound["reference_date"]), order) for row in rows]


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_age(value: Any) -> Optional[int]:
    """Age in whole years; accepts ints, floats and numeric strings."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        age = int(float(str(value).strip()))
    except (ValueError, OverflowError) as e:
        raise ConfigurationError(f"Could not parse age in years: {value!r}") from e
    if age < 0:
        raise ConfigurationError(f"Age in years cannot be negative: {value!r}")
    return age


class RequestBuilder:
    """Maps lab columns onto Go.Data case fields and assigns visual IDs."""

    def __init__(self, config: PipelineConfig):
        self.config = config

    def build(self, rows: list[SourceRow], now: Optional[datetime] = None) -> CreationBatch:
        """
        Build the creation batch. `now` is captured once and used for both
        the visual ID timestamp and the reporting date.
        """
        bound = check_source_columns(rows, self.config)
        now = now or datetime.now()

        generator = IdentifierGenerator(self.config.username, now=now)
        visual_ids = generator.generate(_clean_text(r.get(bound["last_name"])) for r in rows)
        date_of_reporting = encode_platform_date(now.date())

        candidates = [
            self._candidate(row, bound, visual_id, date_of_reporting)
            for row, visual_id in zip(rows, visual_ids)
        ]
        return CreationBatch(candidates)

    def _candidate(
        self,
        row: SourceRow,
        bound: dict[str, str],
        visual_id: str,
        date_of_reporting: str,
    ) -> CreationCandidate:
        order = self.config.date_order

        dob = None
        age_years = None
        if "date_of_birth" in bound:
            birth_date = parse_source_date(row.get(bound["date_of_birth"]), order)
            dob = encode_platform_date(birth_date) if birth_date else None
        else:
            age_years = parse_age(row.get(bound["age_years"]))

        onset = parse_source_date(row.get(bound["reference_date"]), order)

        return CreationCandidate(
            visual_id=visual_id,
            first_name=_clean_text(row.get(bound["first_name"])),
            last_name=_clean_text(row.get(bound["last_name"])),
            dob=dob,
            age_years=age_years,
            date_of_onset=encode_platform_date(onset) if onset else None,
            date_of_reporting=date_of_reporting,
            type=CASE_TYPE,
            comment=ONSET_COMMENT,
        )
