"""Exact matching on names plus date of birth or age."""

from datetime import date
from typing import Optional, Union

from godata_cases.builder import parse_age
from godata_cases.config import PipelineConfig
from godata_cases.dates import parse_source_date
from godata_cases.dedup.base import Matcher
from godata_cases.models.case import CaseTable, NormalizedCase
from godata_cases.models.match import MatchOutcome
from godata_cases.models.rows import SourceRow

MatchKey = tuple[str, str, Union[date, int, None]]


def _normalize_name(value) -> str:
    """Case- and whitespace-insensitive form of a name."""
    if value is None:
        return ""
    return " ".join(str(value).split()).casefold()


class ExactMatcher(Matcher):
    """
    A row matches a case when first name, last name and date of birth (or age)
    are equal, and the case was reported within epiwindow days of the row's
    reference date. Rows or cases missing any key field never match.
    """

    method = "exact"

    def classify(
        self,
        rows: list[SourceRow],
        lookup: CaseTable,
        config: PipelineConfig,
    ) -> list[MatchOutcome]:
        bound = config.bound_columns()
        use_dob = "date_of_birth" in bound

        index: dict[MatchKey, list[NormalizedCase]] = {}
        for case in lookup.records:
            if use_dob:
                attr = case.dob.date() if case.dob else None
            else:
                attr = case.age_years
            key = (_normalize_name(case.first_name), _normalize_name(case.last_name), attr)
            if all(part not in ("", None) for part in key):
                index.setdefault(key, []).append(case)

        outcomes: list[MatchOutcome] = []
        for row in rows:
            if use_dob:
                attr = parse_source_date(row.get(bound["date_of_birth"]), config.date_order)
            else:
                attr = parse_age(row.get(bound["age_years"]))
            key = (
                _normalize_name(row.get(bound["first_name"])),
                _normalize_name(row.get(bound["last_name"])),
                attr,
            )
            reference = parse_source_date(row.get(bound["reference_date"]), config.date_order)
            match = next(
                (c for c in index.get(key, []) if self._within_window(c, reference, config.epiwindow)),
                None,
            )
            if match is None:
                outcomes.append(MatchOutcome.no_match())
            else:
                outcomes.append(MatchOutcome.matched(match.visual_id or match.id or "unknown"))
        return outcomes

    @staticmethod
    def _within_window(case: NormalizedCase, reference: Optional[date], epiwindow: int) -> bool:
        if reference is None or case.date_of_reporting is None:
            return True
        return abs((case.date_of_reporting.date() - reference).days) <= epiwindow
