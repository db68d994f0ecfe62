"""Screen lab rows against existing cases before creating new ones."""

import logging
from typing import Optional

from pydantic import BaseModel, Field

from godata_cases.config import PipelineConfig
from godata_cases.dedup.base import Matcher
from godata_cases.exceptions import DedupError
from godata_cases.models.case import CaseTable
from godata_cases.models.match import MatchOutcome
from godata_cases.models.rows import SourceRow

logger = logging.getLogger(__name__)


class DedupResult(BaseModel):
    """Rows with their outcomes, aligned by position."""

    rows: list[SourceRow] = Field(default_factory=list)
    outcomes: list[MatchOutcome] = Field(default_factory=list)

    @property
    def new_rows(self) -> list[SourceRow]:
        return [r for r, o in zip(self.rows, self.outcomes) if o.is_new]

    @property
    def existing_rows(self) -> list[SourceRow]:
        return [r for r, o in zip(self.rows, self.outcomes) if not o.is_new]


class DedupGuard:
    """Labels each row via the matcher and filters out rows that already have a case."""

    def __init__(self, matcher: Matcher):
        self._matcher = matcher

    def screen(
        self,
        rows: list[SourceRow],
        lookup: Optional[CaseTable],
        config: PipelineConfig,
    ) -> DedupResult:
        """
        Classify rows. With no lookup table every row is new and the matcher is not called.
        Matcher exceptions propagate.
        """
        rows = list(rows)
        if lookup is None or len(lookup) == 0:
            logger.info("No existing cases to match against; all %d row(s) are new", len(rows))
            return DedupResult(rows=rows, outcomes=[MatchOutcome.no_match() for _ in rows])

        outcomes = list(self._matcher.classify(rows, lookup, config))
        if len(outcomes) != len(rows):
            raise DedupError(
                f"Matcher returned {len(outcomes)} outcome(s) for {len(rows)} row(s)."
            )

        result = DedupResult(rows=rows, outcomes=outcomes)
        logger.info(
            "Dedup: %d row(s) already have a case, %d new",
            len(result.existing_rows),
            len(result.new_rows),
        )
        return result
