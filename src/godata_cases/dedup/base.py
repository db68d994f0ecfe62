"""Capability interface for dedup matchers."""

from abc import ABC, abstractmethod

from godata_cases.config import PipelineConfig
from godata_cases.models.case import CaseTable
from godata_cases.models.match import MatchOutcome
from godata_cases.models.rows import SourceRow


class Matcher(ABC):
    """
    Decides, per lab row, whether a case already exists in the lookup table.
    Implementations must return exactly one outcome per row, in row order.
    """

    method: str = ""

    @abstractmethod
    def classify(
        self,
        rows: list[SourceRow],
        lookup: CaseTable,
        config: PipelineConfig,
    ) -> list[MatchOutcome]:
        """
        Match rows against lookup using config.combination and config.columns.
        """
        pass
