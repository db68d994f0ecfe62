"""Dedup outcome per lab row."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class MatchLabel(str, Enum):
    MATCHED = "matched"
    NO_MATCH = "no match"


class MatchOutcome(BaseModel):
    """Whether a lab row already has a case, and which one."""

    model_config = ConfigDict(frozen=True)

    label: MatchLabel
    matched_id: Optional[str] = None

    @classmethod
    def matched(cls, matched_id: str) -> "MatchOutcome":
        return cls(label=MatchLabel.MATCHED, matched_id=matched_id)

    @classmethod
    def no_match(cls) -> "MatchOutcome":
        return cls(label=MatchLabel.NO_MATCH)

    @property
    def is_new(self) -> bool:
        return self.label is MatchLabel.NO_MATCH
