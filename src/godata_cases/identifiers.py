"""Human-readable visual IDs for new cases.

Format: {USER}{yymmddHHMM}_{FAMILY}{index}, e.g. AM2403011530_SM0001
  USER   - first two letters of the acting user name, upper case
  FAMILY - first two letters of the case's family name, upper case
  index  - 1-based position in the batch, zero-padded to 4 digits

IDs are unique within one batch only. Two batches started in the same minute by
users sharing initials can produce the same ID for cases sharing family-name
initials; the platform's visual ID format does not leave room for more.
"""

from datetime import datetime
from typing import Iterable, Optional

TIMESTAMP_FORMAT = "%y%m%d%H%M"
INDEX_WIDTH = 4


def _initials(value: Optional[str]) -> str:
    if value is None:
        return ""
    return str(value).strip()[:2].upper()


class IdentifierGenerator:
    """Generates visual IDs for one batch; the timestamp is fixed at construction."""

    def __init__(self, username: str, now: Optional[datetime] = None):
        self.username = username
        self.now = now or datetime.now()

    @property
    def prefix(self) -> str:
        return f"{_initials(self.username)}{self.now.strftime(TIMESTAMP_FORMAT)}_"

    def generate(self, last_names: Iterable[Optional[str]]) -> list[str]:
        """One ID per family name, in order."""
        prefix = self.prefix
        return [
            f"{prefix}{_initials(name)}{index:0{INDEX_WIDTH}d}"
            for index, name in enumerate(last_names, start=1)
        ]
