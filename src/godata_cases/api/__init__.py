"""Go.Data API access."""

from godata_cases.api.client import GoDataClient

__all__ = ["GoDataClient"]
