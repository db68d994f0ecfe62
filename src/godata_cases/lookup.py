"""Existing cases used as the dedup reference set."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from godata_cases.api.client import GoDataClient
from godata_cases.dates import DateWindow, encode_platform_date
from godata_cases.jobs.poller import JobPoller
from godata_cases.models.case import CaseTable
from godata_cases.models.job import JobHandle
from godata_cases.normalizer import NO_RECORDS, ResponseNormalizer

logger = logging.getLogger(__name__)


class LookupSource(ABC):
    """Supplies the cases a batch of lab rows is screened against."""

    @abstractmethod
    def fetch(self, window: DateWindow) -> Optional[CaseTable]:
        """
        Cases reported within the window. None when nothing is available.
        """
        pass


class PlatformLookupSource(LookupSource):
    """Exports the outbreak's cases from Go.Data, filtered on reporting date."""

    def __init__(
        self,
        client: GoDataClient,
        outbreak_id: str,
        poller: JobPoller,
        normalizer: Optional[ResponseNormalizer] = None,
    ):
        self._client = client
        self.outbreak_id = outbreak_id
        self._poller = poller
        self._normalizer = normalizer or ResponseNormalizer()

    @staticmethod
    def reporting_date_filter(window: DateWindow) -> dict:
        """Loopback where-clause selecting cases reported within the window."""
        end_of_day = encode_platform_date(window.end).replace("T00:00:00.000Z", "T23:59:59.999Z")
        return {
            "dateOfReporting": {
                "between": [encode_platform_date(window.start), end_of_day],
            }
        }

    def fetch(self, window: DateWindow) -> Optional[CaseTable]:
        data = self._client.export_cases(self.outbreak_id, self.reporting_date_filter(window))
        handle = JobHandle.from_response(data, outbreak_id=self.outbreak_id)
        logger.info(
            "Fetching cases reported %s to %s (export log %s)",
            window.start,
            window.end,
            handle.job_id,
        )
        self._poller.wait(handle)
        result = self._normalizer.normalize(self._client.download_export(handle.job_id))
        if result is NO_RECORDS:
            logger.info("No existing cases in the date range")
            return None
        logger.info("Loaded %d existing case row(s) for matching", len(result))
        return result


class TableLookupSource(LookupSource):
    """Serves an already-loaded case table (e.g. an earlier export), restricted to the window."""

    def __init__(self, table: Optional[CaseTable]):
        self._table = table

    def fetch(self, window: DateWindow) -> Optional[CaseTable]:
        if self._table is None:
            return None
        records = [
            r
            for r in self._table.records
            if r.date_of_reporting is None or window.contains(r.date_of_reporting.date())
        ]
        return CaseTable(columns=list(self._table.columns), records=records)
