"""Pipeline orchestration: lookup → dedup → build → submit → poll → normalize."""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from godata_cases.api.client import GoDataClient
from godata_cases.builder import CreationBatch, RequestBuilder, check_row_values
from godata_cases.config import PipelineConfig
from godata_cases.dates import date_window
from godata_cases.dedup import DedupGuard, DedupResult, Matcher, MatcherRegistry
from godata_cases.exceptions import JobError
from godata_cases.jobs import JobPoller, JobSubmitter
from godata_cases.lookup import LookupSource, PlatformLookupSource
from godata_cases.models.job import JobHandle, JobStatus
from godata_cases.models.match import MatchOutcome
from godata_cases.models.rows import SourceRow
from godata_cases.normalizer import NormalizeResult, ResponseNormalizer

logger = logging.getLogger(__name__)


@dataclass
class CreateCasesResult:
    """What one run did. batch/job/cases stay None for the stages that did not run."""

    outbreak_id: str
    dedup: DedupResult
    batch: Optional[CreationBatch] = None
    job: Optional[JobHandle] = None
    final_status: Optional[JobStatus] = None
    cases: Optional[NormalizeResult] = None

    @property
    def outcomes(self) -> list[MatchOutcome]:
        return self.dedup.outcomes

    @property
    def submitted(self) -> bool:
        return self.job is not None


def run_create_cases(
    config: PipelineConfig,
    rows: Iterable[SourceRow],
    *,
    client: Optional[GoDataClient] = None,
    matcher: Optional[Matcher] = None,
    lookup_source: Optional[LookupSource] = None,
    poller: Optional[JobPoller] = None,
    cancel_event: Optional[threading.Event] = None,
    now: Optional[datetime] = None,
    dry_run: bool = False,
) -> CreateCasesResult:
    """
    Create cases for the lab rows that do not match an existing case.

    Configuration and column problems are raised before any network call.
    When every row already has a case nothing is submitted. With dry_run the
    batch is built but not sent.
    """
    rows = list(rows)
    reference_dates = check_row_values(rows, config)
    matcher = matcher or MatcherRegistry.get(config.method)
    window = date_window(reference_dates, config.epiwindow)

    owns_client = client is None
    client = client or GoDataClient.from_config(config)
    try:
        poller = poller or JobPoller.from_config(client, config, cancel_event=cancel_event)
        outbreak_id = client.resolve_outbreak(config.outbreak)
        lookup_source = lookup_source or PlatformLookupSource(client, outbreak_id, poller)

        lookup = lookup_source.fetch(window)
        dedup = DedupGuard(matcher).screen(rows, lookup, config)
        result = CreateCasesResult(outbreak_id=outbreak_id, dedup=dedup)
        if not dedup.new_rows:
            logger.info("All %d row(s) already have a case; nothing to create", len(rows))
            return result

        result.batch = RequestBuilder(config).build(dedup.new_rows, now=now)
        if dry_run:
            logger.info("Dry run: built %d case(s), not submitting", len(result.batch))
            return result

        result.job = JobSubmitter(client).submit(result.batch, outbreak_id)
        try:
            result.final_status = poller.wait(result.job)
        except JobError:
            logger.error(
                "Cases were submitted as export log %s but the job did not complete here; "
                "download its result instead of submitting again",
                result.job.job_id,
            )
            raise
        result.cases = ResponseNormalizer().normalize(client.download_export(result.job.job_id))
        logger.info("Created %d case(s) in outbreak %s", len(result.batch), outbreak_id)
        return result
    finally:
        if owns_client:
            client.close()


def fetch_job_result(
    client: GoDataClient,
    job_id: str,
    poller: Optional[JobPoller] = None,
) -> NormalizeResult:
    """
    Download and normalize the result of an existing job, waiting for it first when
    a poller is given. Recovers a run whose poll was interrupted without re-submitting.
    """
    handle = JobHandle(job_id=job_id)
    if poller is not None:
        poller.wait(handle)
    return ResponseNormalizer().normalize(client.download_export(handle.job_id))
