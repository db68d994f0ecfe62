"""Wait for a Go.Data export job to finish.

Each tick fetches the export log status and reports progress. Between ticks the
poller waits on a threading.Event, so another thread (or a signal handler) can
cancel it; a deadline bounds the total wait.
"""

import logging
import threading
import time
from typing import Callable, Optional

from godata_cases.api.client import GoDataClient
from godata_cases.config import PipelineConfig
from godata_cases.exceptions import JobCancelledError, JobFailedError, JobTimeoutError
from godata_cases.models.job import JobHandle, JobStatus, JobStep

logger = logging.getLogger(__name__)

ProgressFn = Callable[[JobStatus], None]


class JobPoller:
    """
    Polls an export job until the platform reports it finished.
    Unknown status steps are never treated as completion.
    """

    def __init__(
        self,
        client: GoDataClient,
        *,
        interval: float = 2.0,
        timeout: Optional[float] = 600.0,
        cancel_event: Optional[threading.Event] = None,
        on_progress: Optional[ProgressFn] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            client: Go.Data client used for status fetches
            interval: Seconds to wait between status fetches
            timeout: Seconds before giving up; None waits until the job finishes
            cancel_event: Set it to stop waiting (JobCancelledError)
            on_progress: Called with every fetched JobStatus
            clock: Monotonic time source
        """
        self._client = client
        self.interval = interval
        self.timeout = timeout
        self.cancel_event = cancel_event or threading.Event()
        self._on_progress = on_progress
        self._clock = clock

    @classmethod
    def from_config(cls, client: GoDataClient, config: PipelineConfig, **kwargs) -> "JobPoller":
        return cls(
            client,
            interval=config.poll_interval,
            timeout=config.poll_timeout,
            **kwargs,
        )

    def cancel(self) -> None:
        self.cancel_event.set()

    def fetch_status(self, handle: JobHandle) -> JobStatus:
        """One status fetch."""
        return JobStatus.from_response(self._client.get_export_status(handle.job_id))

    def _report(self, status: JobStatus) -> None:
        logger.info(
            "...processed %s of %s records",
            status.processed_count if status.processed_count is not None else "?",
            status.total_count if status.total_count is not None else "?",
        )
        if self._on_progress is not None:
            self._on_progress(status)

    def wait(self, handle: JobHandle) -> JobStatus:
        """Block until the job finishes; returns the final status."""
        deadline = None if self.timeout is None else self._clock() + self.timeout
        ticks = 0

        while True:
            if self.cancel_event.is_set():
                raise JobCancelledError(
                    f"Stopped waiting for export log {handle.job_id} after {ticks} status check(s).",
                    handle.job_id,
                )

            status = self.fetch_status(handle)
            ticks += 1
            self._report(status)

            if status.failed:
                raise JobFailedError(
                    f"Export log {handle.job_id} failed: {status.error or 'no details'}",
                    handle.job_id,
                )
            if status.finished:
                logger.debug("Export log %s finished after %d status check(s)", handle.job_id, ticks)
                return status
            if status.step is JobStep.UNKNOWN:
                logger.warning(
                    "Export log %s reported unrecognized step %r; still waiting",
                    handle.job_id,
                    status.raw_step,
                )

            wait_for = self.interval
            if deadline is not None:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    raise JobTimeoutError(
                        f"Export log {handle.job_id} did not finish within {self.timeout}s "
                        f"(last step: {status.raw_step}).",
                        handle.job_id,
                    )
                wait_for = min(wait_for, remaining)

            if self.cancel_event.wait(wait_for):
                raise JobCancelledError(
                    f"Stopped waiting for export log {handle.job_id} after {ticks} status check(s).",
                    handle.job_id,
                )
