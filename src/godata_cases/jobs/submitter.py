"""Submit a creation batch and obtain the export job handle."""

import logging

from godata_cases.api.client import GoDataClient
from godata_cases.builder import CreationBatch
from godata_cases.exceptions import (
    AlreadySubmittedError,
    PlatformConnectionError,
    SubmissionOutcomeUnknown,
)
from godata_cases.models.job import JobHandle

logger = logging.getLogger(__name__)


class JobSubmitter:
    """
    Sends a CreationBatch to the case creation endpoint, at most once.

    Creating cases is not idempotent and the platform offers no idempotency key,
    so a batch is never sent twice: the batch is marked submitted before the
    request goes out, and a failure after the request may have reached the server
    raises SubmissionOutcomeUnknown instead of being retried.
    """

    def __init__(self, client: GoDataClient):
        self._client = client

    def submit(self, batch: CreationBatch, outbreak_id: str) -> JobHandle:
        """POST the batch; returns the handle of the job that materializes the cases."""
        if batch.submitted:
            raise AlreadySubmittedError(
                "This creation batch was already submitted. Check the outbreak for "
                "its visual IDs and build a new batch if cases are missing."
            )

        body = batch.to_json()
        # Log in first so a token failure can never look like an ambiguous create
        self._client.access_token()

        batch.submitted = True
        logger.info("Submitting %d new case(s) to outbreak %s", len(batch), outbreak_id)
        try:
            data = self._client.create_cases(outbreak_id, body)
        except PlatformConnectionError as e:
            if not e.request_sent:
                batch.submitted = False
                raise
            raise SubmissionOutcomeUnknown(
                f"Case creation request for {len(batch)} case(s) may have reached Go.Data "
                f"({e}). Check the outbreak for visual IDs {', '.join(batch.visual_ids)} "
                "before creating them again."
            ) from e

        handle = JobHandle.from_response(data, outbreak_id=outbreak_id)
        logger.info("Case creation started; export log %s", handle.job_id)
        return handle
