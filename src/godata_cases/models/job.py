"""Export job handle and status as reported by the platform."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from godata_cases.exceptions import PlatformError

FINISHED_STEP = "LNG_STATUS_STEP_EXPORT_FINISHED"
FAILED_STATUS = "LNG_SYNC_STATUS_FAILED"

# Steps reported before the platform starts writing records
_QUEUED_STEPS = frozenset(
    {
        "LNG_STATUS_STEP_RETRIEVING_LANGUAGE_TOKENS",
        "LNG_STATUS_STEP_PREPARING_PREFILTERS",
    }
)
_STEP_PREFIX = "LNG_STATUS_STEP_"


class JobStep(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    FINISHED = "finished"
    UNKNOWN = "unknown"


class JobHandle(BaseModel):
    """Export log id returned by the platform for an in-flight job."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    outbreak_id: Optional[str] = None

    @classmethod
    def from_response(cls, data: Any, outbreak_id: Optional[str] = None) -> "JobHandle":
        """Pluck exportLogId from a job-starting response."""
        job_id = data.get("exportLogId") if isinstance(data, dict) else None
        if not job_id:
            raise PlatformError("Response did not contain an exportLogId.")
        return cls(job_id=str(job_id), outbreak_id=outbreak_id)


def classify_step(raw_step: Optional[str]) -> JobStep:
    """Map a raw statusStep token to a JobStep. Anything unrecognized is UNKNOWN."""
    if raw_step is None:
        return JobStep.UNKNOWN
    if raw_step in _QUEUED_STEPS:
        return JobStep.QUEUED
    if raw_step == FINISHED_STEP:
        return JobStep.FINISHED
    if raw_step.startswith(_STEP_PREFIX):
        return JobStep.PROCESSING
    return JobStep.UNKNOWN


class JobStatus(BaseModel):
    """One status fetch of an export log."""

    model_config = ConfigDict(frozen=True)

    step: JobStep
    raw_step: Optional[str] = None
    total_count: Optional[int] = None
    processed_count: Optional[int] = None
    failed: bool = False
    error: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.step is JobStep.FINISHED

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "JobStatus":
        """Parse the export-logs response ({statusStep, totalNo, processedNo, status, ...})."""
        raw_step = data.get("statusStep")
        error = data.get("error") or data.get("errStack")
        return cls(
            step=classify_step(raw_step),
            raw_step=raw_step,
            total_count=data.get("totalNo"),
            processed_count=data.get("processedNo"),
            failed=data.get("status") == FAILED_STATUS,
            error=str(error) if error else None,
        )
