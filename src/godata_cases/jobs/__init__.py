"""Export job submission and polling."""

from godata_cases.jobs.poller import JobPoller
from godata_cases.jobs.submitter import JobSubmitter

__all__ = ["JobPoller", "JobSubmitter"]
