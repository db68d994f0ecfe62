"""Data models for lab rows, dedup outcomes, export jobs and normalized cases."""

from godata_cases.models.case import CANONICAL_COLUMNS, CaseTable, NormalizedCase
from godata_cases.models.job import JobHandle, JobStatus, JobStep
from godata_cases.models.match import MatchLabel, MatchOutcome
from godata_cases.models.rows import CreationCandidate, SourceRow

__all__ = [
    "CANONICAL_COLUMNS",
    "CaseTable",
    "CreationCandidate",
    "JobHandle",
    "JobStatus",
    "JobStep",
    "MatchLabel",
    "MatchOutcome",
    "NormalizedCase",
    "SourceRow",
]
