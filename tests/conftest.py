"""Pytest fixtures for godata-cases tests."""

from datetime import datetime
from typing import Callable

import httpx
import pytest

from godata_cases.api.client import GoDataClient
from godata_cases.config import ColumnMapping, FieldCombination, PipelineConfig
from godata_cases.models.rows import SourceRow

BASE_URL = "http://godata.test"


@pytest.fixture(autouse=True)
def _no_credential_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real GODATA_* variables from leaking into config tests."""
    for name in ("GODATA_URL", "GODATA_USERNAME", "GODATA_PASSWORD"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def dob_config() -> PipelineConfig:
    """Config matching on names & date of birth."""
    return PipelineConfig(
        url=BASE_URL,
        username="amy.smith@example.org",
        password="s3cret",
        outbreak="active",
        combination=FieldCombination.NAMES_DOB,
        columns=ColumnMapping(
            first_name="first",
            last_name="last",
            reference_date="specimen_date",
            date_of_birth="dob",
        ),
        poll_interval=0,
    )


@pytest.fixture
def age_config(dob_config: PipelineConfig) -> PipelineConfig:
    """Config matching on names & age in years."""
    return dob_config.model_copy(
        update={
            "combination": FieldCombination.NAMES_AGE,
            "columns": ColumnMapping(
                first_name="first",
                last_name="last",
                reference_date="specimen_date",
                age_years="age",
            ),
        }
    )


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 3, 15, 9, 30)


@pytest.fixture
def lab_rows() -> list[SourceRow]:
    """Three lab results for three different people."""
    return [
        SourceRow(data={"first": "Ana", "last": "Lopez", "dob": "1990-05-01", "age": "33", "specimen_date": "2024-03-10"}),
        SourceRow(data={"first": "Ben", "last": "Okafor", "dob": "1985-11-23", "age": "38", "specimen_date": "2024-03-11"}),
        SourceRow(data={"first": "Chen", "last": "Wu", "dob": "2001-01-30", "age": "23", "specimen_date": "2024-03-12"}),
    ]


@pytest.fixture
def case_document() -> dict:
    """One case as returned by a Go.Data JSON export (useDbColumns)."""
    return {
        "_id": "c-1",
        "visualId": "AM2403011200_LO0001",
        "firstName": "Ana",
        "lastName": "Lopez",
        "dob": "1990-05-01T00:00:00.000Z",
        "age": {"years": 33, "months": None},
        "documents": [{"type": "LNG_REFERENCE_DATA_CATEGORY_DOCUMENT_TYPE_PASSPORT", "number": "P123"}],
        "dateOfReporting": "2024-03-01T00:00:00.000Z",
        "dateOfOnset": "2024-02-28T00:00:00.000Z",
        "type": "LNG_REFERENCE_DATA_CATEGORY_PERSON_TYPE_CASE",
        "outcomeId": None,
    }


@pytest.fixture
def make_client() -> Callable[..., GoDataClient]:
    """Build a GoDataClient whose HTTP traffic goes to a handler function."""

    def _make(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> GoDataClient:
        http = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(handler))
        return GoDataClient(BASE_URL, "amy.smith@example.org", "s3cret", client=http, **kwargs)

    return _make
