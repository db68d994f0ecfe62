"""Integration tests: full create-cases run against a fake Go.Data over httpx.MockTransport."""

import json
from datetime import datetime
from typing import Any, Optional

import httpx
import pytest

from godata_cases.config import PipelineConfig
from godata_cases.exceptions import ConfigurationError
from godata_cases.jobs import JobPoller
from godata_cases.lookup import TableLookupSource
from godata_cases.models.case import CANONICAL_COLUMNS, CaseTable
from godata_cases.models.job import FINISHED_STEP
from godata_cases.models.rows import SourceRow
from godata_cases.normalizer import NO_RECORDS
from godata_cases.pipeline import fetch_job_result, run_create_cases

QUEUED = {"statusStep": "LNG_STATUS_STEP_RETRIEVING_LANGUAGE_TOKENS"}
PROCESSING = {"statusStep": "LNG_STATUS_STEP_EXPORTING_RECORDS", "totalNo": 2, "processedNo": 1}
FINISHED = {"statusStep": FINISHED_STEP, "totalNo": 2, "processedNo": 2}


class FakeGoData:
    """Just enough of the Go.Data API for one pipeline run."""

    def __init__(
        self,
        existing: Optional[list[dict]] = None,
        create_statuses: Optional[list[dict]] = None,
        created_result: Optional[list[dict]] = None,
    ):
        self.existing = existing or []
        self.create_statuses = list(create_statuses or [FINISHED])
        self.created_result = created_result
        self.requests: list[httpx.Request] = []
        self.created_bodies: list[Any] = []
        self.status_fetches: dict[str, int] = {"lookup-log": 0, "create-log": 0}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method, path = request.method, request.url.path
        if (method, path) == ("POST", "/api/oauth/token"):
            return httpx.Response(200, json={"access_token": "tok"})
        if (method, path) == ("GET", "/api/users"):
            return httpx.Response(200, json=[{"email": "amy.smith@example.org", "activeOutbreakId": "ob-1"}])
        if (method, path) == ("GET", "/api/outbreaks/ob-1/cases/export"):
            return httpx.Response(200, json={"exportLogId": "lookup-log"})
        if (method, path) == ("POST", "/api/outbreaks/ob-1/cases"):
            self.created_bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"exportLogId": "create-log"})
        if path == "/api/export-logs/lookup-log":
            self.status_fetches["lookup-log"] += 1
            return httpx.Response(200, json=FINISHED)
        if path == "/api/export-logs/create-log":
            self.status_fetches["create-log"] += 1
            return httpx.Response(200, json=self.create_statuses.pop(0))
        if path == "/api/export-logs/lookup-log/download":
            return httpx.Response(200, json=self.existing)
        if path == "/api/export-logs/create-log/download":
            created = self.created_result
            if created is None:
                created = [
                    {"_id": f"id-{i}", **case} for i, case in enumerate(self.created_bodies[-1], start=1)
                ]
            return httpx.Response(200, json=created)
        return httpx.Response(404)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


def _run(config: PipelineConfig, rows: list[SourceRow], fake: FakeGoData, make_client, now: datetime, **kwargs):
    client = make_client(fake)
    return run_create_cases(config, rows, client=client, now=now, **kwargs)


class TestCreateCasesPipeline:
    """End-to-end scenarios."""

    def test_empty_lookup_creates_all(
        self, dob_config: PipelineConfig, lab_rows: list[SourceRow], make_client, fixed_now: datetime
    ) -> None:
        """Three rows, no existing cases: three cases submitted, indices 0001-0003."""
        fake = FakeGoData()
        result = _run(dob_config, lab_rows, fake, make_client, fixed_now)

        assert len(fake.created_bodies) == 1
        visual_ids = [c["visualId"] for c in fake.created_bodies[0]]
        assert [v[-4:] for v in visual_ids] == ["0001", "0002", "0003"]
        assert len(set(visual_ids)) == 3
        assert result.submitted
        assert result.job.job_id == "create-log"
        assert len(result.cases) == 3

    def test_existing_case_skipped(
        self, dob_config: PipelineConfig, lab_rows: list[SourceRow], make_client, fixed_now: datetime, case_document: dict
    ) -> None:
        """Two rows, the first already has a case: only the second is created, as 0001."""
        fake = FakeGoData(existing=[case_document])
        result = _run(dob_config, lab_rows[:2], fake, make_client, fixed_now)

        [body] = fake.created_bodies
        assert len(body) == 1
        assert body[0]["lastName"] == "Okafor"
        assert body[0]["visualId"] == "AM2403150930_OK0001"
        assert [o.is_new for o in result.outcomes] == [False, True]
        assert result.outcomes[0].matched_id == case_document["visualId"]

    def test_polls_until_finished_then_downloads(
        self, dob_config: PipelineConfig, lab_rows: list[SourceRow], make_client, fixed_now: datetime
    ) -> None:
        """Queued, processing, processing, finished: four status fetches then one download."""
        fake = FakeGoData(create_statuses=[QUEUED, PROCESSING, PROCESSING, FINISHED])
        result = _run(dob_config, lab_rows, fake, make_client, fixed_now)

        assert fake.status_fetches["create-log"] == 4
        paths = fake.paths()
        assert paths.count("/api/export-logs/create-log/download") == 1
        last_status = max(i for i, p in enumerate(paths) if p == "/api/export-logs/create-log")
        assert paths.index("/api/export-logs/create-log/download") > last_status
        assert result.final_status.finished

    def test_created_record_without_documents(
        self, dob_config: PipelineConfig, lab_rows: list[SourceRow], make_client, fixed_now: datetime
    ) -> None:
        """A created record with no documents still has every canonical column, nested ones empty."""
        created = [
            {
                "_id": "id-1",
                "visualId": "AM2403150930_LO0001",
                "firstName": "Ana",
                "lastName": "Lopez",
                "dob": "1990-05-01T00:00:00.000Z",
                "dateOfReporting": "2024-03-15T00:00:00.000Z",
                "type": "LNG_REFERENCE_DATA_CATEGORY_PERSON_TYPE_CASE",
            }
        ]
        fake = FakeGoData(created_result=created)
        result = _run(dob_config, lab_rows[:1], fake, make_client, fixed_now)

        assert isinstance(result.cases, CaseTable)
        row = result.cases.rows()[0]
        assert list(row)[: len(CANONICAL_COLUMNS)] == list(CANONICAL_COLUMNS)
        assert row["documents_type"] is None
        assert row["documents_number"] is None
        assert row["type"] == "case"

    def test_all_rows_existing_is_noop(
        self, dob_config: PipelineConfig, lab_rows: list[SourceRow], make_client, fixed_now: datetime, case_document: dict
    ) -> None:
        """Nothing new: no batch, no create request."""
        fake = FakeGoData(existing=[case_document])
        result = _run(dob_config, lab_rows[:1], fake, make_client, fixed_now)

        assert result.batch is None
        assert not result.submitted
        assert fake.created_bodies == []

    def test_dry_run_does_not_submit(
        self, dob_config: PipelineConfig, lab_rows: list[SourceRow], make_client, fixed_now: datetime
    ) -> None:
        fake = FakeGoData()
        result = _run(dob_config, lab_rows, fake, make_client, fixed_now, dry_run=True)

        assert len(result.batch) == 3
        assert not result.batch.submitted
        assert fake.created_bodies == []

    def test_configuration_error_before_network(self, dob_config: PipelineConfig, make_client, fixed_now: datetime) -> None:
        """Missing bound column fails before any request."""
        fake = FakeGoData()
        rows = [SourceRow(data={"first": "Ana", "last": "Lopez", "specimen_date": "2024-03-10"})]
        with pytest.raises(ConfigurationError, match="dob"):
            _run(dob_config, rows, fake, make_client, fixed_now)
        assert fake.requests == []

    def test_bad_row_value_before_network(
        self, dob_config: PipelineConfig, make_client, fixed_now: datetime, case_document: dict
    ) -> None:
        """An unparseable date of birth fails before login or lookup."""
        fake = FakeGoData(existing=[case_document])
        rows = [SourceRow(data={"first": "Ana", "last": "Lopez", "dob": "not-a-date", "specimen_date": "2024-03-10"})]
        with pytest.raises(ConfigurationError, match="not-a-date"):
            _run(dob_config, rows, fake, make_client, fixed_now)
        assert fake.requests == []

    def test_bad_age_before_network(self, age_config: PipelineConfig, make_client, fixed_now: datetime) -> None:
        fake = FakeGoData()
        rows = [SourceRow(data={"first": "Ana", "last": "Lopez", "age": "inf", "specimen_date": "2024-03-10"})]
        with pytest.raises(ConfigurationError, match="age"):
            _run(age_config, rows, fake, make_client, fixed_now)
        assert fake.requests == []

    def test_lookup_source_override(
        self, dob_config: PipelineConfig, lab_rows: list[SourceRow], make_client, fixed_now: datetime
    ) -> None:
        """An injected lookup source replaces the platform export."""
        fake = FakeGoData()
        _run(dob_config, lab_rows, fake, make_client, fixed_now, lookup_source=TableLookupSource(None))
        assert "/api/outbreaks/ob-1/cases/export" not in fake.paths()
        assert len(fake.created_bodies[0]) == 3


class TestFetchJobResult:
    """Tests for fetch_job_result."""

    def test_waits_then_downloads(self, make_client, case_document: dict) -> None:
        fake = FakeGoData(existing=[case_document])
        client = make_client(fake)
        table = fetch_job_result(client, "lookup-log", JobPoller(client, interval=0))
        assert len(table) == 1
        assert fake.status_fetches["lookup-log"] == 1

    def test_empty_result(self, make_client) -> None:
        client = make_client(FakeGoData())
        assert fetch_job_result(client, "lookup-log") is NO_RECORDS
