"""Main CLI entry point."""

import argparse
import json
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Any

from godata_cases.exceptions import GoDataCasesError


def main() -> None:
    """Parse args and dispatch to subcommands."""
    parser = argparse.ArgumentParser(
        prog="godata-cases",
        description="Create Go.Data cases from lab results, skipping people who already have a case",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # create
    create_parser = subparsers.add_parser("create", help="Create cases for new lab results")
    create_parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to pipeline config YAML",
    )
    create_parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help="Lab results file (.csv or .json)",
    )
    create_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the run result as JSON (default: stdout)",
    )
    create_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Match and build the request, print it, but do not submit",
    )

    # status
    status_parser = subparsers.add_parser("status", help="Show the status of a Go.Data job")
    status_parser.add_argument("--config", type=Path, required=True, help="Path to pipeline config YAML")
    status_parser.add_argument("job_id", help="Export log ID")

    # download
    download_parser = subparsers.add_parser(
        "download",
        help="Wait for a job and download its normalized result (recovers an interrupted run)",
    )
    download_parser.add_argument("--config", type=Path, required=True, help="Path to pipeline config YAML")
    download_parser.add_argument("job_id", help="Export log ID")
    download_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write normalized rows as JSON (default: stdout)",
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "create":
            _run_create(args)
        elif args.command == "status":
            _run_status(args)
        elif args.command == "download":
            _run_download(args)
        else:
            parser.print_help()
    except GoDataCasesError as e:
        raise SystemExit(f"Error: {e}")


def _emit(data: Any, output: Path | None, summary: str) -> None:
    text = json.dumps(data, indent=2, default=str)
    if output:
        output.write_text(text, encoding="utf-8")
        print(f"{summary}; wrote {output}")
    else:
        print(text)


def _table_rows(result) -> list[dict[str, Any]]:
    from godata_cases.normalizer import NO_RECORDS

    if result is None or result is NO_RECORDS:
        return []
    return result.rows()


def _cancel_on_sigint(event: threading.Event):
    """First Ctrl-C stops the poller cleanly, a second one interrupts. Returns the previous handler."""

    def _handler(signum, frame):
        event.set()
        signal.signal(signal.SIGINT, signal.default_int_handler)

    return signal.signal(signal.SIGINT, _handler)


def _run_create(args: argparse.Namespace) -> None:
    """Run create command."""
    from godata_cases.config import PipelineConfig
    from godata_cases.exceptions import JobCancelledError
    from godata_cases.pipeline import run_create_cases
    from godata_cases.readers import read_source_rows

    config = PipelineConfig.from_yaml(args.config)
    rows = read_source_rows(args.input)

    cancel_event = threading.Event()
    previous_handler = _cancel_on_sigint(cancel_event)
    try:
        result = run_create_cases(config, rows, cancel_event=cancel_event, dry_run=args.dry_run)
    except JobCancelledError as e:
        print(
            f"Stopped waiting for export log {e.job_id}. If cases were already submitted, "
            f"fetch them with: godata-cases download --config {args.config} {e.job_id}",
            file=sys.stderr,
        )
        raise SystemExit(130)
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGINT, previous_handler)

    if args.dry_run:
        output = {
            "outbreak_id": result.outbreak_id,
            "outcomes": [o.model_dump(mode="json") for o in result.outcomes],
            "request": result.batch.to_payload() if result.batch else [],
        }
        _emit(output, args.output, f"Dry run: {len(output['request'])} case(s) would be created")
        return

    created = len(result.batch) if result.batch else 0
    output = {
        "outbreak_id": result.outbreak_id,
        "job_id": result.job.job_id if result.job else None,
        "outcomes": [o.model_dump(mode="json") for o in result.outcomes],
        "created": created,
        "cases": _table_rows(result.cases),
    }
    _emit(output, args.output, f"Created {created} case(s)")


def _run_status(args: argparse.Namespace) -> None:
    """Run status command."""
    from godata_cases.api import GoDataClient
    from godata_cases.config import PipelineConfig
    from godata_cases.jobs import JobPoller
    from godata_cases.models.job import JobHandle

    config = PipelineConfig.from_yaml(args.config)
    with GoDataClient.from_config(config) as client:
        status = JobPoller(client).fetch_status(JobHandle(job_id=args.job_id))
    print(json.dumps(status.model_dump(mode="json"), indent=2, default=str))


def _run_download(args: argparse.Namespace) -> None:
    """Run download command."""
    from godata_cases.api import GoDataClient
    from godata_cases.config import PipelineConfig
    from godata_cases.jobs import JobPoller
    from godata_cases.pipeline import fetch_job_result

    config = PipelineConfig.from_yaml(args.config)
    with GoDataClient.from_config(config) as client:
        poller = JobPoller.from_config(client, config)
        result = fetch_job_result(client, args.job_id, poller)
    rows = _table_rows(result)
    _emit(rows, args.output, f"Downloaded {len(rows)} row(s)")


if __name__ == "__main__":
    main()
