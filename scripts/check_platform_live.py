#!/usr/bin/env python3
"""Quick live check of Go.Data login + active outbreak lookup.

Run:
  python scripts/check_platform_live.py config.yaml            # login, resolve outbreak
  python scripts/check_platform_live.py config.yaml 2024-03-01 # also count cases reported since
"""

import sys
from datetime import date

from godata_cases.api import GoDataClient
from godata_cases.config import PipelineConfig
from godata_cases.dates import DateWindow
from godata_cases.jobs import JobPoller
from godata_cases.lookup import PlatformLookupSource


def main() -> None:
    if len(sys.argv) < 2:
        raise SystemExit(__doc__)
    config = PipelineConfig.from_yaml(sys.argv[1])

    with GoDataClient.from_config(config) as client:
        client.access_token()
        print(f"Logged in to {config.url} as {config.username}")
        outbreak_id = client.resolve_outbreak(config.outbreak)
        print(f"Outbreak: {outbreak_id}")

        if len(sys.argv) > 2:
            window = DateWindow(start=date.fromisoformat(sys.argv[2]), end=date.today())
            source = PlatformLookupSource(client, outbreak_id, JobPoller.from_config(client, config))
            table = source.fetch(window)
            print(f"Cases reported {window.start} to {window.end}: {len(table) if table else 0}")

    print("\nLogin + outbreak lookup succeeded.")


if __name__ == "__main__":
    main()
