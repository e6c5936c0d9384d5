#!/usr/bin/env python3
"""Prospecting worker.

Runs one prospecting cycle (or scheduled):
- search every enabled engine (or the queries in PROSPECT_QUERIES)
- fetch, extract and score each hit through the shared PolicyFetcher
- upsert qualifying prospects into SQLite
- write the JSON and/or CSV report to OUTPUT_PATH
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import List, Optional

import schedule
from dotenv import load_dotenv

from prospector.config import Settings
from prospector.contracts.report import write_csv_report, write_json_report
from prospector.fetching.policy_fetcher import PolicyFetcher
from prospector.pipeline import ProspectingEngine
from prospector.search.aggregator import SearchAggregator
from prospector.storage.prospect_store import SQLiteProspectStore


def _queries_from_env() -> Optional[List[str]]:
    raw = os.environ.get("PROSPECT_QUERIES", "").strip()
    if not raw:
        return None
    return [q.strip() for q in raw.split("|") if q.strip()]


def _limit_from_env() -> int:
    try:
        return int(os.environ.get("PROSPECT_LIMIT", "100"))
    except ValueError:
        return 100


def run_once() -> None:
    load_dotenv()
    settings = Settings.from_env(dotenv=False)
    logging.basicConfig(
        level=logging.DEBUG if settings.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    fetcher = PolicyFetcher.from_settings(settings)
    aggregator = SearchAggregator.from_settings(settings, fetcher)
    store = SQLiteProspectStore(settings.database_path)
    engine = ProspectingEngine(aggregator, fetcher, store, settings=settings)

    result = engine.run(queries=_queries_from_env(), limit=_limit_from_env())

    out_dir = Path(settings.output_path)
    written = []
    if settings.output_format in ("json", "both"):
        written.append(write_json_report(result, str(out_dir / "prospects.json")))
    if settings.output_format in ("csv", "both"):
        written.append(write_csv_report(result.prospects, str(out_dir / "prospects.csv")))

    meta = result.metadata
    print(
        f"[prospect] found={meta.total_found} qualified={meta.total_scored} "
        f"high_priority={meta.high_priority_count} avg={meta.average_score} "
        f"skipped={meta.skipped_existing} failed={meta.failed} in_db={store.count()} "
        f"reports={','.join(written) or '-'}"
    )


def run_scheduled() -> None:
    # Daily full cycle, plus one immediately on start
    schedule.every(24).hours.do(run_once)
    run_once()
    while True:
        schedule.run_pending()
        time.sleep(30)


if __name__ == "__main__":
    mode = (os.environ.get("PROSPECT_MODE") or "once").lower().strip()
    if mode in ("scheduled", "daemon"):
        run_scheduled()
    else:
        run_once()
