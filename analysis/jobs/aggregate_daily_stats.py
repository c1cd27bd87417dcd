#!/usr/bin/env python3
import logging
import argparse
from datetime import datetime, timezone
from typing import List, Optional

from core.db import SessionLocal
from core.logging import setup_json_logging
from core.settings import get_settings
from analysis.aggregator import DailyRollupAggregator
from analysis.job_tracking import track_job_run
from analysis.schemas import AggregationReport, WriteMode
from analysis.store import SqlCounterStore
from analysis.timezones import get_timezones

logger = logging.getLogger(__name__)

TARGETS = ("accounts", "toots", "hashtags")


class DailyStatsJob:
    def __init__(self, session=None):
        self.db = session or SessionLocal()
        self.store = SqlCounterStore(self.db)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.db.close()

    def run(
        self,
        target: str,
        timezones: Optional[List[str]] = None,
        mode: WriteMode = WriteMode.INSERT,
        now: Optional[datetime] = None,
    ) -> AggregationReport:
        """Aggregate daily stats for all active accounts in ``timezones``"""
        trace_id = f"aggregate_{target}_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"
        job_name = f"aggregate:daily{target}"

        if timezones is None:
            timezones = get_timezones(get_settings().aggregation_hours, now)

        logger.info(f"Daily {target} stats: aggregation started", extra={
            "trace_id": trace_id,
            "job": job_name,
            "mode": mode.value,
            "timezone": ",".join(timezones),
        })

        with track_job_run(self.db, job_name, trace_id) as job_run:
            accounts = self.store.find_accounts(timezones=timezones)
            aggregator = DailyRollupAggregator(self.store, trace_id)

            if target == "accounts":
                report = aggregator.aggregate_account_stats(accounts, mode, now=now)
            elif target == "toots":
                report = aggregator.aggregate_toot_stats(accounts, mode, now=now)
            elif target == "hashtags":
                report = aggregator.aggregate_hashtag_stats(accounts, now=now)
            else:
                raise ValueError(f"Unknown aggregation target: {target}")

            job_run.records_processed = report.processed

        logger.info(f"Daily {target} stats: aggregation done", extra={
            "trace_id": trace_id,
            "job": job_name,
            "records_processed": report.processed,
            "failures": len(report.failures),
        })
        return report


def run_daily_stats(target: str, timezones: Optional[List[str]] = None, mode: WriteMode = WriteMode.INSERT) -> AggregationReport:
    with DailyStatsJob() as job:
        return job.run(target, timezones, mode)


def run_daily_account_stats():
    run_daily_stats("accounts")


def run_daily_toot_stats():
    run_daily_stats("toots")


def run_hashtag_stats():
    run_daily_stats("hashtags")


def main():
    parser = argparse.ArgumentParser(description="Aggregate daily stats for all active accounts")
    parser.add_argument("target", choices=TARGETS, help="Which buckets to materialize")
    parser.add_argument("--timezone", "-z", action="append",
                        help="Process accounts in this timezone (repeatable; default: zones at local midnight)")
    parser.add_argument("--upsert", action="store_true",
                        help="Replace existing buckets instead of inserting (safe to rerun)")

    args = parser.parse_args()

    setup_json_logging()

    mode = WriteMode.UPSERT if args.upsert else WriteMode.INSERT
    report = run_daily_stats(args.target, args.timezone, mode)

    print(report.model_dump_json(indent=2))

if __name__ == "__main__":
    main()
