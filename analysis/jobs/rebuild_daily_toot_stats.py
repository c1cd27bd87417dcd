#!/usr/bin/env python3
import sys
import logging
import argparse
from datetime import date, datetime, timezone
from typing import Optional

from core.db import SessionLocal
from core.logging import setup_json_logging
from analysis.aggregator import DailyRollupAggregator
from analysis.job_tracking import track_job_run
from analysis.schemas import AccountFailure, AggregationReport, WriteMode
from analysis.store import SqlCounterStore
from analysis.timeframe import get_zone

logger = logging.getLogger(__name__)

class TootStatsRebuilder:
    """Re-aggregates existing daily toot buckets in upsert mode"""

    def __init__(self, session=None):
        self.db = session or SessionLocal()
        self.store = SqlCounterStore(self.db)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.db.close()

    def rebuild(self, account_id: Optional[str] = None, day: Optional[date] = None,
                now: Optional[datetime] = None) -> AggregationReport:
        """Rebuild every bucket day of one account (or all accounts), or only ``day``"""
        trace_id = f"rebuild_toot_stats_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"
        total = AggregationReport()

        with track_job_run(self.db, "tools:rebuilddailytootstats", trace_id) as job_run:
            accounts = self.store.find_accounts(account_id=account_id)
            aggregator = DailyRollupAggregator(self.store, trace_id)

            for account in accounts:
                if day is not None:
                    days = [day]
                else:
                    try:
                        zone = get_zone(account.timezone)
                    except ValueError as e:
                        logger.error(f"Rebuild skipped for account {account.id}: {e}", extra={
                            "trace_id": trace_id,
                            "account_id": account.id,
                        })
                        total.failures.append(AccountFailure(account_id=account.id, error=str(e)))
                        continue
                    days = [
                        bucket_day.astimezone(zone).date()
                        for bucket_day in self.store.find_bucket_days(account.id, "boosts_count")
                    ]

                logger.info(f"Rebuilding {len(days)} daily toot stats for account {account.id}", extra={
                    "trace_id": trace_id,
                    "account_id": account.id,
                })

                for target_day in days:
                    report = aggregator.aggregate_toot_stats([account], WriteMode.UPSERT, day=target_day, now=now)
                    total.processed += report.processed
                    total.buckets_written += report.buckets_written
                    total.failures.extend(report.failures)

            job_run.records_processed = total.buckets_written

        return total

def main():
    parser = argparse.ArgumentParser(description="Rebuild daily toot stats in upsert mode")
    parser.add_argument("--account", "-m", help="Rebuild daily toot stats for this account")
    parser.add_argument("--all", "-a", action="store_true", help="Rebuild daily toot stats for all accounts")
    parser.add_argument("--day", "-e", type=date.fromisoformat, help="Rebuild a specific local day only (YYYY-MM-DD)")

    args = parser.parse_args()

    setup_json_logging()

    if not args.account and not args.all:
        logger.warning("Rebuild daily toot stats: Either flag -a or -m must be set")
        sys.exit(2)

    with TootStatsRebuilder() as rebuilder:
        report = rebuilder.rebuild(account_id=args.account, day=args.day)

    print(report.model_dump_json(indent=2))

if __name__ == "__main__":
    main()
