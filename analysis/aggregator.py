"""Batch materialization of daily buckets for many accounts"""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from analysis.rollup import rollup_hashtags, rollup_per_item, rollup_point_in_time
from analysis.schemas import AccountFailure, AccountRef, AggregationReport, WriteMode
from analysis.store import CounterStore
from analysis.timeframe import get_days_ago, local_midnight, local_today

logger = logging.getLogger(__name__)


class DailyRollupAggregator:
    """Rolls raw samples up into daily buckets, one account at a time.

    Each account runs in its own transaction. A failing account is rolled
    back, logged and recorded in the report; the batch moves on.
    """

    def __init__(self, store: CounterStore, trace_id: Optional[str] = None):
        self.store = store
        self.trace_id = trace_id or f"rollup_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"

    def aggregate_account_stats(
        self,
        accounts: Iterable[AccountRef],
        mode: WriteMode = WriteMode.INSERT,
        now: Optional[datetime] = None,
    ) -> AggregationReport:
        """Finalize yesterday's follower/following/statuses buckets"""

        def process(account: AccountRef) -> int:
            today = get_days_ago(0, account.timezone, now)
            yesterday = get_days_ago(1, account.timezone, now)
            samples = self.store.find_account_samples(account.id, yesterday, today)
            buckets = rollup_point_in_time(account.id, samples, account.timezone, today)
            for bucket in buckets:
                self.store.write_bucket(account.id, bucket.day, bucket.values, mode)
            return len(buckets)

        return self._run("aggregate_account_stats", accounts, process, mode)

    def aggregate_toot_stats(
        self,
        accounts: Iterable[AccountRef],
        mode: WriteMode = WriteMode.INSERT,
        day: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> AggregationReport:
        """Finalize the summed toot engagement bucket for ``day`` (default: local yesterday)"""

        def process(account: AccountRef) -> int:
            target_day = day or local_today(account.timezone, now) - timedelta(days=1)
            if target_day >= local_today(account.timezone, now):
                raise ValueError(f"Day {target_day.isoformat()} is not finished yet")
            day_end = local_midnight(target_day + timedelta(days=1), account.timezone)
            samples = self.store.find_toot_samples(account.id, day_end)
            bucket = rollup_per_item(account.id, samples, account.timezone, target_day)
            if bucket is None:
                return 0
            self.store.write_bucket(account.id, bucket.day, bucket.values, mode)
            return 1

        return self._run("aggregate_toot_stats", accounts, process, mode)

    def aggregate_hashtag_stats(
        self,
        accounts: Iterable[AccountRef],
        since: Optional[datetime] = None,
        full: bool = False,
        now: Optional[datetime] = None,
    ) -> AggregationReport:
        """Upsert per-hashtag daily usage; default window starts local yesterday"""

        def process(account: AccountRef) -> int:
            window_start = None if full else (since or get_days_ago(1, account.timezone, now))
            toots = self.store.find_tagged_toots(account.id, window_start)
            buckets = rollup_hashtags(toots, account.timezone)
            for bucket in buckets:
                self.store.write_hashtag_stats(
                    account.id,
                    bucket.day,
                    bucket.hashtag,
                    bucket.model_dump(exclude={"day", "hashtag"}),
                )
            return len(buckets)

        return self._run("aggregate_hashtag_stats", accounts, process, WriteMode.UPSERT)

    def _run(
        self,
        job: str,
        accounts: Iterable[AccountRef],
        process: Callable[[AccountRef], int],
        mode: WriteMode,
    ) -> AggregationReport:
        report = AggregationReport()

        for account in accounts:
            logger.info(f"{job}: processing account {account.name or account.id}", extra={
                "trace_id": self.trace_id,
                "job": job,
                "account_id": account.id,
                "mode": mode.value,
            })
            try:
                written = process(account)
                self.store.commit()
            except Exception as e:
                self.store.rollback()
                logger.error(f"{job}: failed for account {account.name or account.id}: {e}", extra={
                    "trace_id": self.trace_id,
                    "job": job,
                    "account_id": account.id,
                    "error_type": type(e).__name__,
                })
                report.failures.append(AccountFailure(account_id=account.id, error=str(e)))
                continue

            report.processed += 1
            report.buckets_written += written

        logger.info(f"{job}: done", extra={
            "trace_id": self.trace_id,
            "job": job,
            "records_processed": report.processed,
            "failures": len(report.failures),
        })
        return report
