"""Counter/content store consumed by the analytics engine"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

import pandas as pd
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from analysis.schemas import AccountRef, ContentItem, DailyValue, WriteMode
from core.models import (
    Account,
    AccountStatsSnapshot,
    DailyAccountStats,
    DailyTootStats,
    HashtagStats,
    Toot,
    TootStatsSnapshot,
)

logger = logging.getLogger(__name__)

ACCOUNT_SAMPLE_METRICS = ("followers_count", "following_count", "statuses_count")
TOOT_SAMPLE_METRICS = ("replies_count", "reblogs_count", "favourites_count")
HASHTAG_METRICS = ("toot_count", "replies_count", "reblogs_count", "favourites_count")

# Bucket metric name -> bucket table
BUCKET_METRICS = {
    "followers_count": DailyAccountStats,
    "following_count": DailyAccountStats,
    "statuses_count": DailyAccountStats,
    "replies_count": DailyTootStats,
    "boosts_count": DailyTootStats,
    "favourites_count": DailyTootStats,
}


class UnknownMetricError(ValueError):
    """Raised for metric names without a bucket table"""


def bucket_model(metric: str):
    try:
        return BUCKET_METRICS[metric]
    except KeyError:
        raise UnknownMetricError(f"Unknown metric: {metric}") from None


def to_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime; naive values are taken as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CounterStore(ABC):
    """Persistence interface for samples, buckets and content items"""

    @abstractmethod
    def find_latest_at_or_before(self, account_id: str, metric: str, instant: datetime) -> Optional[int]:
        """Latest bucket value for ``metric`` whose day is at or before ``instant``"""

    @abstractmethod
    def find_range(self, account_id: str, metric: str, date_from: datetime, date_to: datetime) -> List[DailyValue]:
        """Buckets with ``date_from <= day <= date_to``, ascending by day"""

    @abstractmethod
    def find_latest_bucket(self, account_id: str, metric: str) -> Optional[DailyValue]:
        pass

    @abstractmethod
    def find_bucket_days(self, account_id: str, metric: str) -> List[datetime]:
        pass

    @abstractmethod
    def write_bucket(self, account_id: str, day: datetime, metric_values: Dict[str, int], mode: WriteMode) -> None:
        """Persist one bucket; UPSERT must stay one row per key under concurrent writers"""

    @abstractmethod
    def write_hashtag_stats(self, account_id: str, day: datetime, hashtag: str, values: Dict[str, int]) -> None:
        """Upsert one (account, day, hashtag) row"""

    @abstractmethod
    def find_hashtag_stats(self, account_id: str, date_from: datetime, date_to: datetime) -> pd.DataFrame:
        """Hashtag rows with ``date_from <= day < date_to``"""

    @abstractmethod
    def find_content_items(self, account_id: str, date_from: Optional[datetime] = None,
                           date_to: Optional[datetime] = None) -> List[ContentItem]:
        pass

    @abstractmethod
    def find_accounts(self, timezones: Optional[Iterable[str]] = None,
                      account_id: Optional[str] = None) -> List[AccountRef]:
        """Active accounts, optionally restricted to timezones or a single id"""

    @abstractmethod
    def get_account(self, account_id: str) -> Optional[AccountRef]:
        pass

    @abstractmethod
    def find_account_samples(self, account_id: str, date_from: datetime, date_to: datetime) -> pd.DataFrame:
        """Point-in-time samples with ``date_from <= fetched_at < date_to``"""

    @abstractmethod
    def find_toot_samples(self, account_id: str, before: datetime) -> pd.DataFrame:
        """Per-toot samples fetched strictly before ``before``"""

    @abstractmethod
    def find_tagged_toots(self, account_id: str, since: Optional[datetime] = None) -> pd.DataFrame:
        pass

    @abstractmethod
    def commit(self) -> None:
        pass

    @abstractmethod
    def rollback(self) -> None:
        pass


class SqlCounterStore(CounterStore):
    """SQLAlchemy implementation of the counter store"""

    def __init__(self, session: Session):
        self.session = session

    def find_latest_at_or_before(self, account_id: str, metric: str, instant: datetime) -> Optional[int]:
        model = bucket_model(metric)
        column = getattr(model, metric)
        stmt = (
            select(column)
            .where(model.account_id == account_id, model.day <= to_utc(instant))
            .order_by(model.day.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def find_range(self, account_id: str, metric: str, date_from: datetime, date_to: datetime) -> List[DailyValue]:
        model = bucket_model(metric)
        column = getattr(model, metric)
        stmt = (
            select(model.day, column)
            .where(
                model.account_id == account_id,
                model.day >= to_utc(date_from),
                model.day <= to_utc(date_to),
            )
            .order_by(model.day.asc())
        )
        return [
            DailyValue(day=to_utc(day), value=value)
            for day, value in self.session.execute(stmt).all()
            if value is not None
        ]

    def find_latest_bucket(self, account_id: str, metric: str) -> Optional[DailyValue]:
        model = bucket_model(metric)
        column = getattr(model, metric)
        stmt = (
            select(model.day, column)
            .where(model.account_id == account_id)
            .order_by(model.day.desc())
            .limit(1)
        )
        row = self.session.execute(stmt).first()
        if row is None or row[1] is None:
            return None
        return DailyValue(day=to_utc(row[0]), value=row[1])

    def find_bucket_days(self, account_id: str, metric: str) -> List[datetime]:
        model = bucket_model(metric)
        stmt = (
            select(model.day)
            .where(model.account_id == account_id)
            .distinct()
            .order_by(model.day.asc())
        )
        return [to_utc(day) for day in self.session.execute(stmt).scalars()]

    def write_bucket(self, account_id: str, day: datetime, metric_values: Dict[str, int], mode: WriteMode) -> None:
        models = {bucket_model(metric) for metric in metric_values}
        if len(models) != 1:
            raise UnknownMetricError(f"Metrics span several bucket tables: {sorted(metric_values)}")
        model = models.pop()
        day = to_utc(day)

        if mode == WriteMode.UPSERT:
            self._lock_account(account_id)
            existing = self._find_bucket_rows(model, account_id, day)
            if existing:
                for row in existing:
                    for metric, value in metric_values.items():
                        setattr(row, metric, value)
                self.session.flush()
                return

        self.session.add(model(account_id=account_id, day=day, **metric_values))
        self.session.flush()

    def write_hashtag_stats(self, account_id: str, day: datetime, hashtag: str, values: Dict[str, int]) -> None:
        day = to_utc(day)
        self._lock_account(account_id)
        row = self.session.execute(
            select(HashtagStats).where(
                HashtagStats.account_id == account_id,
                HashtagStats.day == day,
                HashtagStats.hashtag == hashtag,
            )
        ).scalar_one_or_none()
        if row is None:
            row = HashtagStats(account_id=account_id, day=day, hashtag=hashtag)
            self.session.add(row)
        for key, value in values.items():
            setattr(row, key, value)
        self.session.flush()

    def find_hashtag_stats(self, account_id: str, date_from: datetime, date_to: datetime) -> pd.DataFrame:
        stmt = (
            select(HashtagStats.day, HashtagStats.hashtag, *[getattr(HashtagStats, m) for m in HASHTAG_METRICS])
            .where(
                HashtagStats.account_id == account_id,
                HashtagStats.day >= to_utc(date_from),
                HashtagStats.day < to_utc(date_to),
            )
            .order_by(HashtagStats.day, HashtagStats.hashtag)
        )
        df = self._frame(self.session.execute(stmt).all(), ["day", "hashtag", *HASHTAG_METRICS])
        if not df.empty:
            df["day"] = pd.to_datetime(df["day"], utc=True)
        return df

    def find_content_items(self, account_id: str, date_from: Optional[datetime] = None,
                           date_to: Optional[datetime] = None) -> List[ContentItem]:
        stmt = select(Toot).where(Toot.account_id == account_id)
        if date_from is not None:
            stmt = stmt.where(Toot.created_at >= to_utc(date_from))
        if date_to is not None:
            stmt = stmt.where(Toot.created_at < to_utc(date_to))

        return [
            ContentItem(
                id=toot.id,
                account_id=toot.account_id,
                created_at=to_utc(toot.created_at),
                uri=toot.uri,
                url=toot.url,
                content=toot.content,
                replies_count=toot.replies_count,
                reblogs_count=toot.reblogs_count,
                favourites_count=toot.favourites_count,
            )
            for toot in self.session.execute(stmt).scalars()
        ]

    def find_accounts(self, timezones: Optional[Iterable[str]] = None,
                      account_id: Optional[str] = None) -> List[AccountRef]:
        stmt = select(Account).where(Account.is_active.is_(True))
        if timezones is not None:
            names = set()
            for name in timezones:
                # Legacy rows store spaces instead of underscores
                names.add(name)
                names.add(name.replace("_", " "))
            stmt = stmt.where(Account.timezone.in_(sorted(names)))
        if account_id is not None:
            stmt = stmt.where(Account.id == account_id)

        return [self._account_ref(account) for account in self.session.execute(stmt.order_by(Account.id)).scalars()]

    def get_account(self, account_id: str) -> Optional[AccountRef]:
        account = self.session.get(Account, account_id)
        return self._account_ref(account) if account is not None else None

    def find_account_samples(self, account_id: str, date_from: datetime, date_to: datetime) -> pd.DataFrame:
        stmt = (
            select(AccountStatsSnapshot.fetched_at, *[getattr(AccountStatsSnapshot, m) for m in ACCOUNT_SAMPLE_METRICS])
            .where(
                AccountStatsSnapshot.account_id == account_id,
                AccountStatsSnapshot.fetched_at >= to_utc(date_from),
                AccountStatsSnapshot.fetched_at < to_utc(date_to),
            )
            .order_by(AccountStatsSnapshot.fetched_at)
        )
        return self._frame(self.session.execute(stmt).all(), ["fetched_at", *ACCOUNT_SAMPLE_METRICS])

    def find_toot_samples(self, account_id: str, before: datetime) -> pd.DataFrame:
        stmt = (
            select(TootStatsSnapshot.uri, TootStatsSnapshot.fetched_at,
                   *[getattr(TootStatsSnapshot, m) for m in TOOT_SAMPLE_METRICS])
            .where(
                TootStatsSnapshot.account_id == account_id,
                TootStatsSnapshot.fetched_at < to_utc(before),
            )
            .order_by(TootStatsSnapshot.uri, TootStatsSnapshot.fetched_at)
        )
        return self._frame(self.session.execute(stmt).all(), ["uri", "fetched_at", *TOOT_SAMPLE_METRICS])

    def find_tagged_toots(self, account_id: str, since: Optional[datetime] = None) -> pd.DataFrame:
        stmt = select(Toot.created_at, Toot.tags, *[getattr(Toot, m) for m in TOOT_SAMPLE_METRICS]).where(
            Toot.account_id == account_id,
            Toot.tags.is_not(None),
        )
        if since is not None:
            stmt = stmt.where(Toot.created_at >= to_utc(since))
        rows = [row for row in self.session.execute(stmt).all() if row[1]]
        return self._frame(rows, ["created_at", "tags", *TOOT_SAMPLE_METRICS])

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    def _lock_account(self, account_id: str) -> None:
        """Serialize bucket upserts of one account until the transaction ends.

        The (account_id, day) index is not unique, so two writers must not
        both find "no row" and insert.
        """
        if self.session.get_bind().dialect.name == "postgresql":
            self.session.execute(select(Account.id).where(Account.id == account_id).with_for_update())
        else:
            # No row locks: a no-op write takes the database write lock
            self.session.execute(
                update(Account).where(Account.id == account_id).values(id=Account.id),
                execution_options={"synchronize_session": False},
            )

    def _find_bucket_rows(self, model, account_id: str, day: datetime) -> list:
        return self.session.execute(
            select(model).where(model.account_id == account_id, model.day == day)
        ).scalars().all()

    @staticmethod
    def _account_ref(account: Account) -> AccountRef:
        return AccountRef(id=account.id, name=account.name, timezone=account.timezone)

    @staticmethod
    def _frame(rows, columns: List[str]) -> pd.DataFrame:
        if not rows:
            return pd.DataFrame(columns=columns)
        df = pd.DataFrame([tuple(row) for row in rows], columns=columns)
        for column in ("fetched_at", "created_at"):
            if column in df.columns:
                df[column] = pd.to_datetime(df[column], utc=True)
        return df
