"""Seed helpers shared by unit and integration tests"""
from datetime import date, datetime

from core.models import DailyAccountStats, DailyTootStats, HashtagStats
from analysis.timeframe import local_midnight

BERLIN = "Europe/Berlin"


def local_day(year: int, month: int, day: int, timezone_name: str = BERLIN) -> datetime:
    """Bucket key for a local calendar day"""
    return local_midnight(date(year, month, day), timezone_name)


def add_account_bucket(session, account_id: str, day: datetime, **values) -> DailyAccountStats:
    row = DailyAccountStats(account_id=account_id, day=day, **values)
    session.add(row)
    session.commit()
    return row


def add_toot_bucket(session, account_id: str, day: datetime, **values) -> DailyTootStats:
    row = DailyTootStats(account_id=account_id, day=day, **values)
    session.add(row)
    session.commit()
    return row


def add_hashtag_stats(session, account_id: str, day: datetime, hashtag: str, **values) -> HashtagStats:
    row = HashtagStats(account_id=account_id, day=day, hashtag=hashtag, **values)
    session.add(row)
    session.commit()
    return row
