"""Core database models"""
from .accounts import Account
from .account_stats import AccountStatsSnapshot
from .toots import Toot, TootStatsSnapshot
from .daily_stats import DailyAccountStats, DailyTootStats, HashtagStats
from .job_runs import CliJobRun

__all__ = [
    "Account",
    "AccountStatsSnapshot",
    "Toot",
    "TootStatsSnapshot",
    "DailyAccountStats",
    "DailyTootStats",
    "HashtagStats",
    "CliJobRun",
]
