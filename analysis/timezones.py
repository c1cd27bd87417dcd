"""Timezone selection for scheduled aggregation"""
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError, available_timezones

logger = logging.getLogger(__name__)

# Alternate zoneinfo trees that duplicate the canonical names
_SKIPPED_PREFIXES = ("posix/", "right/")


def get_timezones(hours: Iterable[int], now: Optional[datetime] = None) -> List[str]:
    """IANA zones whose current local hour is one of ``hours``"""
    now = now or datetime.now(timezone.utc)
    wanted = set(hours)

    matches = []
    for name in sorted(available_timezones()):
        if name.startswith(_SKIPPED_PREFIXES):
            continue
        try:
            hour = now.astimezone(ZoneInfo(name)).hour
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Timezone not supported: {name}")
            continue
        if hour in wanted:
            matches.append(name)
    return matches
