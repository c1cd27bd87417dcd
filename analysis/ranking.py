"""Top content ranking by engagement"""
import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

import pandas as pd

from analysis.schemas import ContentItem
from analysis.store import to_utc

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 5


class RankingMode(str, Enum):
    REPLIES = "replies"
    BOOSTS = "boosts"
    FAVOURITES = "favourites"
    TOP = "top"


class RankedItem(ContentItem):
    rank: int


def _count(value: Optional[int]) -> int:
    return value or 0


SCORE_FUNCTIONS: Dict[RankingMode, Callable[[ContentItem], int]] = {
    RankingMode.REPLIES: lambda item: _count(item.replies_count),
    RankingMode.BOOSTS: lambda item: _count(item.reblogs_count),
    RankingMode.FAVOURITES: lambda item: _count(item.favourites_count),
    RankingMode.TOP: lambda item: _count(item.reblogs_count) + _count(item.replies_count),
}


def rank_top_content(
    items: Iterable[ContentItem],
    mode: RankingMode = RankingMode.TOP,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    limit: int = DEFAULT_LIMIT,
) -> List[RankedItem]:
    """Top ``limit`` items by score, newest first among equal scores.

    Items without any engagement (score <= 0) are never returned. The
    optional ``[date_from, date_to)`` window applies to ``created_at``.
    """
    score = SCORE_FUNCTIONS[RankingMode(mode)]

    candidates = []
    for item in items:
        created_at = to_utc(item.created_at)
        if date_from is not None and created_at < to_utc(date_from):
            continue
        if date_to is not None and created_at >= to_utc(date_to):
            continue
        candidates.append({"item": item, "rank": score(item), "created_at": created_at})

    if not candidates or limit <= 0:
        return []

    df = pd.DataFrame(candidates)
    df = df[df["rank"] > 0]
    if df.empty:
        return []

    top_df = df.sort_values(["rank", "created_at"], ascending=[False, False], kind="mergesort").head(limit)

    return [
        RankedItem(**row["item"].model_dump(), rank=int(row["rank"]))
        for _, row in top_df.iterrows()
    ]
