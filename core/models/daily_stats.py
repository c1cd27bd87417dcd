from sqlalchemy import Column, String, BIGINT, TIMESTAMP, ForeignKey, Index
from core.db import Base, BigIntegerPK

# (account_id, day) is not unique: insert-mode aggregation can write
# duplicate rows, upsert-mode replaces by key.

class DailyAccountStats(Base):
    """Daily rollup of point-in-time account counters"""
    __tablename__ = "daily_account_stats"

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    account_id = Column(String, ForeignKey("accounts.id"), nullable=False)
    day = Column(TIMESTAMP(timezone=True), nullable=False,
                 comment="Local midnight of the account timezone (UTC instant)")
    followers_count = Column(BIGINT)
    following_count = Column(BIGINT)
    statuses_count = Column(BIGINT)

    __table_args__ = (
        Index('idx_daily_account_stats_account_day', 'account_id', 'day'),
    )

class DailyTootStats(Base):
    """Daily rollup of summed per-toot engagement counters"""
    __tablename__ = "daily_toot_stats"

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    account_id = Column(String, ForeignKey("accounts.id"), nullable=False)
    day = Column(TIMESTAMP(timezone=True), nullable=False,
                 comment="Local midnight of the account timezone (UTC instant)")
    replies_count = Column(BIGINT)
    boosts_count = Column(BIGINT)
    favourites_count = Column(BIGINT)

    __table_args__ = (
        Index('idx_daily_toot_stats_account_day', 'account_id', 'day'),
    )

class HashtagStats(Base):
    """Per-day hashtag usage and engagement"""
    __tablename__ = "hashtag_stats"

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    account_id = Column(String, ForeignKey("accounts.id"), nullable=False)
    day = Column(TIMESTAMP(timezone=True), nullable=False)
    hashtag = Column(String, nullable=False, comment="Lower-cased tag name")
    toot_count = Column(BIGINT)
    replies_count = Column(BIGINT)
    reblogs_count = Column(BIGINT)
    favourites_count = Column(BIGINT)

    __table_args__ = (
        Index('idx_hashtag_stats_account_day_tag', 'account_id', 'day', 'hashtag', unique=True),
    )
