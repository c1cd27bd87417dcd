from sqlalchemy import Column, String, BIGINT, TIMESTAMP, ForeignKey, Index
from sqlalchemy.sql import func
from core.db import Base, BigIntegerPK

class AccountStatsSnapshot(Base):
    """Point-in-time account counters, sampled repeatedly during the day"""
    __tablename__ = "account_stats"

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    account_id = Column(String, ForeignKey("accounts.id"), nullable=False)
    fetched_at = Column(TIMESTAMP(timezone=True), nullable=False,
                        default=func.now(), comment="Sample time (UTC)")
    followers_count = Column(BIGINT, comment="Followers at fetch time")
    following_count = Column(BIGINT, comment="Following at fetch time")
    statuses_count = Column(BIGINT, comment="Statuses at fetch time")

    __table_args__ = (
        Index('idx_account_stats_account_fetched', 'account_id', 'fetched_at'),
    )
