from sqlalchemy import Column, String, Text, BIGINT, TIMESTAMP, ForeignKey, Index, JSON
from sqlalchemy.dialects.postgresql import JSONB
from core.db import Base, BigIntegerPK

class Toot(Base):
    """Toot metadata with its latest engagement counters"""
    __tablename__ = "toots"

    id = Column(String, primary_key=True, comment="Toot ID")
    account_id = Column(String, ForeignKey("accounts.id"), nullable=False)
    uri = Column(Text, nullable=False, comment="ActivityPub URI")
    url = Column(Text, comment="Public URL")
    content = Column(Text, comment="HTML content")
    language = Column(String, comment="Language code")
    tags = Column(JSON().with_variant(JSONB, "postgresql"), comment="Hashtag names as JSON array")
    replies_count = Column(BIGINT)
    reblogs_count = Column(BIGINT)
    favourites_count = Column(BIGINT)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, comment="Toot creation time (UTC)")
    fetched_at = Column(TIMESTAMP(timezone=True), comment="Last fetch time (UTC)")

    __table_args__ = (
        Index('idx_toots_account_created', 'account_id', 'created_at'),
    )

class TootStatsSnapshot(Base):
    """Per-toot counters, re-sampled over the toot's lifetime"""
    __tablename__ = "toot_stats"

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    account_id = Column(String, ForeignKey("accounts.id"), nullable=False)
    uri = Column(Text, nullable=False, comment="ActivityPub URI of the sampled toot")
    fetched_at = Column(TIMESTAMP(timezone=True), nullable=False, comment="Sample time (UTC)")
    replies_count = Column(BIGINT)
    reblogs_count = Column(BIGINT)
    favourites_count = Column(BIGINT)

    __table_args__ = (
        Index('idx_toot_stats_account_fetched', 'account_id', 'fetched_at'),
    )
