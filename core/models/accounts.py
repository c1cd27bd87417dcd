from sqlalchemy import Column, String, Text, Boolean, TIMESTAMP, Index
from sqlalchemy.sql import func
from core.db import Base

class Account(Base):
    """Linked Mastodon account"""
    __tablename__ = "accounts"

    id = Column(String, primary_key=True, comment="Account ID")
    name = Column(Text, comment="Display name")
    server_url = Column(Text, comment="Mastodon instance URL")
    timezone = Column(String, nullable=False, comment="IANA timezone of the account owner")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP(timezone=True), default=func.now())

    __table_args__ = (
        Index('idx_accounts_active_timezone', 'is_active', 'timezone'),
    )
