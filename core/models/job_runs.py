from sqlalchemy import Column, String, Text, BIGINT, TIMESTAMP, Index
from core.db import Base, BigIntegerPK

class CliJobRun(Base):
    """Ledger of batch job executions"""
    __tablename__ = "cli_job_runs"

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    job_name = Column(String, nullable=False)
    started_at = Column(TIMESTAMP(timezone=True), nullable=False)
    completed_at = Column(TIMESTAMP(timezone=True))
    status = Column(String, nullable=False, comment="running | success | failure")
    duration_ms = Column(BIGINT)
    records_processed = Column(BIGINT)
    error_message = Column(Text)

    __table_args__ = (
        Index('idx_cli_job_runs_job_name', 'job_name'),
        Index('idx_cli_job_runs_status', 'status'),
    )
