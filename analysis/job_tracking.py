"""Persisted run ledger for batch jobs"""
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

from sqlalchemy.orm import Session

from core.models import CliJobRun

logger = logging.getLogger(__name__)


class JobRunResult:
    """Filled in by the job body; persisted on completion"""

    def __init__(self):
        self.records_processed: Optional[int] = None


@contextmanager
def track_job_run(session: Session, job_name: str, trace_id: Optional[str] = None) -> Iterator[JobRunResult]:
    """Record a ``cli_job_runs`` row around a job body.

    The row starts as ``running`` and ends as ``success`` or ``failure``
    with duration and error message. Failures are re-raised.
    """
    started_at = datetime.now(timezone.utc)
    run = CliJobRun(job_name=job_name, started_at=started_at, status="running")
    session.add(run)
    session.commit()

    logger.info(f"Job tracking: {job_name} started (runId: {run.id})", extra={
        "trace_id": trace_id,
        "job": job_name,
    })

    result = JobRunResult()
    try:
        yield result
    except Exception as e:
        session.rollback()
        completed_at = datetime.now(timezone.utc)
        duration_ms = int((completed_at - started_at).total_seconds() * 1000)

        run.completed_at = completed_at
        run.status = "failure"
        run.duration_ms = duration_ms
        run.error_message = str(e) or type(e).__name__
        session.commit()

        logger.error(f"Job tracking: {job_name} failed ({duration_ms}ms): {e}", extra={
            "trace_id": trace_id,
            "job": job_name,
            "latency_ms": duration_ms,
        })
        raise

    completed_at = datetime.now(timezone.utc)
    duration_ms = int((completed_at - started_at).total_seconds() * 1000)

    run.completed_at = completed_at
    run.status = "success"
    run.duration_ms = duration_ms
    run.records_processed = result.records_processed
    session.commit()

    logger.info(f"Job tracking: {job_name} completed successfully ({duration_ms}ms)", extra={
        "trace_id": trace_id,
        "job": job_name,
        "records_processed": result.records_processed,
        "latency_ms": duration_ms,
    })
