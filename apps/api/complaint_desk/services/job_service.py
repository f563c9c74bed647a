"""Job service - background job scheduling and state tracking."""

from datetime import datetime, timezone
from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session, aliased

from complaint_desk.core.config import settings
from complaint_desk.db.enums import JobStatus, JobType
from complaint_desk.db.models import Job


def enqueue_job(
    db: Session,
    job_type: JobType,
    payload: dict,
    run_at: datetime | None = None,
    idempotency_key: str | None = None,
    ordering_key: str | None = None,
) -> Job:
    """
    Add a job to the caller's transaction without committing.

    Used by domain services so the job is committed (or rolled back)
    together with the change that produced it. Jobs with the same
    ordering_key are handed to the worker one after another, oldest first.
    """
    job = Job(
        job_type=job_type.value,
        payload=payload,
        run_at=run_at or datetime.now(timezone.utc),
        status=JobStatus.PENDING.value,
        max_attempts=settings.JOB_MAX_ATTEMPTS,
        idempotency_key=idempotency_key,
        ordering_key=ordering_key,
    )
    db.add(job)
    db.flush()
    return job


def get_pending_jobs(db: Session, limit: int = 10) -> list[Job]:
    """
    Get pending jobs that are due to run, oldest first.

    A job is held back while an older job with the same ordering key is
    running or waiting for a later run_at. Older due jobs sort ahead of it in
    the same batch, where the worker stops the key at the first failure.
    """
    now = datetime.now(timezone.utc)
    older = aliased(Job)
    blocked = (
        select(older.id)
        .where(
            older.ordering_key == Job.ordering_key,
            older.created_at < Job.created_at,
            or_(
                older.status == JobStatus.RUNNING.value,
                and_(older.status == JobStatus.PENDING.value, older.run_at > now),
            ),
        )
        .exists()
    )
    return (
        db.query(Job)
        .filter(
            Job.status == JobStatus.PENDING.value,
            Job.run_at <= now,
            ~blocked,
        )
        .order_by(Job.created_at, Job.run_at)
        .limit(limit)
        .all()
    )


def mark_job_running(db: Session, job: Job) -> Job:
    """Mark a job as running (increment attempts)."""
    job.status = JobStatus.RUNNING.value
    job.attempts += 1
    db.commit()
    db.refresh(job)
    return job


def mark_job_completed(db: Session, job: Job) -> Job:
    """Mark a job as completed."""
    job.status = JobStatus.COMPLETED.value
    job.completed_at = datetime.now(timezone.utc)
    job.last_error = None
    db.commit()
    db.refresh(job)
    return job


def mark_job_failed(db: Session, job: Job, error: str) -> Job:
    """
    Mark a job as failed.

    If attempts < max_attempts, reset to pending for retry.
    """
    job.last_error = error[:2000]
    if job.attempts < job.max_attempts:
        job.status = JobStatus.PENDING.value
    else:
        job.status = JobStatus.FAILED.value
    db.commit()
    db.refresh(job)
    return job
