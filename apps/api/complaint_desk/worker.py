"""
Background worker for processing queued jobs.

Usage:
    python -m complaint_desk.worker
    complaint-desk run-worker [--once]

The worker polls for pending jobs (domain events written by the services)
and turns them into notifications. Jobs are handled oldest first and retried
until they run out of attempts.
"""

import asyncio
import logging

from complaint_desk.core.config import settings
from complaint_desk.core.structured_logging import build_log_context
from complaint_desk.db.session import SessionLocal
from complaint_desk.jobs.registry import resolve_job_handler
from complaint_desk.services import job_service

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = settings.WORKER_POLL_INTERVAL
BATCH_SIZE = settings.WORKER_BATCH_SIZE


async def process_job(db, job) -> None:
    """Process a single job based on its type."""
    logger.info("Processing job %s (type=%s, attempt=%s)", job.id, job.job_type, job.attempts)
    handler = resolve_job_handler(job.job_type)
    await handler(db, job)


async def run_once(db, limit: int = BATCH_SIZE) -> int:
    """
    Process one batch of pending jobs.

    Once a job fails, later jobs with the same ordering key are left pending
    for the next batch so they are never delivered ahead of it.

    Returns the number of jobs that completed.
    """
    jobs = job_service.get_pending_jobs(db, limit=limit)
    if jobs:
        logger.info("Found %d pending jobs", len(jobs))

    completed = 0
    stalled_keys: set[str] = set()
    for job in jobs:
        if job.ordering_key and job.ordering_key in stalled_keys:
            logger.info("Job %s deferred behind a failed job", job.id)
            continue
        try:
            job_service.mark_job_running(db, job)
            await process_job(db, job)
            job_service.mark_job_completed(db, job)
            completed += 1
            logger.info("Job %s completed successfully", job.id)
        except Exception as e:
            db.rollback()
            job_service.mark_job_failed(db, job, str(e))
            if job.ordering_key:
                stalled_keys.add(job.ordering_key)
            logger.error(
                "Job %s failed: %s",
                job.id,
                type(e).__name__,
                extra=build_log_context(job_type=job.job_type, attempts=job.attempts),
            )
    return completed


async def worker_loop() -> None:
    """Main worker loop - polls for and processes pending jobs."""
    logger.info(
        "Worker starting (poll interval: %ss, batch size: %s)",
        POLL_INTERVAL_SECONDS,
        BATCH_SIZE,
    )

    while True:
        with SessionLocal() as db:
            try:
                await run_once(db)
            except Exception as e:
                logger.error("Error in worker loop: %s", type(e).__name__)

        await asyncio.sleep(POLL_INTERVAL_SECONDS)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def main() -> None:
    """Entry point for the worker."""
    configure_logging()
    try:
        asyncio.run(worker_loop())
    except KeyboardInterrupt:
        logger.info("Worker shutting down")
    except Exception:
        logger.exception(
            "Worker crashed",
            extra=build_log_context(route="worker", method="background"),
        )
        raise


if __name__ == "__main__":
    main()
