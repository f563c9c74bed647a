"""Job handler registry."""

from __future__ import annotations

from typing import Awaitable, Callable, Mapping

from complaint_desk.db.enums import JobType
from complaint_desk.jobs.handlers import notifications

JobHandler = Callable[[object, object], Awaitable[None]]

JOB_HANDLERS: Mapping[str, JobHandler] = {
    JobType.DOMAIN_EVENT.value: notifications.process_domain_event,
}


def resolve_job_handler(job_type: str) -> JobHandler:
    handler = JOB_HANDLERS.get(job_type)
    if not handler:
        raise ValueError(f"Unknown job type: {job_type}")
    return handler
