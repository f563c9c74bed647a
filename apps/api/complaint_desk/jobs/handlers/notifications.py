"""Notification job handlers."""

from __future__ import annotations

import logging

from pydantic import ValidationError as PayloadError

from complaint_desk.services import complaint_events, notification_service

logger = logging.getLogger(__name__)


async def process_domain_event(db, job) -> None:
    """Fan a committed domain event out into in-app notifications."""
    try:
        event = complaint_events.from_payload(job.payload or {})
    except PayloadError as exc:
        # Retrying cannot fix a malformed payload
        raise ValueError(f"Invalid domain event payload in job {job.id}") from exc

    created = notification_service.dispatch(db, event)
    logger.info(
        "Processed %s event %s for job %s (%d new notifications)",
        event.type.value,
        event.event_id,
        job.id,
        len(created),
    )
