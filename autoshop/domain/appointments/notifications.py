"""
Appointment notification dispatch

Booking, reschedule and status changes hand their customer email to the arq
worker. Dispatch never raises: a failed or timed-out enqueue is logged and the
appointment change it belongs to stands.
"""

import logging
from typing import Optional

from arq.connections import RedisSettings

from ...worker import enqueue_job
from .schemas import AppointmentEmailPayload

logger = logging.getLogger(__name__)

EMAIL_TASK_NAME = "send_appointment_email_task"


class AppointmentNotifier:
    """Interface the appointment service uses to send customer notifications"""

    async def notify(self, payload: AppointmentEmailPayload) -> None:
        raise NotImplementedError


class ArqAppointmentNotifier(AppointmentNotifier):
    """Queue appointment emails on Redis for the arq worker"""

    def __init__(self, redis_settings: Optional[RedisSettings] = None):
        self.redis_settings = redis_settings

    async def notify(self, payload: AppointmentEmailPayload) -> None:
        try:
            job = await enqueue_job(
                EMAIL_TASK_NAME, payload.model_dump(mode="json"), redis_settings=self.redis_settings
            )
            job_id = job.job_id if job else "duplicate"
            logger.info(
                f"📧 Queued '{payload.action}' email for {payload.confirmation_number} (job {job_id})"
            )
        except Exception as e:
            logger.warning(
                f"⚠️ Failed to queue '{payload.action}' email for {payload.confirmation_number}: "
                f"{type(e).__name__} {e}"
            )


def get_notifier() -> AppointmentNotifier:
    """FastAPI dependency; tests override it with an in-memory notifier"""
    return ArqAppointmentNotifier()
