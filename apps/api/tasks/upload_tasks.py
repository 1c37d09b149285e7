"""
Celery task that follows a shifted upload to completion.

One task chain per processed webhook event. Each run polls Strava once;
while the upload is still processing the task re-schedules itself with the
updated UploadJob, up to UPLOAD_POLL_MAX_ATTEMPTS polls. Nothing here can
reach the webhook sender any more, so every failure ends in a log line
(and, where possible, an email to the user).
"""
from dataclasses import replace
from typing import Dict
from celery import Task
from core.config import settings
from core.database import get_db_sync
from core.exceptions import StravaAPIError
from tasks import celery_app
from services.notifier import notify_activity_shifted, notify_upload_failed
from services.strava_service import activity_url
from services.token_encryption import decrypt_token
from services.upload_status import UploadJob, UploadState, advance_upload_job
from services.users import get_user
import logging

logger = logging.getLogger(__name__)


def schedule_upload_polling(user_id: str, activity_id: int, job: UploadJob):
    """Hand the job to the worker. Returns the Celery AsyncResult."""
    return poll_upload_status_task.apply_async(
        kwargs={"user_id": user_id, "activity_id": activity_id, "job": job.to_dict()},
        countdown=settings.UPLOAD_POLL_INTERVAL_S,
    )


@celery_app.task(name="tasks.poll_upload_status", bind=True, max_retries=None)
def poll_upload_status_task(self: Task, user_id: str, activity_id: int, job: Dict) -> Dict:
    upload = UploadJob.from_dict(job)
    db = get_db_sync()

    try:
        user = get_user(db, user_id)
        if not user:
            logger.warning(f"User {user_id} disappeared while upload {upload.upload_id} was processing")
            return {"status": "skipped", "message": "User not found"}

        if not upload.is_terminal:
            access_token = decrypt_token(user.strava_access_token)
            if not access_token:
                logger.error(f"Cannot poll upload {upload.upload_id}: access token for user {user.id} unreadable")
                return {"status": "error", "message": "token_decrypt_failed"}
            try:
                upload = advance_upload_job(upload, access_token)
            except StravaAPIError as e:
                # A failed poll still counts towards the attempt limit.
                logger.warning(f"Polling upload {upload.upload_id} failed: {e}")
                upload = replace(upload, attempts=upload.attempts + 1)

        if upload.state is UploadState.READY:
            logger.info(f"Upload complete: {activity_url(upload.activity_id)}")
            notify_activity_shifted(user, activity_id, upload.activity_id)
            return {"status": "ready", "activity_id": upload.activity_id, "attempts": upload.attempts}

        if upload.state is UploadState.ERROR:
            logger.error(
                f"Upload {upload.upload_id} for activity {activity_id} failed: {upload.error}",
                extra={"extra_fields": {"upload_id": upload.upload_id, "status": upload.status}},
            )
            notify_upload_failed(user, activity_id)
            return {"status": "error", "message": upload.error, "attempts": upload.attempts}

        if upload.attempts >= settings.UPLOAD_POLL_MAX_ATTEMPTS:
            logger.error(
                f"Gave up on upload {upload.upload_id} for activity {activity_id} "
                f"after {upload.attempts} polls (last status: {upload.status})"
            )
            notify_upload_failed(user, activity_id)
            return {"status": "timeout", "attempts": upload.attempts}

        logger.info(f"Waiting for upload {upload.upload_id} to complete ({upload.attempts} polls)")
        raise self.retry(
            kwargs={"user_id": user_id, "activity_id": activity_id, "job": upload.to_dict()},
            countdown=settings.UPLOAD_POLL_INTERVAL_S,
        )
    finally:
        db.close()
