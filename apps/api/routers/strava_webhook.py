"""
Strava Webhook Router

Receives Strava push notifications and moves work-hours activities.

Every event is answered with 200 and an empty body unless the request
itself is malformed: skipped events and events we failed to process alike.
Strava retries anything else, and a retry would only repeat the failure
(or upload the activity twice).
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from kombu.exceptions import OperationalError
from sqlalchemy.orm import Session
from core.config import settings
from core.database import get_db
from core.exceptions import ForbiddenError, TimeShiftError
from schemas import WebhookEvent
from services.strava_webhook import handle_challenge
from services.time_shift_pipeline import process_webhook_event
from tasks.upload_tasks import schedule_upload_polling
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/strava", tags=["strava-webhook"])


@router.get("/webhook")
def verify_webhook(
    hub_mode: Optional[str] = Query(None, alias="hub.mode"),
    hub_verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
    hub_challenge: Optional[str] = Query(None, alias="hub.challenge"),
):
    """
    Verify webhook subscription with Strava.

    Strava calls this endpoint during webhook subscription to verify ownership.
    Must echo hub.challenge if the verify token matches.
    """
    try:
        return handle_challenge(hub_mode, hub_verify_token, hub_challenge, settings.STRAVA_WEBHOOK_VERIFY_TOKEN)
    except ForbiddenError:
        return Response(status_code=status.HTTP_403_FORBIDDEN)


@router.post("/webhook")
def handle_webhook_event(event: WebhookEvent, db: Session = Depends(get_db)):
    """
    Handle a Strava webhook event.

    Synthetic test:
    curl -X POST -H "Content-Type: application/json" \
      -d '{"aspect_type":"create","event_time":1701311121,"object_id":10303000184,"object_type":"activity","owner_id":912283,"subscription_id":252627,"updates":{}}' \
      http://localhost:8000/strava/webhook
    """
    logger.info(
        f"Webhook event: type={event.object_type}, aspect={event.aspect_type}, "
        f"object_id={event.object_id}, owner_id={event.owner_id}"
    )

    try:
        result = process_webhook_event(db, event)
    except TimeShiftError as e:
        logger.error(
            f"Dropping webhook event for activity {event.object_id}: {e}",
            exc_info=True,
            extra={"extra_fields": {"object_id": event.object_id, "owner_id": event.owner_id}},
        )
        return Response(status_code=status.HTTP_200_OK)

    if result.outcome == "skipped":
        logger.info(f"Skipped activity {event.object_id}: {result.reason}")
        return Response(status_code=status.HTTP_200_OK)

    try:
        async_result = schedule_upload_polling(result.user_id, result.activity_id, result.upload)
        logger.info(f"Enqueued upload polling task {async_result.id} for upload {result.upload.upload_id}")
    except OperationalError as e:
        logger.error(f"Could not enqueue polling for upload {result.upload.upload_id}: {e}", exc_info=True)

    return Response(status_code=status.HTTP_200_OK)
