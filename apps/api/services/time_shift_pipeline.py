"""
Webhook event pipeline (synchronous part).

    classify -> refresh tokens -> fetch activity -> plan
             -> fetch streams -> encode GPX -> submit upload

Runs inside the webhook request. Benign endings come back as a "skipped"
result; TimeShiftError subclasses propagate to the router, which drops the
event. Polling the upload happens later in a Celery task
(tasks.upload_tasks).

Ordering: the refreshed token pair is committed before the first activity
or stream request.
"""
from dataclasses import dataclass
from typing import Optional, Tuple
import random

from sqlalchemy.orm import Session
from core.config import settings
from core.exceptions import StravaNotFoundError
from schemas import WebhookEvent
from services.activity_streams import fetch_stream_set
from services.credentials import refresh_user_credentials
from services.gpx_encoder import encode_gpx
from services.strava_service import create_upload, get_activity
from services.strava_webhook import WebhookAction, classify_event
from services.time_shift import HourMinute, ShiftPlan, plan_time_shift
from services.upload_status import UploadJob
import logging

logger = logging.getLogger(__name__)

SKIP_NOT_CREATE = "not_create_event"
SKIP_UNKNOWN_OWNER = "unknown_owner"
SKIP_ACTIVITY_NOT_FOUND = "activity_not_found"
SKIP_OUTSIDE_WORK_WINDOW = "outside_work_window"


@dataclass
class TimeShiftResult:
    """
    Outcomes:
        "skipped": benign termination, `reason` says which
        "uploaded": shifted copy submitted, `upload` is the initial job state
    """
    outcome: str
    reason: Optional[str] = None
    user_id: Optional[str] = None
    activity_id: Optional[int] = None
    plan: Optional[ShiftPlan] = None
    upload: Optional[UploadJob] = None

    @classmethod
    def skipped(cls, reason: str, **kwargs) -> "TimeShiftResult":
        return cls(outcome="skipped", reason=reason, **kwargs)


def work_window() -> Tuple[HourMinute, HourMinute]:
    return HourMinute.parse(settings.WORK_WINDOW_START), HourMinute.parse(settings.WORK_WINDOW_END)


def process_webhook_event(
    db: Session,
    event: WebhookEvent,
    rng: Optional[random.Random] = None,
) -> TimeShiftResult:
    if classify_event(event) is WebhookAction.SKIP:
        return TimeShiftResult.skipped(SKIP_NOT_CREATE)

    refreshed = refresh_user_credentials(db, event.owner_id)
    if refreshed.skipped:
        return TimeShiftResult.skipped(SKIP_UNKNOWN_OWNER)
    user_id = str(refreshed.user.id)
    access_token = refreshed.credentials.access_token

    try:
        activity = get_activity(event.object_id, access_token)
    except StravaNotFoundError:
        # Deleted by the user, or a stale webhook.
        logger.info(f"Activity {event.object_id} not found, skipping")
        return TimeShiftResult.skipped(SKIP_ACTIVITY_NOT_FOUND, user_id=user_id, activity_id=event.object_id)

    lower, upper = work_window()
    plan = plan_time_shift(activity, lower, upper, rng)
    if not plan.within_work_window:
        logger.info(f"Activity {activity.id} starts at {plan.start_time_local} outside {lower}-{upper}, skipping")
        return TimeShiftResult.skipped(SKIP_OUTSIDE_WORK_WINDOW, user_id=user_id, activity_id=activity.id, plan=plan)

    logger.info(
        f"Shifting activity {activity.id}",
        extra={
            "extra_fields": {
                "activity_id": activity.id,
                "start_time_local": plan.start_time_local,
                "end_time_local": plan.end_time_local,
                "new_start_time_local": plan.new_start_time_local,
                "new_end_time_local": plan.new_end_time_local,
                "delta_seconds": plan.delta_seconds,
            }
        },
    )

    streams = fetch_stream_set(activity.id, access_token)
    document = encode_gpx(activity, streams, plan.delta_seconds)
    upload = UploadJob.from_response(create_upload(document, activity, access_token))
    logger.info(f"Submitted upload {upload.upload_id} for activity {activity.id}: {upload.status}")

    return TimeShiftResult(
        outcome="uploaded",
        user_id=user_id,
        activity_id=activity.id,
        plan=plan,
        upload=upload,
    )
