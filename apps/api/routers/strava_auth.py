"""
Strava OAuth callback.

Strava redirects here after the athlete approves the app. We insist on the
scopes the time shift needs (reading all activities and writing new ones),
swap the code for tokens and make sure a user row exists.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from core.config import settings
from core.database import get_db
from core.exceptions import APIException, StravaAPIError, ValidationError
from services.strava_service import exchange_code_for_token
from services.users import upsert_user_from_token
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/strava", tags=["strava-auth"])


@router.get("/callback")
def strava_callback(
    code: Optional[str] = Query(None),
    scope: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    if scope != settings.STRAVA_REQUIRED_SCOPE:
        raise ValidationError("Must authorize read, activity:write, and activity:read_all", field="scope")
    if not code:
        raise ValidationError("Missing authorization code", field="code")

    try:
        token = exchange_code_for_token(code)
    except StravaAPIError as e:
        logger.warning(f"Strava authorization code exchange failed: {e}")
        raise APIException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Strava authorization failed",
            error_code="STRAVA_AUTH_FAILED",
        )

    user, created = upsert_user_from_token(db, token)
    logger.info(f"Strava login for user {user.id} (new={created})")
    return RedirectResponse(f"{settings.WEB_APP_BASE_URL}/dashboard", status_code=status.HTTP_303_SEE_OTHER)
