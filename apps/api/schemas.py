"""
Pydantic schemas for the Strava payloads this service consumes.

Only the fields we use are declared; anything else Strava sends is ignored.
Reference: https://developers.strava.com/docs/reference/
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional


class WebhookEvent(BaseModel):
    """Push notification body (https://developers.strava.com/docs/webhooks/)."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    aspect_type: Literal["create", "update", "delete"]
    event_time: int
    object_id: int
    object_type: Literal["activity", "athlete"]
    owner_id: int
    subscription_id: int
    # Contents vary by aspect type and are never inspected.
    updates: Dict[str, Any] = Field(default_factory=dict)


class TokenResponse(BaseModel):
    """Response of POST /oauth/token for grant_type=refresh_token."""
    token_type: Literal["Bearer"]
    access_token: str
    refresh_token: str
    expires_at: int
    expires_in: int

    @property
    def expires_at_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.expires_at, tz=timezone.utc)


class StravaAthleteSummary(BaseModel):
    id: int
    firstname: str
    lastname: str


class AuthorizationTokenResponse(TokenResponse):
    """Response of POST /oauth/token for grant_type=authorization_code."""
    athlete: StravaAthleteSummary


class StravaActivity(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    commute: bool
    trainer: bool
    type: str
    upload_id: Optional[int] = None
    elapsed_time: int
    start_date: datetime
    # Strava labels the local wall-clock time with a "Z" suffix; it is not UTC.
    start_date_local: datetime
    utc_offset: float  # seconds; start_date_local - utc_offset == start_date

    @property
    def start_time_utc(self) -> datetime:
        if self.start_date.tzinfo is None:
            return self.start_date.replace(tzinfo=timezone.utc)
        return self.start_date.astimezone(timezone.utc)

    @property
    def start_time_local(self) -> datetime:
        """Naive wall-clock start time in the activity's own timezone."""
        return self.start_date_local.replace(tzinfo=None)


class StravaStream(BaseModel):
    type: str
    data: List[Any]
    original_size: Optional[int] = None
    resolution: Optional[str] = None
    series_type: Optional[str] = None


class UploadResponse(BaseModel):
    """Shared by POST /uploads and GET /uploads/{id}."""
    id: int
    id_str: str
    error: Optional[str] = None
    status: str
    activity_id: Optional[int] = None
