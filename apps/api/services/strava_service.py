"""
Strava API client.

Every call takes an already-refreshed access token; refreshing is the
caller's job (see services.credentials). Failures surface as the typed
errors in core.exceptions so the webhook pipeline can tell a deleted
activity apart from a broken request.
"""
import requests
from typing import Dict, List, Optional, Type, TypeVar
from pydantic import BaseModel, ValidationError
from core.config import settings
from core.exceptions import (
    StravaAPIError,
    StravaNotFoundError,
    TokenExchangeError,
    UploadError,
)
from schemas import (
    AuthorizationTokenResponse,
    StravaActivity,
    StravaStream,
    TokenResponse,
    UploadResponse,
)
import logging

logger = logging.getLogger(__name__)

STRAVA_API_BASE = "https://www.strava.com/api/v3"
STRAVA_TOKEN_URL = f"{STRAVA_API_BASE}/oauth/token"

GPX_CONTENT_TYPE = "application/gpx+xml"

T = TypeVar("T", bound=BaseModel)


def _auth_headers(access_token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}


def _parse(model: Type[T], payload, what: str) -> T:
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise StravaAPIError(f"Unexpected {what} payload from Strava: {e}") from e


def _raise_for_status(r: requests.Response, what: str, error_cls: Type[StravaAPIError] = StravaAPIError) -> None:
    if r.status_code == 404:
        raise StravaNotFoundError(f"{what}: not found")
    if r.status_code >= 400:
        raise error_cls(f"{what}: HTTP {r.status_code} {r.text[:200]}", status_code=r.status_code)


def _request(method: str, url: str, what: str, **kwargs) -> requests.Response:
    kwargs.setdefault("timeout", settings.EXTERNAL_API_TIMEOUT)
    try:
        return requests.request(method, url, **kwargs)
    except requests.exceptions.RequestException as e:
        raise StravaAPIError(f"{what}: {e}") from e


def _json(r: requests.Response, what: str, error_cls: Type[StravaAPIError] = StravaAPIError):
    # requests' JSONDecodeError is a ValueError
    try:
        return r.json()
    except ValueError as e:
        raise error_cls(f"{what}: response body is not JSON ({r.text[:200]!r})", status_code=r.status_code) from e


def _post_token(data: Dict[str, str], what: str) -> Dict:
    payload = {
        "client_id": settings.STRAVA_CLIENT_ID,
        "client_secret": settings.STRAVA_CLIENT_SECRET,
        **data,
    }
    r = _request("POST", STRAVA_TOKEN_URL, what, json=payload)
    if r.status_code >= 400:
        raise TokenExchangeError(f"{what}: HTTP {r.status_code}", status_code=r.status_code)
    return _json(r, what, TokenExchangeError)


def exchange_code_for_token(code: str) -> AuthorizationTokenResponse:
    """Exchange an OAuth authorization code (first login) for tokens + athlete."""
    payload = _post_token({"code": code, "grant_type": "authorization_code"}, "authorization code exchange")
    return _parse(AuthorizationTokenResponse, payload, "authorization token")


def refresh_access_token(refresh_token: str) -> TokenResponse:
    """
    Exchange a refresh token for a new access/refresh token pair.

    Raises TokenExchangeError on failure (e.g. 400 = revoked).
    """
    payload = _post_token({"refresh_token": refresh_token, "grant_type": "refresh_token"}, "token refresh")
    return _parse(TokenResponse, payload, "refresh token")


def get_activity(activity_id: int, access_token: str) -> StravaActivity:
    """
    GET /activities/{id}.

    Raises StravaNotFoundError when the activity is gone (deleted or stale
    webhook), StravaAPIError for anything else.
    """
    what = f"activity {activity_id}"
    r = _request("GET", f"{STRAVA_API_BASE}/activities/{activity_id}", what, headers=_auth_headers(access_token))
    _raise_for_status(r, what)
    return _parse(StravaActivity, _json(r, what), "activity")


def get_activity_streams(activity_id: int, access_token: str, keys: List[str]) -> List[StravaStream]:
    """GET /activities/{id}/streams as the list form (one object per channel)."""
    what = f"streams for activity {activity_id}"
    r = _request(
        "GET",
        f"{STRAVA_API_BASE}/activities/{activity_id}/streams",
        what,
        headers=_auth_headers(access_token),
        params={"keys": ",".join(keys)},
    )
    _raise_for_status(r, what)
    data = _json(r, what)
    if not isinstance(data, list):
        raise StravaAPIError(f"{what}: expected a list of streams, got {type(data).__name__}")
    return [_parse(StravaStream, s, "stream") for s in data]


def create_upload(
    document: bytes,
    activity: StravaActivity,
    access_token: str,
    data_type: str = "gpx",
    content_type: str = GPX_CONTENT_TYPE,
) -> UploadResponse:
    """
    POST /uploads with the synthesized file.

    Name, description and the commute/trainer flags are carried over from
    the original activity unchanged.
    """
    what = f"upload for activity {activity.id}"
    form: Dict[str, str] = {"name": activity.name}
    if activity.description:
        form["description"] = activity.description
    form["commute"] = "true" if activity.commute else "false"
    form["trainer"] = "true" if activity.trainer else "false"
    form["data_type"] = data_type

    files = {"file": (f"{activity.id}-shifted.{data_type}", document, content_type)}
    r = _request(
        "POST",
        f"{STRAVA_API_BASE}/uploads",
        what,
        headers=_auth_headers(access_token),
        data=form,
        files=files,
    )
    _raise_for_status(r, what, UploadError)
    return _parse(UploadResponse, _json(r, what, UploadError), "upload")


def get_upload(upload_id: int, access_token: str) -> UploadResponse:
    """GET /uploads/{id}. Same response shape as create_upload."""
    what = f"upload {upload_id}"
    r = _request("GET", f"{STRAVA_API_BASE}/uploads/{upload_id}", what, headers=_auth_headers(access_token))
    _raise_for_status(r, what)
    return _parse(UploadResponse, _json(r, what), "upload status")


def activity_url(activity_id: Optional[int]) -> str:
    return f"https://www.strava.com/activities/{activity_id}"
