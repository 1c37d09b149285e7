"""Strava API payloads and a request router for mocked HTTP tests.

Shapes follow https://developers.strava.com/docs/reference/. Values are
deterministic; nothing here talks to the network.
"""
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import requests

ACTIVITY_ID = 10303000184
OWNER_ID = 912283
UPLOAD_ID = 11223344
NEW_ACTIVITY_ID = 10303999999

READY_STATUS = "Your activity is ready."
PROCESSING_STATUS = "Your activity is still being processed."


def make_webhook_event(aspect_type: str = "create", object_type: str = "activity", **overrides) -> Dict:
    event = {
        "aspect_type": aspect_type,
        "event_time": 1701311121,
        "object_id": ACTIVITY_ID,
        "object_type": object_type,
        "owner_id": OWNER_ID,
        "subscription_id": 252627,
        "updates": {},
    }
    event.update(overrides)
    return event


def make_token_response(access_token: str = "new_access_token", refresh_token: str = "new_refresh_token") -> Dict:
    return {
        "token_type": "Bearer",
        "access_token": access_token,
        "refresh_token": refresh_token,
        "expires_at": 1704931200,
        "expires_in": 21600,
    }


def make_activity(
    start_date: str = "2024-01-10T15:00:00Z",
    start_date_local: str = "2024-01-10T10:00:00Z",
    utc_offset: float = -18000.0,
    elapsed_time: int = 3600,
    **overrides,
) -> Dict:
    """A one-hour ride starting 10:00 local (UTC-5), inside the default 09:00-17:00 window."""
    activity = {
        "id": ACTIVITY_ID,
        "name": "Lunch Ride",
        "description": "Spun the legs out",
        "commute": False,
        "trainer": True,
        "type": "Ride",
        "upload_id": 98765,
        "elapsed_time": elapsed_time,
        "start_date": start_date,
        "start_date_local": start_date_local,
        "utc_offset": utc_offset,
        "distance": 24000.0,  # ignored by the service
    }
    activity.update(overrides)
    return activity


def make_stream(stream_type: str, data: List) -> Dict:
    return {
        "type": stream_type,
        "data": data,
        "series_type": "distance",
        "original_size": len(data),
        "resolution": "high",
    }


def make_streams(n: int = 3, include: Optional[List[str]] = None) -> List[Dict]:
    """Streams for n one-second samples. `include` limits the channels returned."""
    channels = {
        "time": list(range(n)),
        "latlng": [[-11.66850901 + i * 0.0001, 166.94263 + i * 0.0001] for i in range(n)],
        "altitude": [100.24 + i for i in range(n)],
        "cadence": [80 + i for i in range(n)],
        "heartrate": [96 + i for i in range(n)],
        "watts": [116 + i for i in range(n)],
        "temp": [16] * n,
    }
    if include is not None:
        channels = {k: v for k, v in channels.items() if k in include}
    return [make_stream(k, v) for k, v in channels.items()]


def make_upload_response(status: str = PROCESSING_STATUS, activity_id: Optional[int] = None, error: Optional[str] = None) -> Dict:
    return {
        "id": UPLOAD_ID,
        "id_str": str(UPLOAD_ID),
        "external_id": f"{ACTIVITY_ID}-shifted.gpx",
        "error": error,
        "status": status,
        "activity_id": activity_id,
    }


def mock_response(status_code: int = 200, payload=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = "" if payload is None else str(payload)
    return response


class FakeStrava:
    """
    Side effect for patching requests.request.

    Routes by (method, url suffix) and records every call so tests can
    assert on what was (not) sent.
    """

    def __init__(self, routes: Dict):
        self.routes = routes
        self.calls = []

    def __call__(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        for (route_method, suffix), response in self.routes.items():
            if method == route_method and url.split("?")[0].endswith(suffix):
                return response
        raise AssertionError(f"Unexpected Strava request: {method} {url}")

    def called(self, method: str, suffix: str) -> bool:
        return any(m == method and u.endswith(suffix) for m, u, _ in self.calls)

    def call_for(self, method: str, suffix: str):
        for m, u, kwargs in self.calls:
            if m == method and u.endswith(suffix):
                return kwargs
        return None


def non_json_response(status_code: int = 200, text: str = "<html>maintenance</html>") -> MagicMock:
    """A response whose body is not JSON, e.g. an HTML maintenance page."""
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.json.side_effect = requests.exceptions.JSONDecodeError("Expecting value", text, 0)
    return response
