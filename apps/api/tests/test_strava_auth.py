"""
OAuth callback tests.
"""
from unittest.mock import patch

from fastapi.testclient import TestClient

from main import app
from models import User
from services.token_encryption import decrypt_token
from fixtures.strava_payloads import OWNER_ID, make_token_response, mock_response

client = TestClient(app)

FULL_SCOPE = "read,activity:write,activity:read_all"


def _authorization_response():
    payload = make_token_response(access_token="first_access", refresh_token="first_refresh")
    payload["athlete"] = {"id": OWNER_ID, "firstname": "Test", "lastname": "Rider"}
    return mock_response(200, payload)


def test_insufficient_scope_is_rejected():
    with patch("services.strava_service.requests.request") as mock_request:
        response = client.get("/strava/callback", params={"code": "abc", "scope": "read"})
    assert response.status_code == 400
    mock_request.assert_not_called()


def test_missing_code_is_rejected():
    response = client.get("/strava/callback", params={"scope": FULL_SCOPE})
    assert response.status_code == 400


def test_first_login_creates_user_and_redirects(db_session):
    with patch("services.strava_service.requests.request", return_value=_authorization_response()) as mock_request:
        response = client.get(
            "/strava/callback",
            params={"code": "abc", "scope": FULL_SCOPE},
            follow_redirects=False,
        )

    assert response.status_code == 303
    assert response.headers["location"].endswith("/dashboard")
    assert mock_request.call_args.kwargs["json"]["grant_type"] == "authorization_code"
    assert mock_request.call_args.kwargs["json"]["code"] == "abc"

    user = db_session.query(User).filter(User.strava_athlete_id == OWNER_ID).one()
    assert user.first_name == "Test"
    assert decrypt_token(user.strava_refresh_token) == "first_refresh"


def test_returning_user_is_not_duplicated(db_session, test_user):
    with patch("services.strava_service.requests.request", return_value=_authorization_response()):
        response = client.get(
            "/strava/callback",
            params={"code": "abc", "scope": FULL_SCOPE},
            follow_redirects=False,
        )

    assert response.status_code == 303
    assert db_session.query(User).filter(User.strava_athlete_id == OWNER_ID).count() == 1


def test_failed_exchange_is_bad_gateway():
    with patch("services.strava_service.requests.request", return_value=mock_response(400, {"message": "Bad Request"})):
        response = client.get("/strava/callback", params={"code": "abc", "scope": FULL_SCOPE})
    assert response.status_code == 502
