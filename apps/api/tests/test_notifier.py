"""
Notification tests (Loops is mocked; nothing leaves the process).
"""
import uuid
from unittest.mock import MagicMock, patch

import pytest
import requests

from core.config import settings
from models import User
from services.notifier import LoopsClient, NotificationPayload, notify_activity_shifted, notify_upload_failed
from fixtures.strava_payloads import ACTIVITY_ID, NEW_ACTIVITY_ID


def _user(email="rider@example.com"):
    return User(id=uuid.uuid4(), email=email, first_name="Test", last_name="Rider", strava_athlete_id=1)


def _ok(payload=None):
    response = MagicMock()
    response.json.return_value = payload or {"success": True}
    response.raise_for_status.return_value = None
    return response


@pytest.fixture
def loops_configured(monkeypatch):
    monkeypatch.setattr(settings, "LOOPS_API_KEY", "loops-key")
    monkeypatch.setattr(settings, "LOOPS_RIDE_UPLOADED_ID", "tmpl-uploaded")
    monkeypatch.setattr(settings, "LOOPS_UPLOAD_FAILED_ID", "tmpl-failed")


def test_data_variables_skip_missing_new_url():
    payload = NotificationPayload("A", "B", "a@b.c", "https://www.strava.com/activities/1")
    assert payload.data_variables() == {
        "firstName": "A",
        "lastName": "B",
        "oldActivityURL": "https://www.strava.com/activities/1",
    }


def test_shifted_email_upserts_contact_then_sends(loops_configured):
    user = _user()
    with patch("services.notifier.requests.put", return_value=_ok()) as mock_put, \
         patch("services.notifier.requests.post", return_value=_ok()) as mock_post:
        assert notify_activity_shifted(user, ACTIVITY_ID, NEW_ACTIVITY_ID) is True

    put_url = mock_put.call_args.args[0]
    assert put_url == "https://app.loops.so/api/v1/contacts/update"
    contact = mock_put.call_args.kwargs["json"]
    assert contact["email"] == "rider@example.com"
    assert contact["userId"] == str(user.id)
    assert mock_put.call_args.kwargs["headers"] == {"Authorization": "Bearer loops-key"}

    assert mock_post.call_args.args[0] == "https://app.loops.so/api/v1/transactional"
    assert mock_post.call_args.kwargs["json"] == {
        "transactionalId": "tmpl-uploaded",
        "email": "rider@example.com",
        "dataVariables": {
            "firstName": "Test",
            "lastName": "Rider",
            "oldActivityURL": f"https://www.strava.com/activities/{ACTIVITY_ID}",
            "newActivityURL": f"https://www.strava.com/activities/{NEW_ACTIVITY_ID}",
        },
    }


def test_failure_email_uses_failure_template(loops_configured):
    with patch("services.notifier.requests.put", return_value=_ok()), \
         patch("services.notifier.requests.post", return_value=_ok()) as mock_post:
        assert notify_upload_failed(_user(), ACTIVITY_ID) is True

    sent = mock_post.call_args.kwargs["json"]
    assert sent["transactionalId"] == "tmpl-failed"
    assert "newActivityURL" not in sent["dataVariables"]


def test_unconfigured_loops_sends_nothing():
    with patch("services.notifier.requests.put") as mock_put, \
         patch("services.notifier.requests.post") as mock_post:
        assert notify_activity_shifted(_user(), ACTIVITY_ID, NEW_ACTIVITY_ID) is False
    mock_put.assert_not_called()
    mock_post.assert_not_called()


def test_user_without_email_is_skipped(loops_configured):
    with patch("services.notifier.requests.put") as mock_put:
        assert notify_activity_shifted(_user(email=None), ACTIVITY_ID, NEW_ACTIVITY_ID) is False
    mock_put.assert_not_called()


def test_loops_error_is_logged_not_raised(loops_configured):
    failing = MagicMock()
    failing.raise_for_status.side_effect = requests.exceptions.HTTPError("500 Server Error")

    with patch("services.notifier.requests.put", return_value=_ok()), \
         patch("services.notifier.requests.post", return_value=failing):
        assert notify_activity_shifted(_user(), ACTIVITY_ID, NEW_ACTIVITY_ID) is False


def test_explicit_client_overrides_settings():
    client = LoopsClient(api_key="other-key", timeout=3)
    assert client.enabled
    with patch("services.notifier.requests.put", return_value=_ok()) as mock_put:
        client.upsert_contact("a@b.c", {"firstName": "A"})
    assert mock_put.call_args.kwargs["timeout"] == 3
    assert mock_put.call_args.kwargs["headers"] == {"Authorization": "Bearer other-key"}
