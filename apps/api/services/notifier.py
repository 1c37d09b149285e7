"""
Notification Service

Tells a user their activity was moved, via Loops (https://loops.so).
Two calls per notification: upsert the contact keyed by our user id, then
send a transactional email carrying links to the old and new activities.

Failures are logged and reported as False. They never raise: by the time
we notify, the upload has already completed and nothing can be undone.
"""

import requests
from dataclasses import dataclass
from typing import Dict, Optional
from core.config import settings
from models import User
from services.strava_service import activity_url
import logging

logger = logging.getLogger(__name__)

LOOPS_API_BASE = "https://app.loops.so/api/v1"


@dataclass(frozen=True)
class NotificationPayload:
    first_name: str
    last_name: str
    email: str
    old_activity_url: str
    new_activity_url: Optional[str] = None

    def data_variables(self) -> Dict[str, str]:
        variables = {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "oldActivityURL": self.old_activity_url,
        }
        if self.new_activity_url:
            variables["newActivityURL"] = self.new_activity_url
        return variables


class LoopsClient:
    """Minimal Loops REST client."""

    def __init__(self, api_key: Optional[str] = None, timeout: Optional[int] = None):
        self.api_key = api_key or settings.LOOPS_API_KEY
        self.timeout = timeout or settings.EXTERNAL_API_TIMEOUT

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def upsert_contact(self, email: str, properties: Dict) -> Dict:
        r = requests.put(
            f"{LOOPS_API_BASE}/contacts/update",
            headers=self._headers(),
            json={"email": email, **properties},
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json()

    def send_transactional_email(self, transactional_id: str, email: str, data_variables: Dict) -> Dict:
        r = requests.post(
            f"{LOOPS_API_BASE}/transactional",
            headers=self._headers(),
            json={
                "transactionalId": transactional_id,
                "email": email,
                "dataVariables": data_variables,
            },
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json()


def _send(user: User, template_id: Optional[str], payload: NotificationPayload, client: LoopsClient) -> bool:
    if not client.enabled or not template_id:
        logger.info(f"Loops not configured, would notify user {user.id}")
        return False

    try:
        client.upsert_contact(
            user.email,
            {
                "firstName": user.first_name,
                "lastName": user.last_name,
                "subscribed": True,
                "userId": str(user.id),
            },
        )
        resp = client.send_transactional_email(template_id, user.email, payload.data_variables())
        logger.info(f"Sent email to user {user.id}: {resp}")
        return True
    except requests.exceptions.RequestException as e:
        logger.error(f"Error sending email to user {user.id}: {e}", exc_info=True)
        return False


def notify_activity_shifted(
    user: User,
    old_activity_id: int,
    new_activity_id: int,
    client: Optional[LoopsClient] = None,
) -> bool:
    """Email the user links to the original and the re-uploaded activity."""
    if not user.email:
        logger.info(f"No email for user {user.id}, skipping notification")
        return False

    payload = NotificationPayload(
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        old_activity_url=activity_url(old_activity_id),
        new_activity_url=activity_url(new_activity_id),
    )
    return _send(user, settings.LOOPS_RIDE_UPLOADED_ID, payload, client or LoopsClient())


def notify_upload_failed(
    user: User,
    old_activity_id: int,
    client: Optional[LoopsClient] = None,
) -> bool:
    """Email the user that the shifted copy never finished processing."""
    if not user.email:
        logger.info(f"No email for user {user.id}, skipping failure notification")
        return False

    payload = NotificationPayload(
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        old_activity_url=activity_url(old_activity_id),
    )
    return _send(user, settings.LOOPS_UPLOAD_FAILED_ID, payload, client or LoopsClient())
