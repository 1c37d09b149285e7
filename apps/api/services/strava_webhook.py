"""
Strava Webhook Service

Subscription verification and event classification.
Adapted from https://developers.strava.com/docs/webhookexample/
"""

from enum import Enum
from typing import Dict, Optional
from core.exceptions import ForbiddenError
from schemas import WebhookEvent
import logging

logger = logging.getLogger(__name__)

SUBSCRIBE_MODE = "subscribe"


class WebhookAction(str, Enum):
    PROCESS = "process"
    SKIP = "skip"


def handle_challenge(
    mode: Optional[str],
    verify_token: Optional[str],
    challenge: Optional[str],
    expected_token: Optional[str],
) -> Dict[str, Optional[str]]:
    """
    Answer Strava's subscription validation request.

    Echoes the challenge when mode is "subscribe" and the verify token
    matches ours; raises ForbiddenError otherwise.
    """
    if mode == SUBSCRIBE_MODE and expected_token and verify_token == expected_token:
        logger.info("Webhook verification successful")
        return {"hub.challenge": challenge}

    logger.warning(f"Webhook verification failed: mode={mode}")
    raise ForbiddenError("Verification failed")


def classify_event(event: WebhookEvent) -> WebhookAction:
    """Only newly created activities are processed; everything else is acknowledged and dropped."""
    if event.aspect_type != "create":
        return WebhookAction.SKIP
    if event.object_type != "activity":
        return WebhookAction.SKIP
    return WebhookAction.PROCESS
