"""
Credential refresh for webhook processing.

Every event starts by exchanging the owner's stored refresh token for a
fresh pair. The new pair is committed before anything else happens, so a
crash later in the pipeline never leaves a rotated-away refresh token in
storage. Replaying an event just refreshes again.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from core.exceptions import TokenExchangeError
from models import User
from services.strava_service import refresh_access_token
from services.token_encryption import decrypt_token
from services.users import find_user_by_strava_athlete_id, persist_refreshed_tokens
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    access_token: str
    refresh_token: str
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class RefreshResult:
    """user/credentials are None when the owner is unknown (skip the event)."""
    user: Optional[User]
    credentials: Optional[Credentials]

    @property
    def skipped(self) -> bool:
        return self.user is None


def refresh_user_credentials(db: Session, owner_id: int) -> RefreshResult:
    """
    Look up the user for a Strava athlete id and refresh their tokens.

    Unknown athletes are not an error: the account may have been removed
    after the webhook subscription saw the upload.
    Raises TokenExchangeError when the exchange fails.
    """
    user = find_user_by_strava_athlete_id(db, owner_id)
    if not user:
        logger.info(f"No user for Strava athlete {owner_id}, skipping")
        return RefreshResult(user=None, credentials=None)

    stored_refresh = decrypt_token(user.strava_refresh_token)
    if not stored_refresh:
        raise TokenExchangeError(f"Stored refresh token for user {user.id} could not be decrypted")

    token = refresh_access_token(stored_refresh)
    persist_refreshed_tokens(db, user, token)
    logger.info(f"Refreshed Strava tokens for user {user.id}")

    return RefreshResult(
        user=user,
        credentials=Credentials(
            access_token=token.access_token,
            refresh_token=token.refresh_token,
            expires_at=token.expires_at_datetime,
        ),
    )
