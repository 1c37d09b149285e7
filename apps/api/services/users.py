"""
User store.

Thin persistence helpers around the User model. Tokens are always
encrypted before they reach the database.
"""
from typing import Optional, Tuple
from uuid import UUID
from sqlalchemy.orm import Session
from models import User
from schemas import AuthorizationTokenResponse, TokenResponse
from services.token_encryption import encrypt_token
import logging

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id) -> Optional[User]:
    if isinstance(user_id, str):
        user_id = UUID(user_id)
    return db.get(User, user_id)


def find_user_by_strava_athlete_id(db: Session, strava_athlete_id: int) -> Optional[User]:
    return db.query(User).filter(User.strava_athlete_id == strava_athlete_id).first()


def persist_refreshed_tokens(db: Session, user: User, token: TokenResponse) -> User:
    """
    Store a freshly exchanged token pair and commit immediately.

    Strava may rotate the refresh token on every exchange, so the old one
    must not outlive this call.
    """
    user.strava_access_token = encrypt_token(token.access_token)
    user.strava_refresh_token = encrypt_token(token.refresh_token)
    user.strava_token_expires_at = token.expires_at_datetime
    db.commit()
    return user


def upsert_user_from_token(db: Session, token: AuthorizationTokenResponse) -> Tuple[User, bool]:
    """
    Find the user for the authorizing athlete, creating one on first login.

    Returns (user, created). An existing user keeps their stored tokens;
    the next webhook refreshes them anyway.
    """
    existing = find_user_by_strava_athlete_id(db, token.athlete.id)
    if existing:
        return existing, False

    user = User(
        first_name=token.athlete.firstname,
        last_name=token.athlete.lastname,
        strava_athlete_id=token.athlete.id,
        strava_access_token=encrypt_token(token.access_token),
        strava_refresh_token=encrypt_token(token.refresh_token),
        strava_token_expires_at=token.expires_at_datetime,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created user {user.id} for Strava athlete {token.athlete.id}")
    return user, True
