from sqlalchemy import Column, BigInteger, DateTime, Text, Uuid
from sqlalchemy.sql import func
from core.database import Base
import uuid


class User(Base):
    __tablename__ = "app_user"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    email = Column(Text, unique=True, index=True, nullable=True)  # Collected after signup; notifications skip when null
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)

    strava_athlete_id = Column(BigInteger, unique=True, index=True, nullable=False)
    strava_access_token = Column(Text, nullable=False)  # Encrypted
    strava_refresh_token = Column(Text, nullable=False)  # Encrypted
    strava_token_expires_at = Column(DateTime(timezone=True), nullable=True)  # When access token expires

    def __repr__(self) -> str:
        return f"<User id={self.id} strava_athlete_id={self.strava_athlete_id}>"
