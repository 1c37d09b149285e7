"""
Upload job state machine.

    PROCESSING --poll--> PROCESSING | READY | ERROR

Each poll produces a new UploadJob value from Strava's response; nothing
is mutated between attempts. The job is plain JSON (to_dict/from_dict)
so it can travel through the Celery broker.
"""
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional

from schemas import UploadResponse
from services.strava_service import get_upload

# Strava reports completion with this literal status message.
UPLOAD_READY_STATUS = "Your activity is ready."


class UploadState(str, Enum):
    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class UploadJob:
    upload_id: int
    status: str
    activity_id: Optional[int] = None
    error: Optional[str] = None
    attempts: int = 0

    @property
    def state(self) -> UploadState:
        if self.error:
            return UploadState.ERROR
        if self.status == UPLOAD_READY_STATUS:
            return UploadState.READY
        return UploadState.PROCESSING

    @property
    def is_terminal(self) -> bool:
        return self.state is not UploadState.PROCESSING

    @classmethod
    def from_response(cls, response: UploadResponse, attempts: int = 0) -> "UploadJob":
        return cls(
            upload_id=response.id,
            status=response.status,
            activity_id=response.activity_id,
            error=response.error,
            attempts=attempts,
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "UploadJob":
        return cls(**data)


def advance_upload_job(job: UploadJob, access_token: str) -> UploadJob:
    """Poll Strava once and return the job's next state."""
    response = get_upload(job.upload_id, access_token)
    return UploadJob.from_response(response, attempts=job.attempts + 1)
