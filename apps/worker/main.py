"""
Celery worker entry point.

Run from this directory:
    celery -A main worker --loglevel=info
"""
import sys
import os

# Add API directory to path so we can import tasks
sys.path.insert(0, os.environ.get("API_DIR", os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "api")))

from core.logging import setup_logging  # noqa: E402
from tasks import celery_app  # noqa: E402

setup_logging()

# This makes Celery discover tasks
celery_app.autodiscover_tasks(["tasks"])


# Health check task
@celery_app.task(name="worker.health_check")
def health_check():
    """Health check task"""
    return {"status": "ok"}
