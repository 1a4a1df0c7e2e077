"""Tasks package."""

# Import all tasks so they're registered with Celery
from app.worker.tasks import file_tasks

__all__ = ["file_tasks"]
