"""Jobs feature - background sync workers and their scheduler."""

from .base import BaseWorker
from .implementations import OsuPlayerDataWorker, OsuTrackWorker
from .scheduler import get_scheduler, shutdown_workers, start_workers

__all__ = [
    "BaseWorker",
    "OsuPlayerDataWorker",
    "OsuTrackWorker",
    "start_workers",
    "shutdown_workers",
    "get_scheduler",
]
