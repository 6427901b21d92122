"""Background worker implementations."""

from .osu_track import OsuTrackWorker
from .player_data import OsuPlayerDataWorker

__all__ = ["OsuPlayerDataWorker", "OsuTrackWorker"]
