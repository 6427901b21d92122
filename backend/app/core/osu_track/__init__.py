"""osu!track client package."""

from .client import OsuTrackClient, parse_stats_history
from .models import OsuTrackHistoryStats

__all__ = ["OsuTrackClient", "parse_stats_history", "OsuTrackHistoryStats"]
