"""Rating and leaderboard services (pure helpers, plus the async loader)."""

from .leaderboard import build_leaderboard, round10, summarize_player, summarize_track
from .rating import MatchRatingCalculator, RatingPlayer, glicko2_update
from .track_rating import TrackRatingCalculator, TrackStats
from .ranking import build_rankings, rank_users, total_rating
from .recalculate import RatingSnapshot, recalculate_ratings

__all__ = [
    "build_leaderboard",
    "round10",
    "summarize_player",
    "summarize_track",
    "MatchRatingCalculator",
    "RatingPlayer",
    "glicko2_update",
    "TrackRatingCalculator",
    "TrackStats",
    "build_rankings",
    "rank_users",
    "total_rating",
    "RatingSnapshot",
    "recalculate_ratings",
]
