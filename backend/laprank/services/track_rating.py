"""Per-track lap-time performance ratings.

Each lap is scored against the track's moving-average lap time, so a rating
earned on a hard track is comparable to one earned on an easy track. A user's
rating on a track only ever moves up: it follows sustained improvement, not
the latest or average pace.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

from ..config import RatingConfig
from ..schemas import TimeEntry
from ..time_utils import coerce_utc

logger = logging.getLogger(__name__)


@dataclass
class TrackStats:
    count: int
    average: float


class TrackRatingCalculator:
    def __init__(self, config: Optional[RatingConfig] = None) -> None:
        self.config = config or RatingConfig()
        self.track_stats: dict[str, TrackStats] = {}
        self.user_track_ratings: dict[str, dict[str, float]] = defaultdict(dict)
        self.user_track_laps: dict[str, dict[str, int]] = defaultdict(dict)

    def reset(self) -> None:
        self.track_stats.clear()
        self.user_track_ratings.clear()
        self.user_track_laps.clear()

    def _update_track_average(self, track_id: str, duration: int) -> float:
        stats = self.track_stats.get(track_id)
        if stats is None:
            stats = TrackStats(count=1, average=float(duration))
            self.track_stats[track_id] = stats
            return stats.average

        stats.count += 1
        alpha = min(self.config.track_stats_ema_alpha_max, 2 / (stats.count + 1))
        stats.average = stats.average * (1 - alpha) + duration * alpha
        return stats.average

    def process_time_entry(self, entry: TimeEntry) -> None:
        """Fold one lap into the ratings. Laps must arrive oldest first."""

        if entry.duration is None or entry.deletedAt is not None:
            return
        if entry.duration <= 0:
            logger.warning(
                "Time entry %s has non-positive duration %s, skipping",
                entry.id,
                entry.duration,
            )
            return

        average = self._update_track_average(entry.track, entry.duration)
        score = self.config.initial_rating + self.config.lap_rating_scale * math.log10(
            average / entry.duration
        )

        ratings = self.user_track_ratings[entry.user]
        current = ratings.get(entry.track, self.config.initial_rating)
        if score > current:
            k = self.config.user_track_ema_alpha
            current = current * (1 - k) + score * k
        ratings[entry.track] = current

        laps = self.user_track_laps[entry.user]
        laps[entry.track] = laps.get(entry.track, 0) + 1

        logger.debug(
            "Lap %s: user=%s track=%s score=%.1f rating=%.1f",
            entry.id,
            entry.user,
            entry.track,
            score,
            current,
        )

    def process_time_entries(self, entries: Iterable[TimeEntry]) -> None:
        """Replay ``entries`` in chronological order."""

        ordered = sorted(entries, key=lambda e: coerce_utc(e.createdAt))
        for entry in ordered:
            self.process_time_entry(entry)

    def get_track_rating(self, user_id: str, track_id: str) -> float:
        ratings = self.user_track_ratings.get(user_id, {})
        return ratings.get(track_id, self.config.initial_rating)

    def get_track_stats(self, track_id: str) -> Optional[TrackStats]:
        return self.track_stats.get(track_id)

    def get_rating(self, user_id: str) -> float:
        """Maturity-weighted mean of the user's track ratings, shrunk toward the prior."""

        initial = self.config.initial_rating
        laps = self.user_track_laps.get(user_id)
        if not laps:
            return initial

        ratings = self.user_track_ratings[user_id]
        numerator = initial * self.config.prior_weight
        denominator = self.config.prior_weight
        for track_id, count in laps.items():
            weight = 1 - math.exp(-count / self.config.track_maturity_laps)
            numerator += ratings[track_id] * weight
            denominator += weight

        if denominator <= 0:
            return initial
        return numerator / denominator

    def get_all_ratings(self) -> dict[str, float]:
        return {user_id: self.get_rating(user_id) for user_id in self.user_track_laps}
