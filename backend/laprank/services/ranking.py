from typing import Iterable, Mapping, Optional

from ..config import RatingConfig
from ..exceptions import InvalidInput
from ..schemas import Ranking
from .rating import MatchRatingCalculator
from .track_rating import TrackRatingCalculator


def total_rating(match_rating: float, track_rating: float, match_weight: float) -> float:
    return match_weight * match_rating + (1 - match_weight) * track_rating


def build_rankings(
    user_ids: Iterable[str],
    match_ratings: Mapping[str, float],
    track_ratings: Mapping[str, float],
    *,
    match_weight: float = 0.5,
    initial_rating: float = 1200.0,
) -> list[Ranking]:
    """Blend match and track ratings into one sorted ranking table.

    ``totalRating`` is ``match_weight * match + (1 - match_weight) * track``.
    Users missing from either mapping get ``initial_rating`` for it. Rows are
    ordered by total rating, highest first; equal totals fall back to user id
    so the order is deterministic. ``ranking`` is the 1-based row position.
    """

    if not 0 <= match_weight <= 1:
        raise InvalidInput(f"match_weight must be within [0, 1], got {match_weight}")

    rows: list[tuple[str, float, float, float]] = []
    for user_id in dict.fromkeys(user_ids):
        match_value = match_ratings.get(user_id, initial_rating)
        track_value = track_ratings.get(user_id, initial_rating)
        rows.append(
            (
                user_id,
                total_rating(match_value, track_value, match_weight),
                match_value,
                track_value,
            )
        )

    rows.sort(key=lambda r: (-r[1], r[0]))
    return [
        Ranking(
            user=user_id,
            ranking=i + 1,
            totalRating=total,
            matchRating=match_value,
            trackRating=track_value,
        )
        for i, (user_id, total, match_value, track_value) in enumerate(rows)
    ]


def rank_users(
    user_ids: Iterable[str],
    match_calculator: MatchRatingCalculator,
    track_calculator: TrackRatingCalculator,
    config: Optional[RatingConfig] = None,
) -> list[Ranking]:
    """Rank ``user_ids`` from the current state of both calculators."""

    config = config or RatingConfig()
    user_ids = list(dict.fromkeys(user_ids))
    return build_rankings(
        user_ids,
        {uid: match_calculator.get_rating(uid) for uid in user_ids},
        {uid: track_calculator.get_rating(uid) for uid in user_ids},
        match_weight=config.match_weight,
        initial_rating=config.initial_rating,
    )
