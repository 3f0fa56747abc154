"""Leaderboards built from a track's raw time entries."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from statistics import mean
from typing import Iterable, Optional, Sequence

from ..exceptions import InvalidInput, TrackNotFound, UserNotFound
from ..schemas import (
    Leaderboard,
    LeaderboardEntry,
    LeaderboardGap,
    PlayerSummary,
    PlayerTopResult,
    TimeEntry,
    TopTime,
    TopTimeUser,
    TrackOut,
    TrackSummary,
    UserInfo,
)
from ..time_utils import coerce_utc

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def round10(value: float) -> int:
    """Round a millisecond delta to the nearest 10 ms, halves away from zero."""

    return int(math.copysign(math.floor(abs(value) / 10 + 0.5), value)) * 10


def _sort_key(entry: TimeEntry) -> tuple[int, int, float]:
    created = coerce_utc(entry.createdAt) or _EPOCH
    if entry.duration is None:
        return (1, 0, -created.timestamp())
    return (0, entry.duration, -created.timestamp())


def _gap_between(later: Optional[int], earlier: Optional[int]) -> Optional[int]:
    if later is None or earlier is None:
        return None
    return round10(later - earlier)


def _ranked_entries(
    track_id: str, time_entries: Iterable[TimeEntry]
) -> list[TimeEntry]:
    """Return the best entry per user on ``track_id`` in leaderboard order."""

    live = [
        e
        for e in time_entries
        if e.track == track_id and e.deletedAt is None
    ]
    live.sort(key=_sort_key)

    seen: set[str] = set()
    best: list[TimeEntry] = []
    for entry in live:
        if entry.user in seen:
            continue
        seen.add(entry.user)
        best.append(entry)
    return best


def build_leaderboard(
    track: Optional[TrackOut],
    time_entries: Iterable[TimeEntry],
    users: Iterable[UserInfo],
    offset: int = 0,
    limit: Optional[int] = None,
) -> Leaderboard:
    """Build the gap-annotated leaderboard for ``track``.

    Entries are ordered by duration with unfinished laps last and the most
    recent entry first on ties. Each user appears once, with their best lap.
    Gaps are computed over the whole board before ``offset``/``limit`` are
    applied, so paging never changes them.

    Raises:
        TrackNotFound: If ``track`` is ``None``.
        UserNotFound: If a live entry references a user missing from ``users``.
        InvalidInput: If ``offset`` or ``limit`` is negative.
    """

    if track is None:
        raise TrackNotFound(None)
    if offset < 0 or (limit is not None and limit < 0):
        raise InvalidInput("offset and limit must be non-negative")

    user_map = {u.id: u for u in users}
    ranked = _ranked_entries(track.id, time_entries)

    for entry in ranked:
        if entry.user not in user_map:
            raise UserNotFound(entry.user)

    count = len(ranked)
    leader = ranked[0].duration if ranked else None
    annotated: list[LeaderboardEntry] = []
    for i, entry in enumerate(ranked):
        gap = LeaderboardGap(position=i + 1)
        if i > 0:
            gap.previous = _gap_between(entry.duration, ranked[i - 1].duration)
            gap.leader = _gap_between(entry.duration, leader)
        if i < count - 1:
            gap.next = _gap_between(ranked[i + 1].duration, entry.duration)
        annotated.append(
            LeaderboardEntry(
                id=entry.id,
                duration=entry.duration,
                amount=entry.amount,
                comment=entry.comment,
                createdAt=entry.createdAt,
                updatedAt=entry.updatedAt,
                deletedAt=entry.deletedAt,
                user=user_map[entry.user],
                gap=gap,
            )
        )

    end = None if limit is None else offset + limit
    return Leaderboard(track=track, totalEntries=count, entries=annotated[offset:end])


def summarize_track(
    track: Optional[TrackOut],
    time_entries: Iterable[TimeEntry],
    users: Iterable[UserInfo],
    top: int = 3,
) -> TrackSummary:
    """Return lap count and the fastest ``top`` users for a track."""

    if track is None:
        raise TrackNotFound(None)

    entries = [
        e for e in time_entries if e.track == track.id and e.deletedAt is None
    ]
    board = build_leaderboard(track, entries, users)
    top_times = [
        TopTime(
            user=TopTimeUser(id=row.user.id, name=row.user.display_name),
            duration=row.duration,
        )
        for row in board.entries
        if row.duration is not None
    ][:top]

    return TrackSummary(
        id=track.id,
        number=track.number,
        level=track.level,
        type=track.type,
        lapCount=len(entries),
        topTimes=top_times,
    )


def summarize_player(
    user: Optional[UserInfo],
    tracks: Sequence[TrackOut],
    time_entries: Sequence[TimeEntry],
    users: Iterable[UserInfo],
) -> PlayerSummary:
    """Summarize a user's leaderboard positions across every track they drove."""

    if user is None:
        raise UserNotFound(None)

    users = list(users)
    driven = {e.track for e in time_entries if e.user == user.id and e.deletedAt is None}

    results: list[PlayerTopResult] = []
    for track in tracks:
        if track.id not in driven:
            continue
        board = build_leaderboard(track, time_entries, users)
        row = next((r for r in board.entries if r.user.id == user.id), None)
        if row is None:
            continue
        results.append(
            PlayerTopResult(
                trackId=track.id,
                trackNumber=track.number,
                trackLevel=track.level,
                trackType=track.type,
                position=row.gap.position,
                duration=row.duration,
            )
        )

    results.sort(key=lambda r: (r.position, r.trackNumber))
    average = mean(r.position for r in results) if results else None
    logger.debug("Summarized %d track(s) for user %s", len(results), user.id)
    return PlayerSummary(
        user=user,
        averagePosition=average,
        totalTracks=len(results),
        topResults=results,
    )
