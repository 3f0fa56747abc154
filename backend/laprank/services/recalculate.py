"""Load records through SQLAlchemy and feed them to the pure services."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import RatingConfig
from ..exceptions import TrackNotFound, UserNotFound
from ..models import Match as MatchRow
from ..models import RaceSession, Track, TimeEntry as TimeEntryRow, User
from ..schemas import (
    Leaderboard,
    Match,
    PlayerSummary,
    Ranking,
    TimeEntry,
    TrackOut,
    TrackSummary,
    UserInfo,
)
from .leaderboard import build_leaderboard, summarize_player, summarize_track
from .ranking import rank_users
from .rating import MatchRatingCalculator
from .track_rating import TrackRatingCalculator

logger = logging.getLogger(__name__)


@dataclass
class RatingSnapshot:
    """Result of one recalculation job."""

    rankings: list[Ranking]
    match_calculator: MatchRatingCalculator
    track_calculator: TrackRatingCalculator
    sessions_processed: int = 0
    users: list[UserInfo] = field(default_factory=list)


async def load_users(session: AsyncSession) -> list[UserInfo]:
    rows = (
        await session.execute(
            select(User).where(User.deleted_at.is_(None)).order_by(User.id)
        )
    ).scalars().all()
    return [UserInfo.from_user(u) for u in rows]


async def load_tracks(session: AsyncSession) -> list[TrackOut]:
    rows = (await session.execute(select(Track).order_by(Track.number))).scalars().all()
    return [TrackOut.model_validate(t) for t in rows]


async def load_track(session: AsyncSession, track_id: str) -> TrackOut:
    track = await session.get(Track, track_id)
    if track is None:
        raise TrackNotFound(track_id)
    return TrackOut.model_validate(track)


async def load_time_entries(
    session: AsyncSession, track_id: Optional[str] = None
) -> list[TimeEntry]:
    # Laps of soft-deleted users vanish with them, like their leaderboard rows.
    stmt = (
        select(TimeEntryRow)
        .join(User, User.id == TimeEntryRow.user_id)
        .where(TimeEntryRow.deleted_at.is_(None), User.deleted_at.is_(None))
    )
    if track_id is not None:
        stmt = stmt.where(TimeEntryRow.track_id == track_id)
    stmt = stmt.order_by(TimeEntryRow.created_at, TimeEntryRow.id)
    rows = (await session.execute(stmt)).scalars().all()
    return [TimeEntry.from_row(r) for r in rows]


async def load_matches(session: AsyncSession) -> list[Match]:
    rows = (
        await session.execute(
            select(MatchRow)
            .where(MatchRow.deleted_at.is_(None))
            .order_by(MatchRow.created_at, MatchRow.id)
        )
    ).scalars().all()
    return [Match.from_row(r) for r in rows]


async def load_leaderboard(
    session: AsyncSession,
    track_id: str,
    offset: int = 0,
    limit: Optional[int] = None,
) -> Leaderboard:
    track = await load_track(session, track_id)
    entries = await load_time_entries(session, track_id)
    users = await load_users(session)
    return build_leaderboard(track, entries, users, offset, limit)


async def load_leaderboards(
    session: AsyncSession, limit: int = 3
) -> list[Leaderboard]:
    """Top ``limit`` rows for every track that has at least one lap."""

    tracks = await load_tracks(session)
    entries = await load_time_entries(session)
    users = await load_users(session)
    driven = {e.track for e in entries}
    return [
        build_leaderboard(track, entries, users, 0, limit)
        for track in tracks
        if track.id in driven
    ]


async def load_track_summary(session: AsyncSession, track_id: str) -> TrackSummary:
    track = await load_track(session, track_id)
    entries = await load_time_entries(session, track_id)
    users = await load_users(session)
    return summarize_track(track, entries, users)


async def load_player_summary(session: AsyncSession, user_id: str) -> PlayerSummary:
    users = await load_users(session)
    user = next((u for u in users if u.id == user_id), None)
    if user is None:
        raise UserNotFound(user_id)
    tracks = await load_tracks(session)
    entries = await load_time_entries(session)
    return summarize_player(user, tracks, entries, users)


async def recalculate_ratings(
    session: AsyncSession, config: Optional[RatingConfig] = None
) -> RatingSnapshot:
    """Rebuild every rating from scratch.

    Sessions are replayed oldest first. Within a session the matches form one
    rating period and the laps are folded in chronologically. Records that
    belong to no session are replayed after the last session.
    """

    config = config or RatingConfig()
    users = await load_users(session)
    user_ids = [u.id for u in users]

    match_calculator = MatchRatingCalculator(user_ids, config)
    track_calculator = TrackRatingCalculator(config)

    race_sessions = (
        await session.execute(
            select(RaceSession)
            .where(RaceSession.deleted_at.is_(None))
            .order_by(RaceSession.date, RaceSession.id)
        )
    ).scalars().all()
    matches = await load_matches(session)
    entries = await load_time_entries(session)

    order: list[Optional[str]] = [s.id for s in race_sessions] + [None]
    known = set(order)
    matches_by_session: dict[Optional[str], list[Match]] = {key: [] for key in order}
    entries_by_session: dict[Optional[str], list[TimeEntry]] = {key: [] for key in order}
    for match in matches:
        matches_by_session[match.session if match.session in known else None].append(match)
    for entry in entries:
        entries_by_session[entry.session if entry.session in known else None].append(entry)

    for key in order:
        logger.debug("Processing session %s", key or "<none>")
        match_calculator.process_matches(matches_by_session[key])
        track_calculator.process_time_entries(entries_by_session[key])

    rankings = rank_users(user_ids, match_calculator, track_calculator, config)
    logger.info(
        "Recalculated ratings for %d user(s) over %d session(s)",
        len(user_ids),
        len(race_sessions),
    )
    return RatingSnapshot(
        rankings=rankings,
        match_calculator=match_calculator,
        track_calculator=track_calculator,
        sessions_processed=len(race_sessions),
        users=users,
    )
