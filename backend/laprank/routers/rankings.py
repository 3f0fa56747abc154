from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import ratings_cache
from ..config import load_rating_config
from ..db import get_session
from ..exceptions import ProblemDetail, http_problem
from ..limiter import RANKINGS_RATE_LIMIT, limiter
from ..schemas import OddsOut, RankingsOut
from ..services.recalculate import RatingSnapshot, recalculate_ratings

router = APIRouter(prefix="/rankings", tags=["rankings"])

SNAPSHOT_KEY = "snapshot"


async def get_snapshot(session: AsyncSession, refresh: bool = False) -> RatingSnapshot:
    """Return the cached rating snapshot, rebuilding it when stale."""

    async def build() -> RatingSnapshot:
        return await recalculate_ratings(session, load_rating_config())

    return await ratings_cache.get_or_build(SNAPSHOT_KEY, build, refresh=refresh)


# GET /api/v0/rankings
@router.get(
    "",
    response_model=RankingsOut,
    responses={429: {"model": ProblemDetail}},
)
@limiter.limit(RANKINGS_RATE_LIMIT)
async def rankings(
    request: Request,
    refresh: Annotated[
        bool, Query(description="Recalculate instead of serving the cached table")
    ] = False,
    session: AsyncSession = Depends(get_session),
):
    snapshot = await get_snapshot(session, refresh)
    return RankingsOut(rankings=snapshot.rankings)


# GET /api/v0/rankings/odds?user1=...&user2=...
@router.get(
    "/odds",
    response_model=OddsOut,
    responses={404: {"model": ProblemDetail}},
)
async def odds(
    user1: Annotated[str, Query(min_length=1)],
    user2: Annotated[str, Query(min_length=1)],
    session: AsyncSession = Depends(get_session),
):
    snapshot = await get_snapshot(session)
    calculator = snapshot.match_calculator
    probability = calculator.predict(user1, user2)
    match_odds = calculator.get_odds(user1, user2)
    if probability is None or match_odds is None:
        raise http_problem(404, "one or both users have no match rating", "rating_not_found")
    return OddsOut(user1=user1, user2=user2, probability=probability, odds=match_odds)
