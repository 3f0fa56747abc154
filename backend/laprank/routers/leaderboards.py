from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..exceptions import ProblemDetail
from ..schemas import Leaderboard, LeaderboardsOut
from ..services.recalculate import load_leaderboard, load_leaderboards

# Resource-only prefix; no /api or /api/v0 here
router = APIRouter(prefix="/leaderboards", tags=["leaderboards"])


# GET /api/v0/leaderboards?limit=3
@router.get("", response_model=LeaderboardsOut)
async def leaderboard_summaries(
    limit: Annotated[int, Query(ge=0, le=100, description="Rows per track")] = 3,
    session: AsyncSession = Depends(get_session),
):
    """Return the top rows of every track that has lap times."""
    return LeaderboardsOut(leaderboards=await load_leaderboards(session, limit))


# GET /api/v0/leaderboards/{track_id}?offset=0&limit=100
@router.get(
    "/{track_id}",
    response_model=Leaderboard,
    responses={404: {"model": ProblemDetail}},
)
async def leaderboard(
    track_id: str,
    offset: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=0, le=500)] = 100,
    session: AsyncSession = Depends(get_session),
):
    return await load_leaderboard(session, track_id, offset, limit)
