from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..exceptions import ProblemDetail
from ..schemas import PlayerSummary
from ..services.recalculate import load_player_summary

router = APIRouter(prefix="/players", tags=["players"])


# GET /api/v0/players/{user_id}/summary
@router.get(
    "/{user_id}/summary",
    response_model=PlayerSummary,
    responses={404: {"model": ProblemDetail}},
)
async def player_summary(user_id: str, session: AsyncSession = Depends(get_session)):
    """Leaderboard positions of a user across every track they have driven."""
    return await load_player_summary(session, user_id)
