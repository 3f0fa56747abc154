from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..exceptions import ProblemDetail
from ..schemas import LapTimeOut, TrackOut, TrackSummary
from ..services.recalculate import load_track_summary, load_tracks
from ..time_utils import format_lap_time, parse_lap_time

router = APIRouter(tags=["tracks"])


# GET /api/v0/tracks
@router.get("/tracks", response_model=list[TrackOut])
async def list_tracks(session: AsyncSession = Depends(get_session)):
    return await load_tracks(session)


# GET /api/v0/tracks/{track_id}/summary
@router.get(
    "/tracks/{track_id}/summary",
    response_model=TrackSummary,
    responses={404: {"model": ProblemDetail}},
)
async def track_summary(track_id: str, session: AsyncSession = Depends(get_session)):
    return await load_track_summary(session, track_id)


# GET /api/v0/laptimes/parse?text=1:23.45
@router.get(
    "/laptimes/parse",
    response_model=LapTimeOut,
    responses={422: {"model": ProblemDetail}},
)
async def parse_lap_time_endpoint(text: Annotated[str, Query(max_length=32)]):
    duration = parse_lap_time(text)
    return LapTimeOut(text=format_lap_time(duration), duration=duration)
