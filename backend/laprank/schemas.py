from typing import List, Literal, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

TrackLevel = Literal["white", "green", "blue", "red", "black", "custom"]
TrackType = Literal["canyon", "valley", "lagoon", "stadium", "drift"]
UserRole = Literal["admin", "moderator", "user"]
MatchStatus = Literal["planned", "ongoing", "completed", "cancelled"]

TRACK_LEVELS: tuple[str, ...] = ("white", "green", "blue", "red", "black", "custom")
TRACK_TYPES: tuple[str, ...] = ("canyon", "valley", "lagoon", "stadium", "drift")


class TrackOut(BaseModel):
    id: str
    number: int
    level: TrackLevel
    type: TrackType

    model_config = ConfigDict(from_attributes=True)


class UserInfo(BaseModel):
    """Public projection of a user.

    Built from the ORM ``User`` row but never carries password material; the
    two types are not interchangeable.
    """

    id: str
    firstName: str
    lastName: Optional[str] = None
    shortName: Optional[str] = None
    role: UserRole = "user"

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_user(cls, user) -> "UserInfo":
        return cls(
            id=user.id,
            firstName=user.first_name,
            lastName=user.last_name,
            shortName=user.short_name,
            role=user.role,
        )

    @property
    def display_name(self) -> str:
        if self.shortName:
            return self.shortName
        return " ".join(p for p in (self.firstName, self.lastName) if p)


class TimeEntry(BaseModel):
    id: str
    user: str
    track: str
    session: Optional[str] = None
    # None means the lap was not finished (DNF)
    duration: Optional[int] = None
    amount: float = 0.5
    comment: Optional[str] = None
    createdAt: datetime
    updatedAt: Optional[datetime] = None
    deletedAt: Optional[datetime] = None

    @classmethod
    def from_row(cls, row) -> "TimeEntry":
        return cls(
            id=row.id,
            user=row.user_id,
            track=row.track_id,
            session=row.session_id,
            duration=row.duration_ms,
            amount=row.amount,
            comment=row.comment,
            createdAt=row.created_at,
            updatedAt=row.updated_at,
            deletedAt=row.deleted_at,
        )


class Match(BaseModel):
    id: str
    user1: Optional[str] = None
    user2: Optional[str] = None
    winner: Optional[str] = None
    status: MatchStatus = "planned"
    track: Optional[str] = None
    session: Optional[str] = None
    stage: Optional[str] = None
    createdAt: Optional[datetime] = None

    @classmethod
    def from_row(cls, row) -> "Match":
        return cls(
            id=row.id,
            user1=row.user1_id,
            user2=row.user2_id,
            winner=row.winner_id,
            status=row.status,
            track=row.track_id,
            session=row.session_id,
            stage=row.stage,
            createdAt=row.created_at,
        )


class LeaderboardGap(BaseModel):
    position: int
    previous: Optional[int] = None
    leader: Optional[int] = None
    next: Optional[int] = None


class LeaderboardEntry(BaseModel):
    id: str
    duration: Optional[int] = None
    amount: float
    comment: Optional[str] = None
    createdAt: datetime
    updatedAt: Optional[datetime] = None
    deletedAt: Optional[datetime] = None
    user: UserInfo
    gap: LeaderboardGap


class Leaderboard(BaseModel):
    track: TrackOut
    totalEntries: int
    entries: List[LeaderboardEntry]


class LeaderboardsOut(BaseModel):
    leaderboards: List[Leaderboard]


class TopTimeUser(BaseModel):
    id: str
    name: str


class TopTime(BaseModel):
    user: TopTimeUser
    duration: int


class TrackSummary(BaseModel):
    id: str
    number: int
    level: TrackLevel
    type: TrackType
    lapCount: int
    topTimes: List[TopTime]


class PlayerTopResult(BaseModel):
    trackId: str
    trackNumber: int
    trackLevel: TrackLevel
    trackType: TrackType
    position: int
    duration: Optional[int] = None


class PlayerSummary(BaseModel):
    user: UserInfo
    averagePosition: Optional[float] = None
    totalTracks: int
    topResults: List[PlayerTopResult]


class Ranking(BaseModel):
    user: str
    ranking: int = Field(..., ge=1)
    totalRating: float
    matchRating: float
    trackRating: float


class RankingsOut(BaseModel):
    rankings: List[Ranking]


class Odds(BaseModel):
    p1Odds: float
    p2Odds: float


class OddsOut(BaseModel):
    user1: str
    user2: str
    probability: float
    odds: Odds


class LapTimeOut(BaseModel):
    text: str
    duration: int
