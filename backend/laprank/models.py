from sqlalchemy import (
    Column,
    String,
    DateTime,
    ForeignKey,
    Integer,
    Float,
    Text,
    Index,
)
from sqlalchemy.sql import func
from .db import Base


class User(Base):
    __tablename__ = "user"
    id = Column(String, primary_key=True)
    email = Column(String, unique=True, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=True)
    short_name = Column(String, unique=True, nullable=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="user")  # "admin" | "moderator" | "user"
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    deleted_at = Column(DateTime, nullable=True)


class Track(Base):
    __tablename__ = "track"
    id = Column(String, primary_key=True)
    number = Column(Integer, nullable=False, unique=True)
    level = Column(String, nullable=False)
    type = Column(String, nullable=False)


class RaceSession(Base):
    __tablename__ = "race_session"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    date = Column(DateTime, nullable=False)
    location = Column(String, nullable=True)
    deleted_at = Column(DateTime, nullable=True)


class TimeEntry(Base):
    __tablename__ = "time_entry"
    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("user.id"), nullable=False)
    track_id = Column(String, ForeignKey("track.id"), nullable=False)
    session_id = Column(String, ForeignKey("race_session.id"), nullable=True)
    duration_ms = Column(Integer, nullable=True)  # NULL = did not finish
    amount = Column(Float, nullable=False, default=0.5)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_time_entry_track_id", "track_id"),
        Index("ix_time_entry_session_id", "session_id"),
    )


class Match(Base):
    __tablename__ = "match"
    id = Column(String, primary_key=True)
    user1_id = Column(String, ForeignKey("user.id"), nullable=True)
    user2_id = Column(String, ForeignKey("user.id"), nullable=True)
    winner_id = Column(String, ForeignKey("user.id"), nullable=True)
    track_id = Column(String, ForeignKey("track.id"), nullable=True)
    session_id = Column(String, ForeignKey("race_session.id"), nullable=True)
    stage = Column(String, nullable=True)
    status = Column(String, nullable=False, default="planned")
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    deleted_at = Column(DateTime, nullable=True)
