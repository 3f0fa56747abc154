import os
import sys
import asyncio
from datetime import datetime, timedelta

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Honour any externally provided DATABASE_URL but fall back to an in-memory
# SQLite database so local runs remain isolated.
DEFAULT_DB_URL = os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

# Register every model with the declarative Base before create_all runs.
from laprank import db, models  # noqa: E402,F401
from laprank.cache import ratings_cache  # noqa: E402
from laprank.limiter import limiter  # noqa: E402
from laprank.schemas import TimeEntry, TrackOut, UserInfo  # noqa: E402


@pytest.fixture(scope="session")
def session_loop():
    """Single event loop for all sync fixtures that need to run async DB code."""

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


@pytest.fixture(autouse=True, scope="session")
def ensure_database(session_loop):
    """Ensure the test database starts clean and honours DATABASE_URL."""

    mp = pytest.MonkeyPatch()
    desired_url = os.getenv("DATABASE_URL") or DEFAULT_DB_URL
    mp.setenv("DATABASE_URL", desired_url)

    if desired_url.startswith("sqlite") and ":memory:" not in desired_url:
        path = desired_url.split("///")[-1]
        if os.path.exists(path):
            os.remove(path)

    session_loop.run_until_complete(db.dispose_engine())
    yield
    session_loop.run_until_complete(db.dispose_engine())
    mp.undo()


async def _reset_schema(engine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(db.Base.metadata.drop_all)
        await conn.run_sync(db.Base.metadata.create_all)


@pytest.fixture(autouse=True)
def reset_schema(session_loop):
    """Reset the schema and in-process caches before each test."""

    session_loop.run_until_complete(ratings_cache.clear())
    limiter.reset()
    session_loop.run_until_complete(_reset_schema(db.get_engine()))
    yield


BASE_TIME = datetime(2024, 5, 1, 18, 0, 0)


def make_entry(
    entry_id: str,
    user: str,
    duration,
    *,
    track: str = "t1",
    minutes: int = 0,
    session: str | None = None,
    deleted: bool = False,
) -> TimeEntry:
    """Build a time entry created ``minutes`` after ``BASE_TIME``."""

    created = BASE_TIME + timedelta(minutes=minutes)
    return TimeEntry(
        id=entry_id,
        user=user,
        track=track,
        session=session,
        duration=duration,
        amount=0.5,
        createdAt=created,
        deletedAt=created if deleted else None,
    )


def make_user(user_id: str, first_name: str | None = None, **kwargs) -> UserInfo:
    return UserInfo(id=user_id, firstName=first_name or user_id.upper(), **kwargs)


def make_track(track_id: str = "t1", number: int = 1, **kwargs) -> TrackOut:
    kwargs.setdefault("level", "green")
    kwargs.setdefault("type", "canyon")
    return TrackOut(id=track_id, number=number, **kwargs)


# Expose builders to test modules without a package import.
import builtins  # noqa: E402

builtins.make_entry = make_entry
builtins.make_user = make_user
builtins.make_track = make_track
