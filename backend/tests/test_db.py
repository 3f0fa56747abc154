import pytest

from laprank.db import normalize_database_url


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("postgresql://u:p@db/laprank", "postgresql+asyncpg://u:p@db/laprank"),
        ("postgres://u:p@db/laprank", "postgresql+asyncpg://u:p@db/laprank"),
        ("sqlite:///./laprank.db", "sqlite+aiosqlite:///./laprank.db"),
        ("sqlite+aiosqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
        ("postgresql+asyncpg://db/laprank", "postgresql+asyncpg://db/laprank"),
    ],
)
def test_normalize_database_url(raw, expected):
    assert normalize_database_url(raw) == expected
