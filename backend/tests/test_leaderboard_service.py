import random

import pytest

from laprank.exceptions import InvalidInput, TrackNotFound, UserNotFound
from laprank.services import build_leaderboard, round10, summarize_player, summarize_track


USERS = [make_user("a", "Ada"), make_user("b", "Bo"), make_user("c", "Cy"), make_user("d", "Di")]


def test_best_lap_per_user_with_gaps() -> None:
    entries = [
        make_entry("e1", "a", 90_000, minutes=1),
        make_entry("e2", "b", 91_000, minutes=2),
        make_entry("e3", "a", 95_000, minutes=3),
    ]

    board = build_leaderboard(make_track(), entries, USERS)

    assert board.totalEntries == 2
    first, second = board.entries
    assert (first.id, first.user.id, first.duration) == ("e1", "a", 90_000)
    assert first.gap.position == 1
    assert first.gap.previous is None and first.gap.leader is None
    assert first.gap.next == 1_000
    assert (second.user.id, second.duration) == ("b", 91_000)
    assert second.gap.position == 2
    assert second.gap.previous == 1_000
    assert second.gap.leader == 1_000
    assert second.gap.next is None


def test_dnf_sorted_last_and_kept_only_without_timed_lap() -> None:
    entries = [
        make_entry("e1", "a", None, minutes=1),
        make_entry("e2", "a", 92_000, minutes=2),
        make_entry("e3", "b", None, minutes=3),
        make_entry("e4", "c", 91_000, minutes=4),
    ]

    board = build_leaderboard(make_track(), entries, USERS)

    assert [e.id for e in board.entries] == ["e4", "e2", "e3"]
    dnf = board.entries[-1]
    assert dnf.duration is None
    assert dnf.gap.position == 3
    assert dnf.gap.previous is None and dnf.gap.leader is None
    assert board.entries[1].gap.next is None


def test_ties_prefer_most_recent_entry() -> None:
    entries = [
        make_entry("old", "a", 90_000, minutes=1),
        make_entry("new", "b", 90_000, minutes=5),
    ]

    board = build_leaderboard(make_track(), entries, USERS)

    assert [e.id for e in board.entries] == ["new", "old"]
    assert board.entries[1].gap.previous == 0


def test_deleted_and_foreign_track_entries_are_ignored() -> None:
    entries = [
        make_entry("gone", "a", 80_000, deleted=True),
        make_entry("other", "b", 70_000, track="t2"),
        make_entry("kept", "c", 95_000),
    ]

    board = build_leaderboard(make_track(), entries, USERS)

    assert [e.id for e in board.entries] == ["kept"]
    assert board.totalEntries == 1


def test_gaps_are_rounded_to_ten_ms() -> None:
    entries = [
        make_entry("e1", "a", 90_004),
        make_entry("e2", "b", 90_019),
        make_entry("e3", "c", 90_030),
    ]

    board = build_leaderboard(make_track(), entries, USERS)

    assert board.entries[1].gap.previous == 20  # 15 ms rounds half up
    assert board.entries[2].gap.leader == 30  # 26 ms
    assert board.entries[0].gap.next == 20


def test_round10() -> None:
    assert round10(0) == 0
    assert round10(4) == 0
    assert round10(5) == 10
    assert round10(1_004.9) == 1_000
    assert round10(-15) == -20


def test_pagination_does_not_change_gaps() -> None:
    rng = random.Random(7)
    users = [make_user(f"u{i}") for i in range(12)]
    entries = [
        make_entry(f"e{i}", f"u{i % 12}", rng.choice([None, rng.randint(60_000, 70_000)]), minutes=i)
        for i in range(40)
    ]

    full = build_leaderboard(make_track(), entries, users)
    by_id = {e.id: e.gap for e in full.entries}

    for offset, limit in [(0, 3), (2, 4), (5, 100), (11, 1), (12, 5)]:
        page = build_leaderboard(make_track(), entries, users, offset, limit)
        assert page.totalEntries == full.totalEntries
        assert [e.id for e in page.entries] == [e.id for e in full.entries][offset : offset + limit]
        for entry in page.entries:
            assert entry.gap == by_id[entry.id]


def test_ordering_and_uniqueness_hold_for_random_boards() -> None:
    rng = random.Random(42)
    users = [make_user(f"u{i}") for i in range(8)]
    for _ in range(25):
        entries = [
            make_entry(
                f"e{i}",
                f"u{rng.randrange(8)}",
                rng.choice([None, rng.randint(1, 20) * 1_000]),
                minutes=rng.randrange(100),
            )
            for i in range(rng.randrange(30))
        ]
        board = build_leaderboard(make_track(), entries, users)

        ids = [e.user.id for e in board.entries]
        assert len(ids) == len(set(ids)) == board.totalEntries
        keys = [
            (e.duration is None, e.duration or 0, -e.createdAt.timestamp())
            for e in board.entries
        ]
        assert keys == sorted(keys)


def test_empty_board() -> None:
    board = build_leaderboard(make_track(), [], USERS)
    assert board.entries == []
    assert board.totalEntries == 0


def test_missing_track_raises() -> None:
    with pytest.raises(TrackNotFound):
        build_leaderboard(None, [], USERS)


def test_unknown_user_raises() -> None:
    with pytest.raises(UserNotFound) as exc:
        build_leaderboard(make_track(), [make_entry("e1", "ghost", 90_000)], USERS)
    assert "ghost" in exc.value.detail


def test_negative_paging_rejected() -> None:
    with pytest.raises(InvalidInput):
        build_leaderboard(make_track(), [], USERS, offset=-1)


def test_summarize_track() -> None:
    entries = [
        make_entry("e1", "a", 90_000),
        make_entry("e2", "a", 89_000),
        make_entry("e3", "b", 91_000),
        make_entry("e4", "c", None),
        make_entry("e5", "d", 92_000),
        make_entry("e6", "d", 85_000, deleted=True),
    ]
    users = USERS[:3] + [make_user("d", "Dina", lastName="Olsen")]

    summary = summarize_track(make_track(number=7, level="red"), entries, users)

    assert summary.number == 7 and summary.level == "red"
    assert summary.lapCount == 5
    assert [(t.user.id, t.duration) for t in summary.topTimes] == [
        ("a", 89_000),
        ("b", 91_000),
        ("d", 92_000),
    ]
    assert summary.topTimes[2].user.name == "Dina Olsen"


def test_summarize_player() -> None:
    tracks = [make_track("t1", 1), make_track("t2", 2), make_track("t3", 3)]
    entries = [
        make_entry("e1", "a", 90_000, track="t1"),
        make_entry("e2", "b", 80_000, track="t1"),
        make_entry("e3", "a", 70_000, track="t2"),
        make_entry("e4", "b", 75_000, track="t3"),
    ]

    summary = summarize_player(USERS[0], tracks, entries, USERS)

    assert summary.totalTracks == 2
    assert summary.averagePosition == pytest.approx(1.5)
    assert [(r.trackId, r.position) for r in summary.topResults] == [("t2", 1), ("t1", 2)]


def test_summarize_player_without_laps() -> None:
    summary = summarize_player(USERS[2], [make_track()], [], USERS)
    assert summary.totalTracks == 0
    assert summary.averagePosition is None
    assert summary.topResults == []
