"""Leaderboard builder: members + entries + pledges -> ranked standings.

Members are ranked by total hours logged inside the week window,
highest first. Ties keep the order members were passed in (stable sort),
and ranks are strictly sequential: 1, 2, 3, ... with no shared places.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from lilo.db.models import SleepEntry, User, WeeklyPledge
from lilo.sleep.streaks import calculate_streak
from lilo.weeks.week_utils import in_window


@dataclass
class LeaderboardEntry:
    """One member's standing for a week. Derived on every request."""

    user_id: str
    user: User
    total_hours: float
    streak: int
    tax_pledged: float
    rank: int
    entries_count: int


def build_leaderboard(
    members: Sequence[User],
    window: tuple[date, date | None],
    entries: Iterable[SleepEntry],
    pledges: Iterable[WeeklyPledge],
    min_streak_hours: float,
    today: date | None = None,
) -> list[LeaderboardEntry]:
    """Rank group members for one week.

    `entries` is every entry the members have ever logged: total hours
    only count the ones inside `window`, the streak uses all of them.
    """
    history: dict[str, list[SleepEntry]] = defaultdict(list)
    for entry in entries:
        history[entry.user_id].append(entry)

    pledged = {p.user_id: p.amount for p in pledges}

    rows: list[LeaderboardEntry] = []
    for member in members:
        user_history = history.get(member.id, [])
        this_week = [e for e in user_history if in_window(e.wake_date, window)]
        rows.append(LeaderboardEntry(
            user_id=member.id,
            user=member,
            total_hours=sum(e.hours for e in this_week),
            streak=calculate_streak(user_history, min_streak_hours, today=today),
            tax_pledged=pledged.get(member.id, 0.0),
            rank=0,
            entries_count=len(this_week),
        ))

    ranked = sorted(rows, key=lambda r: r.total_hours, reverse=True)
    for idx, row in enumerate(ranked):
        row.rank = idx + 1
    return ranked


def pick_outcome(leaderboard: Sequence[LeaderboardEntry]) -> tuple[str | None, str | None]:
    """Get (winner_id, loser_id) for a closing week.

    The winner is rank 1. The loser, the member who owes the sleep tax,
    is the last rank and is only named when at least two members ranked.
    """
    if not leaderboard:
        return None, None
    winner = leaderboard[0].user_id
    loser = leaderboard[-1].user_id if len(leaderboard) > 1 else None
    return winner, loser
