"""Tie-break ordering and competition ranking for standings.

Order: total points desc, games played asc, goal difference desc, goals for
desc. Team id asc is the final key so the order is total, but it does not
split ranks: teams equal on the four sporting keys share a rank and the
next group's rank skips past them ("1224" ranking).
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

from puckboard.models.standings import StandingEntry

T = TypeVar("T")

TieBreakKey = tuple[int, int, int, int]


def tie_break_key(entry: StandingEntry) -> TieBreakKey:
    """Sporting sort key; smaller sorts first."""
    return (
        -entry.total_points,
        entry.games_played,
        -entry.goal_difference,
        -entry.goals_for,
    )


def competition_ranks(items: Sequence[T], key: Callable[[T], object]) -> list[int]:
    """Standard competition ranks for already-sorted *items*.

    Items with equal ``key`` share a rank; the next distinct group is ranked
    1 + the number of items strictly ahead of it.
    """
    ranks: list[int] = []
    previous: object = None
    for index, item in enumerate(items):
        current = key(item)
        if index == 0 or current != previous:
            ranks.append(index + 1)
        else:
            ranks.append(ranks[-1])
        previous = current
    return ranks


def rank_standings(entries: Sequence[StandingEntry]) -> list[StandingEntry]:
    """Return *entries* sorted by the tie-break chain with ``rank`` filled in.

    Input entries are not mutated.
    """
    ordered = sorted(entries, key=lambda e: (tie_break_key(e), e.team_id))
    ranks = competition_ranks(ordered, tie_break_key)
    return [e.model_copy(update={"rank": r}) for e, r in zip(ordered, ranks, strict=True)]
