"""Seed placement table for the 16-slot knockout bracket."""

from typing import Optional

from ttdraw.models import Player

BRACKET_SIZE = 16

# Bracket leaf slot (0-indexed) for seed rank k at index k-1. Keeps the top
# seeds as far apart as possible: 1 and 2 can only meet in the final, 1-4 not
# before the semis, 1-8 not before the quarters.
SEED_POSITIONS = [0, 15, 7, 8, 3, 12, 4, 11, 1, 14, 6, 9, 2, 13, 5, 10]


def select_seeds(players: list[Player], limit: int = BRACKET_SIZE) -> list[Player]:
    """Return seeded players sorted by seed rank, capped at ``limit``.

    Args:
        players: Players of one category (seeded or not)
        limit: Maximum number of seeds that fit the bracket

    Returns:
        Seeded players, seed 1 first
    """
    seeded = [p for p in players if p.seed_rank is not None]
    seeded.sort(key=lambda p: p.seed_rank)
    return seeded[:limit]


def place_seeds(seeds: list[Player]) -> list[Optional[int]]:
    """Place seeds into the bracket leaf slots.

    The k-th seed in ``seeds`` (already sorted by seed rank) occupies slot
    SEED_POSITIONS[k-1]. Seeds beyond the 16th are ignored.

    Args:
        seeds: Seeded players sorted by ascending seed rank

    Returns:
        List of 16 player ids, None for slots left for qualifiers

    Examples:
        >>> place_seeds([]) == [None] * 16
        True
    """
    slots: list[Optional[int]] = [None] * BRACKET_SIZE
    for position, player in zip(SEED_POSITIONS, seeds):
        slots[position] = player.id
    return slots
