"""Tests for the seed placement table."""

from ttdraw.models import Player
from ttdraw.seeding import BRACKET_SIZE, SEED_POSITIONS, place_seeds, select_seeds


def seeded(seed_ranks):
    return [
        Player(id=100 + rank, firstname=f"Seed{rank}", lastname="Test", category="U18", seed_rank=rank)
        for rank in seed_ranks
    ]


def test_table_is_a_permutation():
    assert sorted(SEED_POSITIONS) == list(range(BRACKET_SIZE))


def test_top_two_seeds_on_opposite_ends():
    slots = place_seeds(seeded([1, 2]))

    assert slots[0] == 101
    assert slots[15] == 102
    assert sum(1 for s in slots if s is not None) == 2


def test_no_seeds_leaves_bracket_empty():
    assert place_seeds([]) == [None] * 16


def test_prefix_of_table_used():
    slots = place_seeds(seeded([1, 2, 3, 4, 5]))

    assert slots[0] == 101
    assert slots[15] == 102
    assert slots[7] == 103
    assert slots[8] == 104
    assert slots[3] == 105
    assert sum(1 for s in slots if s is not None) == 5


def test_more_than_sixteen_seeds():
    """Only the first 16 seeds by ascending rank get a slot."""
    players = list(reversed(seeded(range(1, 21))))  # 20 seeds, worst first

    seeds = select_seeds(players)
    slots = place_seeds(seeds)

    assert [p.seed_rank for p in seeds] == list(range(1, 17))
    assert sorted(s for s in slots if s is not None) == [100 + r for r in range(1, 17)]
    for rank in range(17, 21):
        assert 100 + rank not in slots


def test_select_seeds_ignores_unseeded():
    players = seeded([3, 1]) + [Player(id=1, firstname="X", lastname="Y", category="U18")]

    seeds = select_seeds(players)

    assert [p.seed_rank for p in seeds] == [1, 3]
