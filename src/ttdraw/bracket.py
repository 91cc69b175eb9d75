"""Knockout bracket: skeleton, qualifier selection and first-round pairing."""

import logging
from collections.abc import Callable, Iterator
from typing import Optional

from ttdraw.models import (
    KNOCKOUT_ROUNDS,
    BracketEntrant,
    GroupStanding,
    Match,
    MatchStatus,
    PairingResult,
    Player,
    RoundType,
)
from ttdraw.seeding import BRACKET_SIZE

logger = logging.getLogger(__name__)

# Knockout match_order values start above this so they never collide with
# group matches and sort after them.
KNOCKOUT_ORDER_OFFSET = 1000

MATCHES_PER_ROUND = {
    RoundType.ROUND_OF_16: 8,
    RoundType.QUARTERFINAL: 4,
    RoundType.SEMIFINAL: 2,
    RoundType.FINAL: 1,
}


def build_knockout_skeleton(
    tournament_id: int,
    seed_slots: list[Optional[int]],
    match_order: Iterator[int],
) -> list[Match]:
    """Create the empty knockout matches for one tournament.

    Round of 16 match m takes bracket slots 2m and 2m+1, so seeded slots
    come pre-filled and the rest stay None until qualifiers are known. All
    later rounds start empty.

    Args:
        tournament_id: Tournament the matches belong to
        seed_slots: 16 bracket slots from seeding.place_seeds
        match_order: Sequence supplying match_order values

    Returns:
        List of 15 unsaved Match objects in round order
    """
    if len(seed_slots) != BRACKET_SIZE:
        raise ValueError(f"Expected {BRACKET_SIZE} bracket slots, got {len(seed_slots)}")

    matches = []
    for round_type in KNOCKOUT_ROUNDS:
        for m in range(MATCHES_PER_ROUND[round_type]):
            if round_type == RoundType.ROUND_OF_16:
                player1_id, player2_id = seed_slots[2 * m], seed_slots[2 * m + 1]
            else:
                player1_id, player2_id = None, None
            matches.append(
                Match(
                    id=0,  # Will be set by database
                    tournament_id=tournament_id,
                    round=round_type,
                    player1_id=player1_id,
                    player2_id=player2_id,
                    match_order=next(match_order),
                    status=MatchStatus.PENDING,
                )
            )
    return matches


def select_qualifiers(
    standings: dict[str, list[GroupStanding]],
    rules: dict[str, int],
    players: dict[int, Player],
) -> list[BracketEntrant]:
    """Take the top finishers of each group.

    Seeded players are skipped since they already hold a bracket place.

    Args:
        standings: Ranked standings per group
        rules: Qualifier count per group
        players: Player lookup by id

    Returns:
        Qualifiers sorted by points (descending), then group rank
    """
    qualifiers = []
    for group_name, group_standings in standings.items():
        count = rules.get(group_name, 0)
        eligible = [
            s for s in group_standings
            if s.player_id in players and not players[s.player_id].is_seeded
        ]
        for standing in eligible[:count]:
            player = players[standing.player_id]
            qualifiers.append(
                BracketEntrant(
                    player_id=player.id,
                    affiliation=player.affiliation,
                    group_name=group_name,
                    group_rank=standing.rank,
                    points=standing.points,
                )
            )

    qualifiers.sort(key=lambda q: (-q.points, q.group_rank))
    return qualifiers


def seed_entrants(seeds: list[Player]) -> list[BracketEntrant]:
    """Bracket entrants for seeded players, in seed order."""
    return [
        BracketEntrant(
            player_id=p.id,
            affiliation=p.affiliation,
            group_name=p.group_name,
            seed_rank=p.seed_rank,
        )
        for p in sorted(seeds, key=lambda p: p.seed_rank)
    ]


def _different_affiliation_and_group(a: BracketEntrant, b: BracketEntrant) -> bool:
    return a.affiliation != b.affiliation and a.group_name != b.group_name


def _different_affiliation(a: BracketEntrant, b: BracketEntrant) -> bool:
    return a.affiliation != b.affiliation


def _any_opponent(a: BracketEntrant, b: BracketEntrant) -> bool:
    return True


PAIRING_PASSES: list[tuple[str, Callable[[BracketEntrant, BracketEntrant], bool]]] = [
    ("strict", _different_affiliation_and_group),
    ("relaxed", _different_affiliation),
    ("fallback", _any_opponent),
]


def pair_entrants(entrants: list[BracketEntrant]) -> PairingResult:
    """Pair bracket entrants, avoiding rematches where possible.

    Three greedy passes over the list, each only looking at players left
    unpaired by the previous passes:
    1. strict: opponent has a different affiliation AND origin group
    2. relaxed: opponent has a different affiliation
    3. fallback: any opponent
    Each player takes the first later unpaired player that satisfies the
    pass. Pairs come out in the order their first player was matched.

    Args:
        entrants: Seeds (by seed rank) followed by qualifiers

    Returns:
        PairingResult; with an odd number of entrants one stays unpaired
    """
    used = [False] * len(entrants)
    result = PairingResult()

    for pass_name, compatible in PAIRING_PASSES:
        for i, entrant in enumerate(entrants):
            if used[i]:
                continue
            for j in range(i + 1, len(entrants)):
                if not used[j] and compatible(entrant, entrants[j]):
                    used[i] = used[j] = True
                    result.pairs.append((entrant.player_id, entrants[j].player_id))
                    logger.debug(
                        "%s pass: paired %d with %d", pass_name, entrant.player_id, entrants[j].player_id
                    )
                    break

    result.unpaired = [e.player_id for e, is_used in zip(entrants, used) if not is_used]
    return result
