"""Group stage builder: round robin fixtures for every group."""

from collections.abc import Iterable, Iterator

from ttdraw.models import Match, MatchStatus, Player, RoundType


def match_order_sequence(start: int = 1) -> Iterator[int]:
    """Yield increasing match_order values starting at ``start``.

    Examples:
        >>> seq = match_order_sequence(1)
        >>> next(seq), next(seq)
        (1, 2)
    """
    order = start
    while True:
        yield order
        order += 1


def partition_by_group(players: Iterable[Player]) -> dict[str, list[Player]]:
    """Group players by group name, keeping first-appearance order.

    Players without a group name are ignored.

    Args:
        players: Players in scan order (usually registration order)

    Returns:
        Ordered mapping of group name to its players
    """
    groups: dict[str, list[Player]] = {}
    for player in players:
        if not player.group_name:
            continue
        groups.setdefault(player.group_name, []).append(player)
    return groups


def generate_round_robin_fixtures(group_size: int) -> list[tuple[int, int]]:
    """Generate every pairing for a round robin group.

    Each unordered pair of distinct players appears exactly once, so a group
    of n players gets n*(n-1)/2 fixtures. Groups of 0 or 1 player get none.

    Args:
        group_size: Number of players in the group

    Returns:
        List of (player_num1, player_num2) tuples (1-indexed)

    Examples:
        >>> generate_round_robin_fixtures(3)
        [(1, 2), (1, 3), (2, 3)]
        >>> generate_round_robin_fixtures(1)
        []
    """
    if group_size < 0:
        raise ValueError(f"Group size cannot be negative, got {group_size}")

    fixtures = []
    for i in range(1, group_size + 1):
        for j in range(i + 1, group_size + 1):
            fixtures.append((i, j))
    return fixtures


def create_group_matches(
    tournament_id: int,
    groups: dict[str, list[Player]],
    match_order: Iterator[int],
) -> list[Match]:
    """Create pending group-round matches for all groups.

    Args:
        tournament_id: Tournament the matches belong to
        groups: Ordered mapping of group name to players (see partition_by_group)
        match_order: Sequence supplying match_order values, consumed in
            group iteration order

    Returns:
        List of unsaved Match objects (id=0)
    """
    matches = []
    for group_name, group_players in groups.items():
        for p1_num, p2_num in generate_round_robin_fixtures(len(group_players)):
            matches.append(
                Match(
                    id=0,  # Will be set by database
                    tournament_id=tournament_id,
                    round=RoundType.GROUP,
                    group_name=group_name,
                    player1_id=group_players[p1_num - 1].id,
                    player2_id=group_players[p2_num - 1].id,
                    match_order=next(match_order),
                    status=MatchStatus.PENDING,
                )
            )
    return matches
