"""Standings calculator for the group stage."""

from dataclasses import replace

from ttdraw.models import GroupStanding, Match, RoundType

WIN_POINTS = 2
# Awarded to the loser only if they took at least one game
CONSOLATION_POINTS = 1


def _apply_match(
    table: dict[int, GroupStanding], player_id: int, points: int, wins: int, won: int, lost: int
) -> dict[int, GroupStanding]:
    current = table[player_id]
    updated = replace(
        current,
        points=current.points + points,
        wins=current.wins + wins,
        games_won=current.games_won + won,
        games_lost=current.games_lost + lost,
    )
    return {**table, player_id: updated}


def _match_points(match: Match, player_id: int, own_score: int) -> tuple[int, int]:
    """(points, wins) earned by one side of a completed match."""
    if match.winner_id is None:
        return 0, 0
    if match.winner_id == player_id:
        return WIN_POINTS, 1
    if own_score > 0:
        return CONSOLATION_POINTS, 0
    return 0, 0


def rank_group(standings: list[GroupStanding]) -> list[GroupStanding]:
    """Sort a group's standings and assign ranks.

    Order (descending): points, wins, game ratio. Remaining ties keep their
    incoming order.
    """
    ordered = sorted(
        standings,
        key=lambda s: (s.points, s.wins, s.game_ratio),
        reverse=True,
    )
    return [replace(s, rank=position) for position, s in enumerate(ordered, start=1)]


def calculate_standings(matches: list[Match]) -> dict[str, list[GroupStanding]]:
    """Calculate ranked standings for every group.

    Scoring per completed match:
    - Winner: 2 points and 1 win
    - Loser: 1 point if they scored more than zero games, else nothing
    - Tie (no winner recorded): no points for either side
    Games won/lost accumulate the raw scores in every case.

    Only completed group-round matches are counted; anything else in
    ``matches`` is ignored. The input list is not modified.

    Args:
        matches: Matches of one tournament

    Returns:
        Mapping of group name to standings sorted by rank (1 = best),
        groups and tied players in encounter order
    """
    tables: dict[str, dict[int, GroupStanding]] = {}

    for match in matches:
        if match.round != RoundType.GROUP or not match.is_completed:
            continue
        if match.player1_id is None or match.player2_id is None:
            continue

        group_name = match.group_name or ""
        table = tables.get(group_name, {})
        for player_id in (match.player1_id, match.player2_id):
            if player_id not in table:
                table = {**table, player_id: GroupStanding(player_id=player_id, group_name=group_name)}

        p1_score = match.player1_score or 0
        p2_score = match.player2_score or 0

        points, wins = _match_points(match, match.player1_id, p1_score)
        table = _apply_match(table, match.player1_id, points, wins, p1_score, p2_score)
        points, wins = _match_points(match, match.player2_id, p2_score)
        table = _apply_match(table, match.player2_id, points, wins, p2_score, p1_score)

        tables = {**tables, group_name: table}

    return {name: rank_group(list(table.values())) for name, table in tables.items()}
