"""Player registration, payment approval and group assignment."""

import logging
from typing import Optional, Union

from ttdraw.exceptions import InvalidInputError, NotFoundError
from ttdraw.models import Player
from ttdraw.storage import PlayerRepository

logger = logging.getLogger(__name__)

# Registration forms send "-" for "not applicable"
NONE_MARKER = "-"


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    if not value or value == NONE_MARKER:
        return None
    return value


def parse_seed_rank(value: Union[str, int, None]) -> Optional[int]:
    """Parse a seed rank from form input.

    Examples:
        >>> parse_seed_rank("3")
        3
        >>> parse_seed_rank("-") is None
        True

    Raises:
        InvalidInputError: If the value is not a positive integer
    """
    if isinstance(value, int) and not isinstance(value, bool):
        seed_rank = value
    else:
        cleaned = _clean_optional(value)
        if cleaned is None:
            return None
        try:
            seed_rank = int(cleaned)
        except ValueError:
            raise InvalidInputError(f"Seed rank must be a number, got {value!r}")

    if seed_rank < 1:
        raise InvalidInputError(f"Seed rank must be positive, got {seed_rank}")
    return seed_rank


def register_player(
    player_repo: PlayerRepository,
    firstname: str,
    lastname: str,
    category: str,
    affiliation: Optional[str] = None,
    seed_rank: Union[str, int, None] = None,
) -> Player:
    """Register a new player (unpaid, without group).

    Raises:
        InvalidInputError: If a name or the category is empty, or the seed
            rank is not a positive integer
    """
    for field_name, value in (("firstname", firstname), ("lastname", lastname), ("category", category)):
        if not value or not str(value).strip():
            raise InvalidInputError(f"Missing required field '{field_name}'")

    player = player_repo.create(
        Player(
            id=0,  # Will be set by database
            firstname=firstname.strip(),
            lastname=lastname.strip(),
            category=category.strip(),
            affiliation=_clean_optional(affiliation),
            seed_rank=parse_seed_rank(seed_rank),
            is_paid=False,
        )
    )
    logger.info("Registered player %d: %s (%s)", player.id, player.full_name, player.category)
    return player


def search_payments(player_repo: PlayerRepository, query: str) -> list[dict]:
    """Payment status lookup by (partial) first or last name."""
    if not query or not query.strip():
        return []
    return [
        {"firstname": p.firstname, "lastname": p.lastname, "is_paid": p.is_paid}
        for p in player_repo.find_players(name_query=query.strip())
    ]


def list_unpaid(player_repo: PlayerRepository) -> list[Player]:
    return player_repo.find_players(is_paid=False)


def approve_player(player_repo: PlayerRepository, player_id: int) -> Player:
    """Mark a player's registration as paid.

    Raises:
        NotFoundError: If the player does not exist
    """
    player = player_repo.update_player(player_id, is_paid=True)
    if player is None:
        raise NotFoundError(f"Player {player_id} not found")
    logger.info("Approved payment for player %d", player_id)
    return player


def available_for_grouping(player_repo: PlayerRepository) -> list[Player]:
    """Paid players that have not been put in a group yet."""
    return player_repo.find_players(is_paid=True, grouped=False)


def grouped_players(player_repo: PlayerRepository) -> dict[str, dict[str, list[Player]]]:
    """Grouped players nested as category -> group name -> players."""
    result: dict[str, dict[str, list[Player]]] = {}
    for player in player_repo.find_players(grouped=True):
        result.setdefault(player.category, {}).setdefault(player.group_name, []).append(player)
    return result


def assign_groups(player_repo: PlayerRepository, assignments: list[tuple[int, str]]) -> list[Player]:
    """Put players into groups.

    Args:
        player_repo: Player storage
        assignments: (player_id, group_name) pairs

    Returns:
        Updated players

    Raises:
        InvalidInputError: If a group name is empty
        NotFoundError: If a player does not exist
    """
    updated = []
    for player_id, group_name in assignments:
        group_name = _clean_optional(group_name)
        if group_name is None:
            raise InvalidInputError(f"Missing group name for player {player_id}")
        player = player_repo.update_player(player_id, group_name=group_name)
        if player is None:
            raise NotFoundError(f"Player {player_id} not found")
        updated.append(player)
    logger.info("Assigned %d players to groups", len(updated))
    return updated
