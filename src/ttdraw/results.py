"""Match result resolver."""

import logging
from typing import Optional

from ttdraw.exceptions import InvalidInputError, NotFoundError
from ttdraw.models import Match, MatchStatus, RoundType, TournamentStatus
from ttdraw.storage import MatchRepository, TournamentRepository

logger = logging.getLogger(__name__)


def resolve_winner(
    player1_id: Optional[int],
    player2_id: Optional[int],
    player1_score: int,
    player2_score: int,
) -> Optional[int]:
    """Winner by score: higher score wins, equal scores are a tie (None).

    Examples:
        >>> resolve_winner(1, 2, 21, 15)
        1
        >>> resolve_winner(1, 2, 10, 10) is None
        True
    """
    if player1_score > player2_score:
        return player1_id
    if player2_score > player1_score:
        return player2_id
    return None


def record_result(
    match_repo: MatchRepository,
    match_id: int,
    player1_score: int,
    player2_score: int,
    winner_id: Optional[int] = None,
    status: Optional[str] = None,
    tournament_repo: Optional[TournamentRepository] = None,
) -> Match:
    """Apply a reported score to a match.

    An explicit winner_id is trusted as given (use it for sports where a tie
    on score is broken by rules this engine does not see). Otherwise the
    winner is derived from the scores. The winner is not advanced into the
    next round.

    Args:
        match_repo: Match storage
        match_id: Match to update
        player1_score: Games won by player 1
        player2_score: Games won by player 2
        winner_id: Optional explicit winner
        status: Optional status override (default: completed)
        tournament_repo: If given, a completed final marks its tournament completed

    Returns:
        Updated Match

    Raises:
        NotFoundError: If the match does not exist
        InvalidInputError: If status is not a known match status
    """
    match = match_repo.get_by_id(match_id)
    if match is None:
        raise NotFoundError(f"Match {match_id} not found")

    try:
        new_status = MatchStatus(status) if status else MatchStatus.COMPLETED
    except ValueError:
        raise InvalidInputError(f"Unknown match status: {status!r}")

    if winner_id is None:
        winner_id = resolve_winner(match.player1_id, match.player2_id, player1_score, player2_score)

    updated = match_repo.update_match(
        match_id,
        player1_score=player1_score,
        player2_score=player2_score,
        winner_id=winner_id,
        status=new_status,
    )
    logger.info(
        "Recorded match %d (%s): %d-%d, winner %s",
        match_id, updated.round.value, player1_score, player2_score, winner_id,
    )

    if tournament_repo is not None and updated.round == RoundType.FINAL and updated.is_completed:
        tournament_repo.update_tournament(updated.tournament_id, status=TournamentStatus.COMPLETED)
        logger.info("Tournament %d completed", updated.tournament_id)

    return updated
