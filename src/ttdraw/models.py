"""Data models for ttdraw.

Domain model hierarchy:
- Tournament is created once per Category
- Tournament contains Matches (group stage and knockout)
- Player belongs to a Category and, once grouped, to a named Group
- GroupStanding ranks a Player within their Group
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class MatchStatus(str, Enum):
    """Match status."""

    PENDING = "pending"  # Not yet played (or slot not yet filled)
    COMPLETED = "completed"  # Result recorded


class RoundType(str, Enum):
    """Tournament round types."""

    GROUP = "group"  # Round robin
    ROUND_OF_16 = "round16"
    QUARTERFINAL = "quarter"
    SEMIFINAL = "semi"
    FINAL = "final"


class TournamentStatus(str, Enum):
    """Tournament status."""

    ONGOING = "ongoing"
    COMPLETED = "completed"


KNOCKOUT_ROUNDS = [
    RoundType.ROUND_OF_16,
    RoundType.QUARTERFINAL,
    RoundType.SEMIFINAL,
    RoundType.FINAL,
]


# ============================================================================
# Core Domain Models
# ============================================================================


@dataclass
class Player:
    """Player registered for a category.

    A player with a seed_rank enters the knockout bracket directly; every
    other player has to qualify through their group.
    """

    id: int
    firstname: str
    lastname: str
    category: str  # Division/event, e.g. "Men's Singles U18"
    affiliation: Optional[str] = None  # Club, school or institution
    seed_rank: Optional[int] = None  # 1 = top seed
    group_name: Optional[str] = None  # "A", "B", ... once grouped
    is_paid: bool = False

    @property
    def full_name(self) -> str:
        """Return full name."""
        return f"{self.firstname} {self.lastname}"

    @property
    def is_seeded(self) -> bool:
        return self.seed_rank is not None

    def __str__(self) -> str:
        """String representation."""
        seed_str = f"[{self.seed_rank}] " if self.seed_rank else ""
        affiliation = f" ({self.affiliation})" if self.affiliation else ""
        return f"{seed_str}{self.full_name}{affiliation}"


@dataclass
class Tournament:
    """Tournament for a single category.

    qualification_rules holds the serialized group -> qualifier count
    mapping once it has been computed (see ttdraw.qualification).
    """

    id: int
    name: str
    category: str
    status: TournamentStatus = TournamentStatus.ONGOING
    qualification_rules: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.name} [{self.category}] ({self.status.value})"


@dataclass
class Match:
    """A match between two players.

    Knockout matches are created as empty slots (player ids None) and
    filled once the group stage is over.
    """

    id: int
    tournament_id: int
    round: RoundType
    match_order: int
    player1_id: Optional[int] = None
    player2_id: Optional[int] = None
    group_name: Optional[str] = None  # Only for group round
    player1_score: Optional[int] = None
    player2_score: Optional[int] = None
    winner_id: Optional[int] = None
    status: MatchStatus = MatchStatus.PENDING

    @property
    def is_completed(self) -> bool:
        """Check if match is finished."""
        return self.status == MatchStatus.COMPLETED

    @property
    def is_filled(self) -> bool:
        """Both slots hold a player."""
        return self.player1_id is not None and self.player2_id is not None

    def __str__(self) -> str:
        """String representation."""
        p1 = f"P{self.player1_id}" if self.player1_id else "TBD"
        p2 = f"P{self.player2_id}" if self.player2_id else "TBD"
        if self.is_completed:
            score = f"{self.player1_score}-{self.player2_score}"
        else:
            score = "vs"
        return f"Match {self.match_order} ({self.round.value}): {p1} {score} {p2}"


# ============================================================================
# Draw Models
# ============================================================================


def compute_game_ratio(games_won: int, games_lost: int) -> float:
    """Compute games won/lost ratio.

    Args:
        games_won: Games won
        games_lost: Games lost

    Returns:
        games_won / games_lost, or games_won itself if nothing was lost
    """
    if games_lost > 0:
        return games_won / games_lost
    return float(games_won)


@dataclass(frozen=True)
class GroupStanding:
    """Standing for a player within their group.

    Tracks the metrics used for ranking: points, then wins, then game ratio.
    """

    player_id: int
    group_name: str
    points: int = 0
    wins: int = 0
    games_won: int = 0
    games_lost: int = 0
    rank: Optional[int] = None

    @property
    def game_ratio(self) -> float:
        """Games won / games lost (see compute_game_ratio)."""
        return compute_game_ratio(self.games_won, self.games_lost)

    def __str__(self) -> str:
        """String representation."""
        pos = f"#{self.rank}" if self.rank else "unranked"
        return f"{pos} P{self.player_id}: {self.points}pts {self.wins}W ({self.games_won}-{self.games_lost})"


@dataclass(frozen=True)
class BracketEntrant:
    """A player entering the knockout bracket, either seeded or qualified."""

    player_id: int
    affiliation: Optional[str] = None
    group_name: Optional[str] = None  # Origin group
    seed_rank: Optional[int] = None
    group_rank: Optional[int] = None  # Position within origin group
    points: int = 0


@dataclass
class PairingResult:
    """Output of the bracket pairing passes."""

    pairs: list[tuple[int, int]] = field(default_factory=list)
    unpaired: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class FillResult:
    """Outcome of a bracket fill request."""

    message: str
    generated: bool
