"""Draw orchestrator: tournament creation and knockout bracket fill.

A draw is built once per category:
1. Create the tournament
2. Generate round robin fixtures for every group
3. Create the 16-slot knockout skeleton with seeds pre-placed
4. Lock in how many players each group sends to the knockout

Once every group match is completed, fill_bracket computes standings, picks
the qualifiers, pairs them with the seeds and writes them into the round of
16. Winners are not advanced automatically after that; every later round is
entered by the organizers.
"""

import logging
from contextlib import contextmanager
from typing import Optional

from ttdraw.bracket import (
    KNOCKOUT_ORDER_OFFSET,
    build_knockout_skeleton,
    pair_entrants,
    seed_entrants,
    select_qualifiers,
)
from ttdraw.exceptions import NotFoundError, PreconditionFailedError
from ttdraw.group_builder import create_group_matches, match_order_sequence, partition_by_group
from ttdraw.models import (
    FillResult,
    GroupStanding,
    Match,
    MatchStatus,
    RoundType,
    Tournament,
)
from ttdraw.qualification import (
    DEFAULT_QUALIFIERS_PER_GROUP,
    allocate_qualifiers,
    resolve_qualification_rules,
    serialize_qualification_rules,
)
from ttdraw.results import record_result
from ttdraw.seeding import BRACKET_SIZE, place_seeds, select_seeds
from ttdraw.standings import calculate_standings
from ttdraw.storage import MatchRepository, PlayerRepository, TournamentRepository

logger = logging.getLogger(__name__)

MSG_NOT_FOUND = "Tournament not found"
MSG_GROUPS_INCOMPLETE = "Group stage not completed"
MSG_ALREADY_GENERATED = "Bracket already generated"
MSG_GENERATED = "Bracket generated successfully"


class DrawService:
    """Builds draws and fills knockout brackets for categories.

    All reads happen up front; the computation runs in memory and the
    writes go out at the end in a single transaction, so a failed build or
    fill can simply be run again. The repositories must share one session.
    Two concurrent fills for the same category are not guarded here:
    callers must serialize them (e.g. one request per tournament at a time).
    """

    def __init__(
        self,
        player_repo: PlayerRepository,
        tournament_repo: TournamentRepository,
        match_repo: MatchRepository,
        default_qualifiers_per_group: int = DEFAULT_QUALIFIERS_PER_GROUP,
    ):
        self.player_repo = player_repo
        self.tournament_repo = tournament_repo
        self.match_repo = match_repo
        self.default_qualifiers_per_group = default_qualifiers_per_group

    # ------------------------------------------------------------------
    # Draw creation
    # ------------------------------------------------------------------

    def build_draw(self, category: str) -> Tournament:
        """Create the tournament, group fixtures and knockout skeleton.

        Args:
            category: Category to build the draw for

        Returns:
            The created Tournament (with qualification rules when computed)

        Raises:
            PreconditionFailedError: If the category already has a tournament
            NotFoundError: If no paid player of the category has a group
        """
        if self.tournament_repo.find_tournament(category=category):
            raise PreconditionFailedError(f"Draw already built for category {category}")

        players = self.player_repo.find_players(category=category, is_paid=True)
        groups = partition_by_group(players)
        if not groups:
            raise NotFoundError(f"No grouped players found for category {category}")

        with self._write_batch():
            tournament = self.tournament_repo.save_tournament(
                Tournament(id=0, name=f"{category} Tournament", category=category), commit=False
            )

            group_matches = create_group_matches(tournament.id, groups, match_order_sequence(1))
            for match in group_matches:
                self.match_repo.save_match(match, commit=False)

            seeds = select_seeds(players)
            seed_slots = place_seeds(seeds)
            skeleton = build_knockout_skeleton(
                tournament.id, seed_slots, match_order_sequence(KNOCKOUT_ORDER_OFFSET + 1)
            )
            for match in skeleton:
                self.match_repo.save_match(match, commit=False)

            qualifiers_needed = BRACKET_SIZE - len(seeds)
            if qualifiers_needed > 0:
                # Seeds keep their bracket place, so they don't count towards a
                # group's pool of possible qualifiers
                group_sizes = {
                    name: sum(1 for p in members if not p.is_seeded) for name, members in groups.items()
                }
                rules = allocate_qualifiers(group_sizes, qualifiers_needed)
                tournament = self.tournament_repo.update_tournament(
                    tournament.id, commit=False, qualification_rules=serialize_qualification_rules(rules)
                )

        logger.info(
            "Built draw for %s: %d groups, %d group matches, %d seeds",
            category, len(groups), len(group_matches), len(seeds),
        )
        return tournament

    def build_all_draws(self) -> list[Tournament]:
        """Build draws for every category with grouped players and no tournament yet."""
        categories = []
        for player in self.player_repo.find_players(is_paid=True, grouped=True):
            if player.category not in categories:
                categories.append(player.category)

        tournaments = []
        for category in categories:
            if self.tournament_repo.find_tournament(category=category):
                logger.info("Skipping %s: draw already built", category)
                continue
            tournaments.append(self.build_draw(category))
        return tournaments

    # ------------------------------------------------------------------
    # Standings and bracket fill
    # ------------------------------------------------------------------

    def get_standings(self, category: str) -> dict[str, list[GroupStanding]]:
        """Current group standings for a category.

        Raises:
            NotFoundError: If the category has no tournament
        """
        tournament = self.tournament_repo.find_tournament(category=category)
        if tournament is None:
            raise NotFoundError(f"{MSG_NOT_FOUND}: {category}")
        return calculate_standings(
            self.match_repo.find_matches(
                tournament_id=tournament.id, round=RoundType.GROUP, status=MatchStatus.COMPLETED
            )
        )

    def fill_bracket(self, category: str) -> FillResult:
        """Place seeds and group qualifiers into the round of 16.

        Refuses (generated=False) when the tournament is missing, a group
        match is still pending, or a round of 16 match already holds two
        players. Runs at most once per tournament.

        Args:
            category: Category whose bracket to fill

        Returns:
            FillResult with a message and whether the bracket was written
        """
        tournament = self.tournament_repo.find_tournament(category=category)
        if tournament is None:
            logger.warning("Bracket fill for %s refused: %s", category, MSG_NOT_FOUND)
            return FillResult(message=MSG_NOT_FOUND, generated=False)

        group_matches = self.match_repo.find_matches(tournament_id=tournament.id, round=RoundType.GROUP)
        if not all(m.is_completed for m in group_matches):
            logger.warning("Bracket fill for %s refused: %s", category, MSG_GROUPS_INCOMPLETE)
            return FillResult(message=MSG_GROUPS_INCOMPLETE, generated=False)

        round16 = self.match_repo.find_matches(tournament_id=tournament.id, round=RoundType.ROUND_OF_16)
        if any(m.is_filled for m in round16):
            logger.warning("Bracket fill for %s refused: %s", category, MSG_ALREADY_GENERATED)
            return FillResult(message=MSG_ALREADY_GENERATED, generated=False)

        standings = calculate_standings(group_matches)
        rules = resolve_qualification_rules(
            tournament.qualification_rules,
            list(standings.keys()),
            default=self.default_qualifiers_per_group,
        )

        players = {p.id: p for p in self.player_repo.find_players(category=category)}
        seeds = select_seeds([p for p in players.values() if p.is_paid])
        entrants = seed_entrants(seeds) + select_qualifiers(standings, rules, players)
        pairing = pair_entrants(entrants)
        if pairing.unpaired:
            logger.warning("Players left without an opponent in %s: %s", category, pairing.unpaired)

        self._write_round16(round16, pairing.pairs)

        logger.info(
            "Filled bracket for %s: %d seeds, %d qualifiers, %d pairs",
            category, len(seeds), len(entrants) - len(seeds), min(len(pairing.pairs), len(round16)),
        )
        return FillResult(message=MSG_GENERATED, generated=True)

    def _write_round16(self, round16: list[Match], pairs: list[tuple[int, int]]) -> None:
        """Write pairs into round of 16 matches in match_order.

        Pairs beyond the available matches are dropped; matches beyond the
        available pairs are left empty. All matches are written in one
        transaction, so a failure leaves the round of 16 untouched.
        """
        if len(pairs) > len(round16):
            logger.warning("Dropping %d pairs that do not fit the bracket", len(pairs) - len(round16))

        with self._write_batch():
            for idx, match in enumerate(sorted(round16, key=lambda m: m.match_order)):
                player1_id, player2_id = pairs[idx] if idx < len(pairs) else (None, None)
                self.match_repo.update_match(
                    match.id,
                    commit=False,
                    player1_id=player1_id,
                    player2_id=player2_id,
                    status=MatchStatus.PENDING,
                )

    @contextmanager
    def _write_batch(self):
        """Commit the writes made inside the block at once, or roll all of them back."""
        session = self.match_repo.session
        try:
            yield
            session.commit()
        except Exception:
            session.rollback()
            raise

    # ------------------------------------------------------------------
    # Results and listing
    # ------------------------------------------------------------------

    def record_result(
        self,
        match_id: int,
        player1_score: int,
        player2_score: int,
        winner_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> Match:
        """Record a match score (see ttdraw.results.record_result)."""
        return record_result(
            self.match_repo,
            match_id,
            player1_score,
            player2_score,
            winner_id=winner_id,
            status=status,
            tournament_repo=self.tournament_repo,
        )

    def list_matches(
        self,
        category: Optional[str] = None,
        group_name: Optional[str] = None,
        round: Optional[str] = None,
        rounds: Optional[list[str]] = None,
    ) -> list[Match]:
        """List matches ordered by match_order.

        Args:
            category: Only the tournament of this category ([] if it has none)
            group_name: Only this group
            round: Only this round
            rounds: Only these rounds

        Returns:
            Matching matches, match_order ascending
        """
        tournament_id = None
        if category:
            tournament = self.tournament_repo.find_tournament(category=category)
            if tournament is None:
                return []
            tournament_id = tournament.id

        return self.match_repo.find_matches(
            tournament_id=tournament_id,
            group_name=group_name,
            round=round,
            rounds=rounds,
        )

