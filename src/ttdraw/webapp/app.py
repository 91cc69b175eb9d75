"""FastAPI JSON API for ttdraw.

Thin HTTP shell over the registration functions (ttdraw.players) and the
draw engine (ttdraw.draw.DrawService).
"""

import logging
from dataclasses import asdict
from typing import Optional, Union

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ttdraw import players as registration
from ttdraw.draw import DrawService
from ttdraw.exceptions import InvalidInputError, NotFoundError, PreconditionFailedError
from ttdraw.models import KNOCKOUT_ROUNDS, Match, Player, RoundType
from ttdraw.qualification import DEFAULT_QUALIFIERS_PER_GROUP
from ttdraw.storage import DatabaseManager, MatchRepository, PlayerRepository, TournamentRepository

logger = logging.getLogger(__name__)

BRACKET_ROUNDS = [r.value for r in KNOCKOUT_ROUNDS]


# ============================================================================
# Request bodies
# ============================================================================


class PlayerIn(BaseModel):
    firstname: str
    lastname: str
    category: str
    affiliation: Optional[str] = None
    seed_rank: Optional[Union[int, str]] = None


class GroupAssignment(BaseModel):
    userId: int
    groupName: str


class GroupAssignmentsIn(BaseModel):
    assignments: list[GroupAssignment]


class MatchScoreIn(BaseModel):
    player1_score: int
    player2_score: int
    winner_id: Optional[int] = None
    status: Optional[str] = None


# ============================================================================
# Serialization
# ============================================================================


def player_to_dict(player: Player) -> dict:
    return asdict(player)


def match_to_dict(match: Match) -> dict:
    data = asdict(match)
    data["round"] = match.round.value
    data["status"] = match.status.value
    return data


def match_filters(
    category: Optional[str], group_name: Optional[str], round_values: list[str]
) -> dict:
    """Translate the /users/matches query string into list_matches filters.

    - round=group&group=A -> only group A
    - round repeated -> any of those rounds
    - round=bracket -> every knockout round
    - any other single round -> that round
    """
    filters = {"category": category}
    if round_values == [RoundType.GROUP.value] and group_name:
        filters["group_name"] = group_name
        filters["round"] = RoundType.GROUP.value
    elif len(round_values) > 1:
        filters["rounds"] = round_values
    elif round_values == ["bracket"]:
        filters["rounds"] = BRACKET_ROUNDS
    elif round_values:
        filters["round"] = round_values[0]
    return filters


# ============================================================================
# Application
# ============================================================================


def create_app(
    db_path: Optional[str] = None,
    default_qualifiers_per_group: int = DEFAULT_QUALIFIERS_PER_GROUP,
) -> FastAPI:
    """Build the API bound to one SQLite database.

    Args:
        db_path: SQLite file (default: data directory, see ttdraw.paths)
        default_qualifiers_per_group: Fallback when no qualification rules are stored
    """
    if db_path is None:
        from ttdraw.paths import get_default_db_path

        db_path = str(get_default_db_path())

    db_manager = DatabaseManager(db_path)
    db_manager.create_tables()  # Ensure tables exist
    logger.info("API using database %s", db_path)

    app = FastAPI(title="Tournament Draw")
    # All routes share the /users prefix
    router = APIRouter(prefix="/users", tags=["users"])

    def get_session():
        session = db_manager.get_session()
        try:
            yield session
        finally:
            session.close()

    def get_player_repo(session=Depends(get_session)) -> PlayerRepository:
        return PlayerRepository(session)

    def get_service(session=Depends(get_session)) -> DrawService:
        return DrawService(
            PlayerRepository(session),
            TournamentRepository(session),
            MatchRepository(session),
            default_qualifiers_per_group=default_qualifiers_per_group,
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(PreconditionFailedError)
    async def precondition_handler(request: Request, exc: PreconditionFailedError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(request: Request, exc: InvalidInputError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------

    @router.post("")
    def register(body: PlayerIn, player_repo: PlayerRepository = Depends(get_player_repo)):
        player = registration.register_player(
            player_repo, body.firstname, body.lastname, body.category, body.affiliation, body.seed_rank
        )
        return player_to_dict(player)

    @router.get("/payments/search")
    def search_payment(query: str = "", player_repo: PlayerRepository = Depends(get_player_repo)):
        return registration.search_payments(player_repo, query)

    @router.get("/unpaid")
    def find_unpaid(player_repo: PlayerRepository = Depends(get_player_repo)):
        return [player_to_dict(p) for p in registration.list_unpaid(player_repo)]

    @router.patch("/{player_id}/approve")
    def approve(player_id: int, player_repo: PlayerRepository = Depends(get_player_repo)):
        return player_to_dict(registration.approve_player(player_repo, player_id))

    @router.get("/groups/available")
    def available_for_grouping(player_repo: PlayerRepository = Depends(get_player_repo)):
        return [player_to_dict(p) for p in registration.available_for_grouping(player_repo)]

    @router.get("/groups")
    def grouped(player_repo: PlayerRepository = Depends(get_player_repo)):
        return {
            category: {name: [player_to_dict(p) for p in members] for name, members in groups.items()}
            for category, groups in registration.grouped_players(player_repo).items()
        }

    @router.post("/groups/assign")
    def assign(body: GroupAssignmentsIn, player_repo: PlayerRepository = Depends(get_player_repo)):
        registration.assign_groups(player_repo, [(a.userId, a.groupName) for a in body.assignments])
        return {"message": "Groups assigned successfully"}

    # ------------------------------------------------------------------
    # Draw and matches
    # ------------------------------------------------------------------

    @router.post("/tournament/create-draw")
    def create_draw(service: DrawService = Depends(get_service)):
        tournaments = service.build_all_draws()
        return {
            "message": "Tournament matches created successfully",
            "categories": [t.category for t in tournaments],
        }

    @router.get("/matches")
    def get_matches(
        category: Optional[str] = None,
        group: Optional[str] = None,
        round: list[str] = Query(default=[]),
        service: DrawService = Depends(get_service),
    ):
        filters = match_filters(category, group, round)
        return [match_to_dict(m) for m in service.list_matches(**filters)]

    @router.patch("/matches/{match_id}/score")
    def update_match_score(match_id: int, body: MatchScoreIn, service: DrawService = Depends(get_service)):
        match = service.record_result(
            match_id, body.player1_score, body.player2_score, body.winner_id, body.status
        )
        return match_to_dict(match)

    @router.post("/tournament/{category}/generate-bracket")
    def generate_bracket(category: str, service: DrawService = Depends(get_service)):
        result = service.fill_bracket(category)
        return {"message": result.message, "generated": result.generated}

    app.include_router(router)
    return app
