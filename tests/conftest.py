"""Shared fixtures: repositories backed by a temporary SQLite file."""

import pytest

from ttdraw.draw import DrawService
from ttdraw.models import Player
from ttdraw.storage import DatabaseManager, MatchRepository, PlayerRepository, TournamentRepository


@pytest.fixture
def db(tmp_path):
    """Fresh database with all tables."""
    manager = DatabaseManager(str(tmp_path / "ttdraw_test.sqlite"))
    manager.create_tables()
    return manager


@pytest.fixture
def session(db):
    session = db.get_session()
    yield session
    session.close()


@pytest.fixture
def player_repo(session):
    return PlayerRepository(session)


@pytest.fixture
def tournament_repo(session):
    return TournamentRepository(session)


@pytest.fixture
def match_repo(session):
    return MatchRepository(session)


@pytest.fixture
def service(player_repo, tournament_repo, match_repo):
    return DrawService(player_repo, tournament_repo, match_repo)


@pytest.fixture
def make_player(player_repo):
    """Factory fixture creating a stored (paid by default) player."""

    def _make(
        firstname,
        category="U18",
        affiliation=None,
        seed_rank=None,
        group_name=None,
        is_paid=True,
    ):
        return player_repo.create(
            Player(
                id=0,
                firstname=firstname,
                lastname="Test",
                category=category,
                affiliation=affiliation,
                seed_rank=seed_rank,
                group_name=group_name,
                is_paid=is_paid,
            )
        )

    return _make
