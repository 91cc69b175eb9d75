"""SQLite storage layer for ttdraw.

Provides ORM models and the repositories the draw engine reads from and
writes to. Repositories hand out domain models (ttdraw.models), never ORM
rows, so the engine works on a detached snapshot.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    func,
    or_,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.pool import NullPool

from ttdraw.models import Match, MatchStatus, Player, RoundType, Tournament, TournamentStatus

Base = declarative_base()


# ============================================================================
# ORM Models
# ============================================================================


class TournamentORM(Base):
    """Tournament table.

    One tournament per category. qualification_rules stores the JSON
    group -> qualifier count mapping.
    """

    __tablename__ = "tournaments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default="ongoing")  # ongoing, completed
    qualification_rules = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    matches = relationship("MatchORM", back_populates="tournament")


class PlayerORM(Base):
    """Player table."""

    __tablename__ = "players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    firstname = Column(String(100), nullable=False)
    lastname = Column(String(100), nullable=False)
    affiliation = Column(String(200), nullable=True)
    category = Column(String(100), nullable=False)
    seed_rank = Column(Integer, nullable=True)  # 1 = top seed
    group_name = Column(String(10), nullable=True)  # A, B, C, etc.
    is_paid = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class MatchORM(Base):
    """Match table."""

    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id"), nullable=False)
    round = Column(String(10), nullable=False)  # group, round16, quarter, semi, final
    group_name = Column(String(10), nullable=True)
    player1_id = Column(Integer, ForeignKey("players.id"), nullable=True)  # None = slot not filled yet
    player2_id = Column(Integer, ForeignKey("players.id"), nullable=True)
    player1_score = Column(Integer, nullable=True)
    player2_score = Column(Integer, nullable=True)
    winner_id = Column(Integer, ForeignKey("players.id"), nullable=True)
    match_order = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    tournament = relationship("TournamentORM", back_populates="matches")


# ============================================================================
# ORM -> domain conversion
# ============================================================================


def to_player(player_orm: PlayerORM) -> Player:
    return Player(
        id=player_orm.id,
        firstname=player_orm.firstname,
        lastname=player_orm.lastname,
        category=player_orm.category,
        affiliation=player_orm.affiliation,
        seed_rank=player_orm.seed_rank,
        group_name=player_orm.group_name,
        is_paid=bool(player_orm.is_paid),
    )


def to_tournament(tournament_orm: TournamentORM) -> Tournament:
    return Tournament(
        id=tournament_orm.id,
        name=tournament_orm.name,
        category=tournament_orm.category,
        status=TournamentStatus(tournament_orm.status),
        qualification_rules=tournament_orm.qualification_rules,
    )


def to_match(match_orm: MatchORM) -> Match:
    return Match(
        id=match_orm.id,
        tournament_id=match_orm.tournament_id,
        round=RoundType(match_orm.round),
        group_name=match_orm.group_name,
        player1_id=match_orm.player1_id,
        player2_id=match_orm.player2_id,
        player1_score=match_orm.player1_score,
        player2_score=match_orm.player2_score,
        winner_id=match_orm.winner_id,
        match_order=match_orm.match_order,
        status=MatchStatus(match_orm.status),
    )


def _enum_value(value):
    return value.value if hasattr(value, "value") else value


def _finish_write(session, commit: bool) -> None:
    """Commit now, or only flush so the caller can commit a batch at once."""
    if commit:
        session.commit()
    else:
        session.flush()


# ============================================================================
# Database Manager
# ============================================================================


class DatabaseManager:
    """Manages SQLite database connection and session."""

    def __init__(self, db_path: str = ".ttdraw/ttdraw.sqlite"):
        """Initialize database manager.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # Use NullPool for SQLite to avoid connection pool issues
        self.engine = create_engine(
            f"sqlite:///{self.db_path}",
            echo=False,
            poolclass=NullPool,
            connect_args={"check_same_thread": False},
        )
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_tables(self):
        """Create all tables in the database."""
        Base.metadata.create_all(self.engine)

    def get_session(self):
        """Get a new database session."""
        return self.SessionLocal()


# ============================================================================
# Repositories
# ============================================================================


class PlayerRepository:
    """Repository for Player operations."""

    def __init__(self, session):
        self.session = session

    def create(self, player: Player) -> Player:
        """Create a new player in the database.

        Args:
            player: Player domain model (id is ignored)

        Returns:
            Created player with auto-generated ID
        """
        player_orm = PlayerORM(
            firstname=player.firstname,
            lastname=player.lastname,
            affiliation=player.affiliation,
            category=player.category,
            seed_rank=player.seed_rank,
            group_name=player.group_name,
            is_paid=player.is_paid,
        )
        self.session.add(player_orm)
        self.session.commit()
        self.session.refresh(player_orm)
        return to_player(player_orm)

    def get_by_id(self, player_id: int) -> Optional[Player]:
        """Get player by database ID."""
        player_orm = self.session.query(PlayerORM).filter(PlayerORM.id == player_id).first()
        return to_player(player_orm) if player_orm else None

    def find_players(
        self,
        category: Optional[str] = None,
        is_paid: Optional[bool] = None,
        grouped: Optional[bool] = None,
        group_name: Optional[str] = None,
        seeded: Optional[bool] = None,
        name_query: Optional[str] = None,
    ) -> list[Player]:
        """Find players matching all given filters, in registration order.

        Args:
            category: Only this category
            is_paid: Only paid (True) or unpaid (False) players
            grouped: Only players with (True) or without (False) a group
            group_name: Only players in this group
            seeded: Only players with (True) or without (False) a seed rank
            name_query: Case-insensitive substring of first or last name

        Returns:
            List of Player domain models ordered by id
        """
        query = self.session.query(PlayerORM)
        if category is not None:
            query = query.filter(PlayerORM.category == category)
        if is_paid is not None:
            query = query.filter(PlayerORM.is_paid == is_paid)
        if grouped is True:
            query = query.filter(PlayerORM.group_name.isnot(None))
        elif grouped is False:
            query = query.filter(PlayerORM.group_name.is_(None))
        if group_name is not None:
            query = query.filter(PlayerORM.group_name == group_name)
        if seeded is True:
            query = query.filter(PlayerORM.seed_rank.isnot(None))
        elif seeded is False:
            query = query.filter(PlayerORM.seed_rank.is_(None))
        if name_query:
            pattern = f"%{name_query.lower()}%"
            query = query.filter(
                or_(func.lower(PlayerORM.firstname).like(pattern), func.lower(PlayerORM.lastname).like(pattern))
            )
        return [to_player(p) for p in query.order_by(PlayerORM.id).all()]

    def update_player(self, player_id: int, **fields) -> Optional[Player]:
        """Update columns of a player.

        Args:
            player_id: Database ID
            **fields: Column values to set (e.g. is_paid=True)

        Returns:
            Updated player, None if not found
        """
        player_orm = self.session.query(PlayerORM).filter(PlayerORM.id == player_id).first()
        if not player_orm:
            return None
        for name, value in fields.items():
            setattr(player_orm, name, value)
        self.session.commit()
        self.session.refresh(player_orm)
        return to_player(player_orm)


class TournamentRepository:
    """Repository for Tournament operations."""

    def __init__(self, session):
        self.session = session

    def save_tournament(self, tournament: Tournament, commit: bool = True) -> Tournament:
        """Create a new tournament.

        Args:
            tournament: Tournament domain model (id is ignored)
            commit: False to flush only and leave the commit to the caller

        Returns:
            Created tournament with auto-generated ID
        """
        tournament_orm = TournamentORM(
            name=tournament.name,
            category=tournament.category,
            status=_enum_value(tournament.status),
            qualification_rules=tournament.qualification_rules,
        )
        self.session.add(tournament_orm)
        _finish_write(self.session, commit)
        self.session.refresh(tournament_orm)
        return to_tournament(tournament_orm)

    def find_tournament(
        self, tournament_id: Optional[int] = None, category: Optional[str] = None
    ) -> Optional[Tournament]:
        """Find a single tournament by ID and/or category."""
        query = self.session.query(TournamentORM)
        if tournament_id is not None:
            query = query.filter(TournamentORM.id == tournament_id)
        if category is not None:
            query = query.filter(TournamentORM.category == category)
        tournament_orm = query.order_by(TournamentORM.id).first()
        return to_tournament(tournament_orm) if tournament_orm else None

    def update_tournament(self, tournament_id: int, commit: bool = True, **fields) -> Optional[Tournament]:
        """Update columns of a tournament.

        Args:
            tournament_id: Database ID
            commit: False to flush only and leave the commit to the caller
            **fields: Column values to set (e.g. qualification_rules="{...}")

        Returns:
            Updated tournament, None if not found
        """
        tournament_orm = self.session.query(TournamentORM).filter(TournamentORM.id == tournament_id).first()
        if not tournament_orm:
            return None
        for name, value in fields.items():
            setattr(tournament_orm, name, _enum_value(value))
        _finish_write(self.session, commit)
        self.session.refresh(tournament_orm)
        return to_tournament(tournament_orm)


class MatchRepository:
    """Repository for Match operations."""

    def __init__(self, session):
        self.session = session

    def save_match(self, match: Match, commit: bool = True) -> Match:
        """Create a new match in the database.

        Args:
            match: Match domain model (id is ignored)
            commit: False to flush only and leave the commit to the caller

        Returns:
            Created match with auto-generated ID
        """
        match_orm = MatchORM(
            tournament_id=match.tournament_id,
            round=_enum_value(match.round),
            group_name=match.group_name,
            player1_id=match.player1_id,
            player2_id=match.player2_id,
            player1_score=match.player1_score,
            player2_score=match.player2_score,
            winner_id=match.winner_id,
            match_order=match.match_order,
            status=_enum_value(match.status),
        )
        self.session.add(match_orm)
        _finish_write(self.session, commit)
        self.session.refresh(match_orm)
        return to_match(match_orm)

    def get_by_id(self, match_id: int) -> Optional[Match]:
        """Get match by database ID."""
        match_orm = self.session.query(MatchORM).filter(MatchORM.id == match_id).first()
        return to_match(match_orm) if match_orm else None

    def find_matches(
        self,
        tournament_id: Optional[int] = None,
        round: Optional[str] = None,
        rounds: Optional[list[str]] = None,
        group_name: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[Match]:
        """Find matches matching all given filters.

        Args:
            tournament_id: Only this tournament
            round: Only this round (group, round16, ...)
            rounds: Only these rounds
            group_name: Only this group
            status: Only this status (pending, completed)

        Returns:
            List of Match domain models ordered by match_order
        """
        query = self.session.query(MatchORM)
        if tournament_id is not None:
            query = query.filter(MatchORM.tournament_id == tournament_id)
        if round is not None:
            query = query.filter(MatchORM.round == _enum_value(round))
        if rounds is not None:
            query = query.filter(MatchORM.round.in_([_enum_value(r) for r in rounds]))
        if group_name is not None:
            query = query.filter(MatchORM.group_name == group_name)
        if status is not None:
            query = query.filter(MatchORM.status == _enum_value(status))
        return [to_match(m) for m in query.order_by(MatchORM.match_order, MatchORM.id).all()]

    def update_match(self, match_id: int, commit: bool = True, **fields) -> Optional[Match]:
        """Update columns of a match.

        Args:
            match_id: Database ID
            commit: False to flush only and leave the commit to the caller
            **fields: Column values to set (e.g. player1_id=3, status="pending")

        Returns:
            Updated match, None if not found
        """
        match_orm = self.session.query(MatchORM).filter(MatchORM.id == match_id).first()
        if not match_orm:
            return None
        for name, value in fields.items():
            setattr(match_orm, name, _enum_value(value))
        _finish_write(self.session, commit)
        self.session.refresh(match_orm)
        return to_match(match_orm)
