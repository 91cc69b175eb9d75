"""Command-line interface for ttdraw."""

import logging
from contextlib import contextmanager

import click


@contextmanager
def open_services(config_path):
    """Load config, set up logging and open the repositories.

    The session is closed when the block exits, also on errors.

    Yields:
        Tuple of (config, player_repo, draw_service)
    """
    from ttdraw.config_loader import load_and_validate_config
    from ttdraw.draw import DrawService
    from ttdraw.storage import DatabaseManager, MatchRepository, PlayerRepository, TournamentRepository

    cfg = load_and_validate_config(config_path)
    logging.basicConfig(
        level=getattr(logging, cfg["log_level"]),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db = DatabaseManager(cfg["database"])
    db.create_tables()
    session = db.get_session()
    player_repo = PlayerRepository(session)
    service = DrawService(
        player_repo,
        TournamentRepository(session),
        MatchRepository(session),
        default_qualifiers_per_group=cfg["default_qualifiers_per_group"],
    )
    try:
        yield cfg, player_repo, service
    finally:
        session.close()


def _abort(message: str):
    click.echo(f"[ERROR] {message}", err=True)
    raise click.Abort()


@click.group()
@click.version_option(version="0.1.0")
@click.option("--config", "config_path", required=False, help="Path to config YAML file")
@click.pass_context
def cli(ctx, config_path):
    """Tournament Draw - group stage and knockout bracket engine."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.option("--firstname", required=True)
@click.option("--lastname", required=True)
@click.option("--category", required=True, help="Category/division (e.g., U18)")
@click.option("--affiliation", default=None, help="Club or school ('-' for none)")
@click.option("--seed-rank", default=None, help="Seed rank ('-' for unseeded)")
@click.pass_context
def register_player(ctx, firstname, lastname, category, affiliation, seed_rank):
    """Register a player (unpaid, without group).

    Example:
        ttdraw register-player --firstname Ana --lastname Ruiz --category U18 --seed-rank 1
    """
    from ttdraw.config_loader import ConfigError
    from ttdraw.exceptions import DrawError
    from ttdraw.players import register_player as create_player

    try:
        with open_services(ctx.obj["config_path"]) as (_, player_repo, _):
            player = create_player(player_repo, firstname, lastname, category, affiliation, seed_rank)
            click.echo(f"[SUCCESS] Registered #{player.id}: {player}")
    except (ConfigError, DrawError) as e:
        _abort(str(e))


@cli.command()
@click.argument("player_ids", nargs=-1, type=int, required=True)
@click.pass_context
def approve_player(ctx, player_ids):
    """Mark players as paid.

    Example:
        ttdraw approve-player 3 4 7
    """
    from ttdraw.config_loader import ConfigError
    from ttdraw.exceptions import DrawError
    from ttdraw.players import approve_player as approve

    try:
        with open_services(ctx.obj["config_path"]) as (_, player_repo, _):
            for player_id in player_ids:
                player = approve(player_repo, player_id)
                click.echo(f"[SUCCESS] Approved {player.full_name}")
    except (ConfigError, DrawError) as e:
        _abort(str(e))


@cli.command("assign-group")
@click.option("--group", "group_name", required=True, help="Group name (e.g., A)")
@click.argument("player_ids", nargs=-1, type=int, required=True)
@click.pass_context
def assign_group(ctx, group_name, player_ids):
    """Put players into a group.

    Example:
        ttdraw assign-group --group A 1 2 3 4
    """
    from ttdraw.config_loader import ConfigError
    from ttdraw.exceptions import DrawError
    from ttdraw.players import assign_groups

    try:
        with open_services(ctx.obj["config_path"]) as (_, player_repo, _):
            players = assign_groups(player_repo, [(player_id, group_name) for player_id in player_ids])
            click.echo(f"[SUCCESS] {len(players)} players assigned to group {group_name}")
    except (ConfigError, DrawError) as e:
        _abort(str(e))


@cli.command()
@click.option("--category", required=False, help="Category to build the draw for")
@click.option("--all", "all_categories", is_flag=True, help="Build draws for every grouped category")
@click.pass_context
def build_draw(ctx, category, all_categories):
    """Create tournament, group fixtures and knockout skeleton.

    Example:
        ttdraw build-draw --category U18
        ttdraw build-draw --all
    """
    from ttdraw.config_loader import ConfigError
    from ttdraw.exceptions import DrawError

    if not category and not all_categories:
        _abort("Use --category or --all")

    try:
        with open_services(ctx.obj["config_path"]) as (_, _, service):
            if all_categories:
                tournaments = service.build_all_draws()
            else:
                tournaments = [service.build_draw(category)]

            for tournament in tournaments:
                matches = service.list_matches(category=tournament.category, round="group")
                click.echo(f"[SUCCESS] {tournament.name}: {len(matches)} group matches")
                if tournament.qualification_rules:
                    click.echo(f"  Qualifiers per group: {tournament.qualification_rules}")

            if not tournaments:
                click.echo("[WARNING] No new categories to build")
    except (ConfigError, DrawError) as e:
        _abort(str(e))


@cli.command()
@click.option("--category", required=True, help="Category to compute standings for")
@click.pass_context
def standings(ctx, category):
    """Show current group standings.

    Example:
        ttdraw standings --category U18
    """
    from ttdraw.config_loader import ConfigError
    from ttdraw.exceptions import DrawError

    try:
        with open_services(ctx.obj["config_path"]) as (_, player_repo, service):
            table = service.get_standings(category)
            if not table:
                click.echo("[INFO] No completed group matches yet")

            for group_name, group_standings in table.items():
                click.echo(f"\n[STATS] Group {group_name}")
                for standing in group_standings:
                    player = player_repo.get_by_id(standing.player_id)
                    name = player.full_name if player else f"P{standing.player_id}"
                    click.echo(
                        f"  {standing.rank}. {name} - {standing.points}pts "
                        f"({standing.wins}W, games {standing.games_won}-{standing.games_lost})"
                    )
    except (ConfigError, DrawError) as e:
        _abort(str(e))


@cli.command()
@click.option("--category", required=True, help="Category whose bracket to fill")
@click.pass_context
def fill_bracket(ctx, category):
    """Fill the round of 16 once the group stage is completed.

    Example:
        ttdraw fill-bracket --category U18
    """
    from ttdraw.config_loader import ConfigError

    try:
        with open_services(ctx.obj["config_path"]) as (_, _, service):
            result = service.fill_bracket(category)
    except ConfigError as e:
        _abort(str(e))

    if result.generated:
        click.echo(f"[SUCCESS] {result.message}")
    else:
        click.echo(f"[WARNING] {result.message}")


@cli.command()
@click.argument("match_id", type=int)
@click.argument("player1_score", type=int)
@click.argument("player2_score", type=int)
@click.option("--winner", "winner_id", type=int, default=None, help="Explicit winner player ID")
@click.option("--status", type=click.Choice(["pending", "completed"]), default=None)
@click.pass_context
def record_result(ctx, match_id, player1_score, player2_score, winner_id, status):
    """Record a match score.

    Example:
        ttdraw record-result 12 3 1
        ttdraw record-result 12 2 2 --winner 7
    """
    from ttdraw.config_loader import ConfigError
    from ttdraw.exceptions import DrawError

    try:
        with open_services(ctx.obj["config_path"]) as (_, _, service):
            match = service.record_result(match_id, player1_score, player2_score, winner_id, status)
            winner = f"P{match.winner_id}" if match.winner_id else "tie"
            click.echo(f"[SUCCESS] {match} (winner: {winner})")
    except (ConfigError, DrawError) as e:
        _abort(str(e))


@cli.command()
@click.option("--category", required=False)
@click.option("--group", "group_name", required=False)
@click.option("--round", "rounds", multiple=True, help="Round filter; repeat for several")
@click.pass_context
def list_matches(ctx, category, group_name, rounds):
    """List matches in match order.

    Example:
        ttdraw list-matches --category U18 --round group --group A
    """
    from ttdraw.config_loader import ConfigError

    try:
        with open_services(ctx.obj["config_path"]) as (_, _, service):
            matches = service.list_matches(
                category=category,
                group_name=group_name,
                round=rounds[0] if len(rounds) == 1 else None,
                rounds=list(rounds) if len(rounds) > 1 else None,
            )
    except ConfigError as e:
        _abort(str(e))

    for match in matches:
        group = f" [{match.group_name}]" if match.group_name else ""
        click.echo(f"  #{match.id}{group} {match}")
    click.echo(f"[INFO] {len(matches)} matches")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, help="Port to bind to")
@click.pass_context
def serve(ctx, host: str, port: int):
    """Launch the HTTP API.

    Example:
        ttdraw serve --port 8080
    """
    import uvicorn
    from ttdraw.config_loader import ConfigError, load_and_validate_config
    from ttdraw.webapp.app import create_app

    try:
        cfg = load_and_validate_config(ctx.obj["config_path"])
    except ConfigError as e:
        _abort(str(e))

    logging.basicConfig(level=getattr(logging, cfg["log_level"]))
    app = create_app(cfg["database"], cfg["default_qualifiers_per_group"])

    click.echo(f"[INFO] Starting API at http://{host}:{port}")
    click.echo("[INFO] Press CTRL+C to stop")

    try:
        uvicorn.run(app, host=host, port=port, log_level="info")
    except KeyboardInterrupt:
        click.echo("\n[INFO] Shutting down...")


if __name__ == "__main__":
    cli()
