"""
Point d'entree CLI de StreamVault.

Configure le logging et monte les commandes de maintenance du magasin.
"""

from typing import Annotated

import typer
from loguru import logger

from . import __version__
from .adapters.cli.commands import (
    add_episodes,
    backfill_timestamps,
    clear_cache,
    dedupe_episodes,
    enrich_movies,
    enrich_production_info,
    enrich_shows,
    fix_episodes,
    list_comments,
    search_catalog,
    store_stats,
)
from .config import Settings
from .container import Container
from .logging_config import configure_logging

app = typer.Typer(
    name="streamvault",
    help="Maintenance du catalogue StreamVault (magasin JSON + TMDB)",
)
container = Container()

@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Augmenter la verbosite (-v, -vv)"
        ),
    ] = 0,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Mode silencieux (erreurs uniquement)"),
    ] = False,
) -> None:
    """StreamVault - Maintenance du magasin d'enregistrements."""
    if quiet:
        _reconfigure_logging("ERROR")
    elif verbose:
        _reconfigure_logging("DEBUG")


def _reconfigure_logging(log_level: str) -> None:
    settings = get_config()
    configure_logging(
        log_level=log_level,
        log_file=settings.log_file,
        rotation_size=settings.log_rotation_size,
        retention_count=settings.log_retention_count,
    )


# Enrichissement TMDB
app.command(name="enrich-shows")(enrich_shows)
app.command(name="enrich-movies")(enrich_movies)
app.command(name="fix-episodes")(fix_episodes)
app.command(name="add-episodes")(add_episodes)
app.command(name="enrich-production-info")(enrich_production_info)

# Maintenance hors ligne
app.command(name="dedupe-episodes")(dedupe_episodes)
app.command(name="backfill-timestamps")(backfill_timestamps)
app.command(name="stats")(store_stats)
app.command(name="search")(search_catalog)
app.command(name="comments")(list_comments)
app.command(name="clear-cache")(clear_cache)


def get_config() -> Settings:
    """Recupere les parametres de l'application depuis le container DI."""
    return container.config()


@app.command()
def info() -> None:
    """Affiche la configuration actuelle."""
    config = get_config()
    logger.info("Configuration StreamVault")
    typer.echo(f"Magasin : {config.data_file}")
    typer.echo(f"API TMDB : {'activee' if config.tmdb_enabled else 'desactivee'}")
    typer.echo(f"Langue TMDB : {config.tmdb_language}")
    typer.echo(f"Cache : {config.cache_dir}")
    typer.echo(f"Delai entre entites : {config.request_delay_seconds}s")
    typer.echo(f"Delai entre episodes : {config.episode_delay_seconds}s")
    typer.echo(f"Niveau de log : {config.log_level}")


@app.command()
def version() -> None:
    """Affiche les informations de version."""
    typer.echo(f"StreamVault v{__version__}")


def main() -> None:
    """Point d'entree de l'application."""
    settings = container.config()
    configure_logging(
        log_level=settings.log_level,
        log_file=settings.log_file,
        rotation_size=settings.log_rotation_size,
        retention_count=settings.log_retention_count,
    )

    logger.info("Demarrage de StreamVault", version=__version__)

    app()


if __name__ == "__main__":
    main()
