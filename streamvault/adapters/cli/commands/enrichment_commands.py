"""
Commandes CLI d'enrichissement TMDB : series, films, episodes et articles.
"""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Optional

import typer

from streamvault.adapters.cli.helpers import (
    batch_progress,
    console,
    print_stats,
    with_container,
)
from streamvault.core.entities import RecordDocument
from streamvault.services.batch import run_job


def _resolve_show_id(document: RecordDocument, key: Optional[str]) -> Optional[str]:
    """Id de la serie designee par id ou slug ; quitte si introuvable."""
    if key is None:
        return None
    show = document.shows.get(key) or document.show_by_slug(key)
    if show is None:
        console.print(f"[red]Serie introuvable:[/red] {key}")
        raise typer.Exit(code=1)
    return show.id


def _resolve_movie_id(document: RecordDocument, key: Optional[str]) -> Optional[str]:
    if key is None:
        return None
    movie = document.movies.get(key) or document.movie_by_slug(key)
    if movie is None:
        console.print(f"[red]Film introuvable:[/red] {key}")
        raise typer.Exit(code=1)
    return movie.id


def enrich_shows(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Retraiter les series deja enrichies"),
    ] = False,
    show: Annotated[
        Optional[str],
        typer.Option("--show", "-s", help="Limiter a une serie (id ou slug)"),
    ] = None,
) -> None:
    """Enrichit les series depuis TMDB (synopsis, genres, distribution, images)."""
    asyncio.run(_enrich_shows_async(force, show))


@with_container(requires_tmdb=True)
async def _enrich_shows_async(container, force: bool, show: Optional[str]) -> None:
    """Implementation async de la commande enrich-shows."""
    service = container.show_enricher_service()

    async def job(document: RecordDocument):
        show_id = _resolve_show_id(document, show)
        total = 1 if show_id else len(document.shows)
        console.print(f"[bold cyan]Enrichissement des series[/bold cyan]: {total} serie(s)\n")
        with batch_progress("Series...", total) as on_progress:
            return await service.enrich_shows(
                document, force=force, only_show_id=show_id, on_progress=on_progress
            )

    stats = await run_job(container.record_store(), job)
    print_stats(stats)


def enrich_movies(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Retraiter les films deja enrichis"),
    ] = False,
    movie: Annotated[
        Optional[str],
        typer.Option("--movie", "-m", help="Limiter a un film (id ou slug)"),
    ] = None,
) -> None:
    """Enrichit les films depuis TMDB (synopsis, duree, realisateurs, images)."""
    asyncio.run(_enrich_movies_async(force, movie))


@with_container(requires_tmdb=True)
async def _enrich_movies_async(container, force: bool, movie: Optional[str]) -> None:
    """Implementation async de la commande enrich-movies."""
    service = container.movie_enricher_service()

    async def job(document: RecordDocument):
        movie_id = _resolve_movie_id(document, movie)
        total = 1 if movie_id else len(document.movies)
        console.print(f"[bold cyan]Enrichissement des films[/bold cyan]: {total} film(s)\n")
        with batch_progress("Films...", total) as on_progress:
            return await service.enrich_movies(
                document, force=force, only_movie_id=movie_id, on_progress=on_progress
            )

    stats = await run_job(container.record_store(), job)
    print_stats(stats)


def fix_episodes(
    show: Annotated[
        Optional[str],
        typer.Option("--show", "-s", help="Limiter a une serie (id ou slug)"),
    ] = None,
) -> None:
    """Remplace les titres, descriptions et vignettes provisoires des episodes."""
    asyncio.run(_fix_episodes_async(show))


@with_container(requires_tmdb=True)
async def _fix_episodes_async(container, show: Optional[str]) -> None:
    """Implementation async de la commande fix-episodes."""
    service = container.episode_enricher_service()

    async def job(document: RecordDocument):
        show_id = _resolve_show_id(document, show)
        total = 1 if show_id else len(document.shows)
        console.print(f"[bold cyan]Reparation des episodes[/bold cyan]: {total} serie(s)\n")
        with batch_progress("Episodes...", total) as on_progress:
            return await service.fix_episodes(
                document, only_show_id=show_id, on_progress=on_progress
            )

    stats = await run_job(container.record_store(), job)
    print_stats(stats)


def parse_video_refs(
    videos: list[str], videos_file: Optional[Path]
) -> dict[int, str]:
    """
    Construit la table numero d'episode -> reference video.

    Args:
        videos: Valeurs "N=URL" de l'option --video
        videos_file: Fichier JSON {"N": "URL", ...}

    Raises:
        typer.BadParameter: Valeur ou fichier mal forme
    """
    refs: dict[int, str] = {}
    if videos_file is not None:
        try:
            data = json.loads(videos_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise typer.BadParameter(f"Fichier illisible: {e}") from e
        if not isinstance(data, dict):
            raise typer.BadParameter("Le fichier doit contenir un objet JSON")
        for number, url in data.items():
            if not str(number).isdigit() or not isinstance(url, str):
                raise typer.BadParameter(f"Entree invalide: {number!r}")
            refs[int(number)] = url

    for value in videos:
        number, sep, url = value.partition("=")
        if not sep or not number.strip().isdigit() or not url.strip():
            raise typer.BadParameter(f"Format attendu N=URL, recu: {value!r}")
        refs[int(number)] = url.strip()
    return refs


def add_episodes(
    show: Annotated[str, typer.Argument(help="Serie (id ou slug)")],
    season: Annotated[int, typer.Argument(help="Numero de saison", min=1)],
    video: Annotated[
        Optional[list[str]],
        typer.Option("--video", "-V", help="Reference video d'un episode: N=URL (repetable)"),
    ] = None,
    videos_file: Annotated[
        Optional[Path],
        typer.Option("--videos-file", help="Fichier JSON {\"N\": \"URL\"}"),
    ] = None,
) -> None:
    """Cree les episodes manquants d'une saison a partir de TMDB."""
    refs = parse_video_refs(video or [], videos_file)
    if not refs:
        console.print("[yellow]Aucune reference video fournie, aucun episode ne sera cree.[/yellow]")
    asyncio.run(_add_episodes_async(show, season, refs))


@with_container(requires_tmdb=True)
async def _add_episodes_async(
    container, show: str, season: int, refs: dict[int, str]
) -> None:
    """Implementation async de la commande add-episodes."""
    service = container.episode_enricher_service()

    async def job(document: RecordDocument):
        show_id = _resolve_show_id(document, show)
        title = document.shows[show_id].title
        console.print(f"[bold cyan]Ajout d'episodes[/bold cyan]: {title} saison {season}\n")
        with batch_progress("Saison...", 1) as on_progress:
            return await service.add_episodes(
                document, show_id, season, refs, on_progress=on_progress
            )

    stats = await run_job(container.record_store(), job)
    print_stats(stats)


def enrich_production_info(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Retraiter les articles deja complets"),
    ] = False,
) -> None:
    """Ajoute societes de production et liens externes aux articles de blog."""
    asyncio.run(_enrich_production_info_async(force))


@with_container(requires_tmdb=True)
async def _enrich_production_info_async(container, force: bool) -> None:
    """Implementation async de la commande enrich-production-info."""
    service = container.production_info_service()

    async def job(document: RecordDocument):
        total = len(document.blog_posts)
        console.print(f"[bold cyan]Production et liens externes[/bold cyan]: {total} article(s)\n")
        with batch_progress("Articles...", total) as on_progress:
            return await service.enrich_blog_posts(document, force=force, on_progress=on_progress)

    stats = await run_job(container.record_store(), job)
    print_stats(stats)
