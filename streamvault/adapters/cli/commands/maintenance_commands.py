"""
Commandes CLI de maintenance hors ligne : doublons, horodatages, statistiques.
"""

import asyncio
from typing import Annotated, Optional

import typer
from rich.table import Table

from streamvault.adapters.cli.helpers import (
    batch_progress,
    console,
    print_stats,
    with_container,
)
from streamvault.core.entities import RecordDocument
from streamvault.services.batch import run_job
from streamvault.services.episode_enricher import needs_repair
from streamvault.services.reconciliation import DuplicateGroup, deduplicate


def dedupe_episodes(
    show: Annotated[
        Optional[str],
        typer.Option("--show", "-s", help="Limiter a une serie (id ou slug)"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Afficher les doublons sans rien supprimer"),
    ] = False,
) -> None:
    """Supprime les episodes en double (meme serie, saison et numero)."""
    asyncio.run(_dedupe_episodes_async(show, dry_run))


@with_container()
async def _dedupe_episodes_async(container, show: Optional[str], dry_run: bool) -> None:
    """Implementation async de la commande dedupe-episodes."""
    service = container.dedup_service()
    groups: list[DuplicateGroup] = []

    async def job(document: RecordDocument):
        show_id = None
        if show is not None:
            target = document.shows.get(show) or document.show_by_slug(show)
            if target is None:
                console.print(f"[red]Serie introuvable:[/red] {show}")
                raise typer.Exit(code=1)
            show_id = target.id
        return await service.dedupe_episodes(
            document, only_show_id=show_id, dry_run=dry_run, groups=groups
        )

    stats = await run_job(container.record_store(), job, persist=not dry_run)

    if groups:
        table = Table(title="Doublons")
        table.add_column("Episode")
        table.add_column("Conserve")
        table.add_column("Score", justify="right")
        table.add_column("Supprime(s)")
        for group in groups:
            table.add_row(
                group.kept.label,
                group.kept.id,
                str(group.scores[group.kept.id]),
                ", ".join(f"{e.id} ({group.scores[e.id]})" for e in group.removed),
            )
        console.print(table)
    else:
        console.print("[green]Aucun doublon.[/green]")

    print_stats(stats, dry_run=dry_run)


def backfill_timestamps() -> None:
    """Renseigne createdAt/updatedAt manquants des series et films."""
    asyncio.run(_backfill_timestamps_async())


@with_container()
async def _backfill_timestamps_async(container) -> None:
    """Implementation async de la commande backfill-timestamps."""
    service = container.timestamp_backfill_service()

    async def job(document: RecordDocument):
        total = len(document.shows) + len(document.movies)
        with batch_progress("Horodatages...", total, verbose=False) as on_progress:
            return await service.backfill(document, on_progress=on_progress)

    stats = await run_job(container.record_store(), job)
    print_stats(stats)


def store_stats(
    top: Annotated[
        int,
        typer.Option("--top", help="Nombre de demandes de contenu affichees", min=0),
    ] = 5,
) -> None:
    """Affiche l'etat du magasin : volumes, doublons, episodes a reparer."""
    asyncio.run(_stats_async(top))


@with_container()
async def _stats_async(container, top: int) -> None:
    """Implementation async de la commande stats."""
    document = container.record_store().load()

    valid_episodes = [
        e for e in document.episodes.values()
        if e.show_id and e.season is not None and e.episode_number is not None
    ]
    duplicates = deduplicate(valid_episodes)
    to_repair = sum(1 for e in document.episodes.values() if needs_repair(e))
    missing_created = sum(
        1
        for entity in (*document.shows.values(), *document.movies.values())
        if not entity.created_at
    )

    table = Table(title="Magasin StreamVault")
    table.add_column("Element")
    table.add_column("Nombre", justify="right")
    table.add_row("Series", str(len(document.shows)))
    table.add_row("Films", str(len(document.movies)))
    table.add_row("Episodes", str(len(document.episodes)))
    table.add_row("Articles", str(len(document.blog_posts)))
    table.add_row("Commentaires", str(len(document.comments)))
    table.add_row("Demandes de contenu", str(len(document.content_requests)))
    table.add_row("Signalements", str(len(document.issue_reports)))
    table.add_row("Episodes en double", str(len(duplicates.remove)))
    table.add_row("Episodes a reparer", str(to_repair))
    table.add_row("Sans createdAt", str(missing_created))
    console.print(table)
    console.print(f"[dim]Derniere mise a jour: {document.last_updated or '-'}[/dim]")

    requests = document.top_content_requests(top)
    if requests:
        req_table = Table(title="Contenus les plus demandes")
        req_table.add_column("Titre")
        req_table.add_column("Type")
        req_table.add_column("Demandes", justify="right")
        for request in requests:
            req_table.add_row(request.title, request.content_type, str(request.request_count))
        console.print(req_table)


def search_catalog(
    query: Annotated[str, typer.Argument(help="Fragment de titre (insensible a la casse)")],
) -> None:
    """Recherche series et films par titre dans le magasin."""
    asyncio.run(_search_async(query))


@with_container()
async def _search_async(container, query: str) -> None:
    """Implementation async de la commande search."""
    document = container.record_store().load()
    shows = document.search_shows(query)
    movies = document.search_movies(query)

    if not shows and not movies:
        console.print(f"[yellow]Aucun resultat pour[/yellow] '{query}'")
        return

    table = Table(title=f"Resultats pour '{query}'")
    table.add_column("Type")
    table.add_column("Id")
    table.add_column("Titre")
    table.add_column("Slug")
    table.add_column("Annee", justify="right")
    for show in shows:
        episodes = len(document.episodes_for_show(show.id))
        table.add_row(
            f"serie ({episodes} ep.)", show.id, show.title, show.slug or "-", str(show.year or "-")
        )
    for movie in movies:
        table.add_row("film", movie.id, movie.title, movie.slug or "-", str(movie.year or "-"))
    console.print(table)


def list_comments(
    target: Annotated[str, typer.Argument(help="Id d'episode, ou id/slug de film")],
) -> None:
    """Affiche les commentaires d'un episode ou d'un film, du plus recent au plus ancien."""
    asyncio.run(_comments_async(target))


@with_container()
async def _comments_async(container, target: str) -> None:
    """Implementation async de la commande comments."""
    document = container.record_store().load()

    if target in document.episodes:
        episode = document.episodes[target]
        label = f"{episode.label} {episode.title}"
        comments = document.comments_for_episode(target)
    else:
        movie = document.movies.get(target) or document.movie_by_slug(target)
        if movie is None:
            console.print(f"[red]Episode ou film introuvable:[/red] {target}")
            raise typer.Exit(code=1)
        label = movie.title
        comments = document.comments_for_movie(movie.id)

    if not comments:
        console.print(f"[dim]Aucun commentaire pour {label}.[/dim]")
        return

    table = Table(title=f"Commentaires : {label}")
    table.add_column("Date")
    table.add_column("Auteur")
    table.add_column("Commentaire")
    table.add_column("Reponse a")
    for comment in comments:
        table.add_row(
            comment.created_at or "-",
            comment.user_name,
            comment.comment,
            comment.parent_id or "",
        )
    console.print(table)


def clear_cache() -> None:
    """Vide le cache disque des reponses TMDB."""
    asyncio.run(_clear_cache_async())


@with_container()
async def _clear_cache_async(container) -> None:
    """Implementation async de la commande clear-cache."""
    cache = container.api_cache()
    try:
        count = len(cache)
        await cache.clear()
    finally:
        cache.close()
    console.print(f"[green]{count} entree(s) supprimee(s) du cache.[/green]")
