"""
Utilitaires partages pour les commandes CLI de StreamVault.

Ce module fournit :
- console : instance Rich Console partagee
- suppress_loguru : context manager pour desactiver/reactiver les logs loguru
- with_container : decorateur injectant un container initialise
- install_cancel_handler : Ctrl+C -> annulation cooperative entre deux entites
- batch_progress : barre de progression Rich branchee sur le callback des lots
- print_stats : resume final d'un lot
"""

import asyncio
import signal
from contextlib import contextmanager
from functools import wraps
from typing import Iterator

import typer
from loguru import logger as loguru_logger
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)

from streamvault.container import Container
from streamvault.core.errors import PersistenceError
from streamvault.services.batch import (
    BatchStats,
    EntityState,
    ProgressCallback,
    ProgressInfo,
)

console = Console()


@contextmanager
def suppress_loguru():
    """
    Context manager pour desactiver les logs loguru pendant l'affichage Rich.

    Usage:
        with suppress_loguru():
            console.print(...)
    """
    loguru_logger.disable("streamvault")
    try:
        yield
    finally:
        loguru_logger.enable("streamvault")


def with_container(requires_tmdb: bool = False):
    """
    Decorateur qui injecte un container initialise en premier argument.

    Args:
        requires_tmdb: Si True, verifie la cle API avant tout travail et
            ferme le client HTTP et le cache a la fin.

    Une PersistenceError (magasin illisible ou non inscriptible) termine la
    commande avec le code 1.

    Usage:
        @with_container(requires_tmdb=True)
        async def my_command(container, ...):
            config = container.config()
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            container = Container()
            if requires_tmdb and not container.config().tmdb_enabled:
                console.print(
                    "[red]Cle API TMDB manquante.[/red] "
                    "Definir STREAMVAULT_TMDB_API_KEY ou TMDB_API_KEY."
                )
                raise typer.Exit(code=1)

            install_cancel_handler(container.cancel_event())
            try:
                return await func(container, *args, **kwargs)
            except PersistenceError as e:
                console.print(f"[red]Erreur du magasin:[/red] {e}")
                console.print("[dim]Aucune modification n'a ete enregistree.[/dim]")
                raise typer.Exit(code=1)
            finally:
                if requires_tmdb:
                    await container.tmdb_client().close()
                    container.api_cache().close()
        return wrapper
    return decorator


def install_cancel_handler(cancel_event: asyncio.Event) -> None:
    """
    Branche SIGINT sur l'evenement d'annulation du lot en cours.

    L'entite en cours se termine, les suivantes ne sont pas traitees et le
    document est sauvegarde avec ce qui a deja ete fait.
    """
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
    except (NotImplementedError, RuntimeError):
        # Pas de gestion de signal sur cette plateforme : Ctrl+C interrompt
        loguru_logger.debug("Annulation cooperative indisponible sur cette plateforme")


_STATE_MARKS = {
    EntityState.MERGED: "[green]✓[/green]",
    EntityState.SKIPPED: "[dim]-[/dim]",
    EntityState.NOT_FOUND: "[yellow]?[/yellow]",
    EntityState.FAILED: "[red]✗[/red]",
}


@contextmanager
def batch_progress(description: str, total: int, verbose: bool = True) -> Iterator[ProgressCallback]:
    """
    Barre de progression Rich pour un lot.

    Args:
        description: Libelle de la barre
        total: Nombre d'entites
        verbose: Afficher une ligne par entite modifiee, introuvable ou en echec

    Yields:
        Callback a passer aux services (on_progress)
    """
    with suppress_loguru():
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeRemainingColumn(),
            console=console,
            transient=False,
        ) as progress:
            task = progress.add_task(f"[cyan]{description}", total=total)

            def on_progress(info: ProgressInfo) -> None:
                progress.update(task, completed=info.current)
                outcome = info.outcome
                if not verbose or outcome.state == EntityState.SKIPPED:
                    return
                mark = _STATE_MARKS.get(outcome.state, "")
                details = []
                if outcome.created:
                    details.append(f"{outcome.created} cree(s)")
                if outcome.updated:
                    details.append(f"{outcome.updated} modifie(s)")
                if outcome.removed:
                    details.append(f"{outcome.removed} supprime(s)")
                if outcome.state in (EntityState.NOT_FOUND, EntityState.FAILED) and outcome.reason:
                    details.append(outcome.reason)
                suffix = f" - {', '.join(details)}" if details else ""
                progress.console.print(f"  {mark} {outcome.label}{suffix}")

            yield on_progress


def print_stats(stats: BatchStats, dry_run: bool = False) -> None:
    """Affiche le resume d'un lot."""
    console.print("\n[bold]Resume:[/bold]")
    console.print(f"  {stats.total} entite(s), {stats.processed} traitee(s)")
    if stats.created:
        console.print(f"  [green]{stats.created}[/green] cree(s)")
    if stats.updated:
        console.print(f"  [green]{stats.updated}[/green] modifie(s)")
    if stats.removed:
        verb = "a supprimer" if dry_run else "supprime(s)"
        console.print(f"  [green]{stats.removed}[/green] {verb}")
    if stats.skipped:
        console.print(f"  [dim]{stats.skipped}[/dim] ignore(s)")
    if stats.not_found:
        console.print(f"  [yellow]{stats.not_found}[/yellow] introuvable(s)")
    if stats.failed:
        console.print(f"  [red]{stats.failed}[/red] echec(s)")
    if stats.cancelled:
        console.print("[yellow]Interrompu avant la fin du lot.[/yellow]")

    if dry_run:
        console.print("[dim]Simulation : rien n'a ete enregistre.[/dim]")
    elif stats.persisted:
        console.print("[dim]Magasin sauvegarde.[/dim]")
    else:
        console.print("[dim]Aucune modification a enregistrer.[/dim]")
