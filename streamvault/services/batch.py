"""
Pilote de lots pour les travaux de maintenance.

Parcourt les entites dans l'ordre du magasin, applique un delai de
courtoisie entre deux entites, verifie l'annulation cooperative en tete de
boucle et convertit chaque erreur par entite en compteur + ligne de log.
Un lot n'est jamais interrompu par l'echec d'une seule entite.

run_job charge le magasin, execute le travail et sauvegarde une seule fois
a la fin si quelque chose a change (y compris apres une annulation).
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar

from loguru import logger

from streamvault.core.entities import RecordDocument
from streamvault.core.errors import NotFoundError, TransientNetworkError, ValidationError
from streamvault.core.ports.repositories import IRecordStore

T = TypeVar("T")


class EntityState(str, Enum):
    """Etats du traitement d'une entite."""

    PENDING = "pending"
    SEARCHING = "searching"
    FOUND = "found"
    NOT_FOUND = "not_found"
    FETCHING = "fetching"
    FETCHED = "fetched"
    MERGED = "merged"
    SKIPPED = "skipped"
    FAILED = "failed"


TERMINAL_STATES = frozenset(
    {EntityState.MERGED, EntityState.SKIPPED, EntityState.FAILED, EntityState.NOT_FOUND}
)

# Transitions autorisees
_TRANSITIONS: dict[EntityState, frozenset[EntityState]] = {
    EntityState.PENDING: frozenset(
        {EntityState.SEARCHING, EntityState.FETCHING} | TERMINAL_STATES
    ),
    EntityState.SEARCHING: frozenset(
        {EntityState.FOUND, EntityState.NOT_FOUND, EntityState.FAILED}
    ),
    EntityState.FOUND: frozenset(
        {EntityState.FETCHING, EntityState.SKIPPED, EntityState.FAILED}
    ),
    EntityState.FETCHING: frozenset(
        {EntityState.FETCHED, EntityState.NOT_FOUND, EntityState.FAILED}
    ),
    EntityState.FETCHED: frozenset(
        {EntityState.FETCHING, EntityState.MERGED, EntityState.SKIPPED, EntityState.FAILED}
    ),
}


@dataclass
class EntityOutcome:
    """
    Suivi du traitement d'une entite.

    Attributes:
        key: Identifiant de l'entite
        label: Libelle affiche (titre, S01E07, ...)
        state: Etat courant
        created / updated / removed: Enregistrements crees, modifies, supprimes
        reason: Motif d'un saut, d'un NOT_FOUND ou d'un echec
        history: Etats successifs
    """

    key: str
    label: str
    state: EntityState = EntityState.PENDING
    created: int = 0
    updated: int = 0
    removed: int = 0
    reason: Optional[str] = None
    history: list[EntityState] = field(default_factory=lambda: [EntityState.PENDING])

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated or self.removed)

    def advance(self, state: EntityState, reason: Optional[str] = None) -> None:
        """
        Passe a l'etat suivant.

        Raises:
            ValueError: Transition non prevue par la machine a etats
        """
        if state not in _TRANSITIONS.get(self.state, frozenset()):
            raise ValueError(f"Transition invalide {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)
        if reason:
            self.reason = reason

    def skip(self, reason: str) -> None:
        """Termine en SKIPPED (entite deja a jour, rien a faire)."""
        self.advance(EntityState.SKIPPED, reason)

    def finish(self) -> None:
        """Termine en MERGED si quelque chose a change, sinon SKIPPED."""
        if self.is_terminal:
            return
        if self.changed:
            self.advance(EntityState.MERGED)
        else:
            self.advance(EntityState.SKIPPED, self.reason or "deja a jour")

    def force_terminal(self, state: EntityState, reason: str) -> None:
        """Termine sur erreur quel que soit l'etat courant."""
        self.state = state
        self.history.append(state)
        self.reason = reason


@dataclass
class BatchStats:
    """Compteurs d'un lot."""

    total: int = 0
    processed: int = 0
    created: int = 0
    updated: int = 0
    removed: int = 0
    skipped: int = 0
    not_found: int = 0
    failed: int = 0
    cancelled: bool = False
    persisted: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated or self.removed)

    def record(self, outcome: EntityOutcome) -> None:
        """Comptabilise une entite terminee."""
        self.processed += 1
        self.created += outcome.created
        self.updated += outcome.updated
        self.removed += outcome.removed
        if outcome.state == EntityState.NOT_FOUND:
            self.not_found += 1
        elif outcome.state == EntityState.FAILED:
            self.failed += 1
        elif outcome.state == EntityState.SKIPPED:
            self.skipped += 1


@dataclass
class ProgressInfo:
    """Information de progression pour le callback."""

    current: int
    total: int
    outcome: EntityOutcome


ProcessFn = Callable[[T, EntityOutcome], Awaitable[None]]
ProgressCallback = Callable[[ProgressInfo], None]


class BatchDriver:
    """
    Balayage sequentiel d'entites avec delai de courtoisie.

    Example:
        driver = BatchDriver(delay_seconds=0.25)
        stats = await driver.run(shows, process, describe=lambda s: (s.id, s.title))
    """

    def __init__(
        self,
        delay_seconds: float = 0.25,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        """
        Initialise le pilote.

        Args:
            delay_seconds: Delai entre deux entites
            cancel_event: Evenement d'annulation cooperative (partage avec le CLI)
        """
        self._delay_seconds = delay_seconds
        self._cancel_event = cancel_event if cancel_event is not None else asyncio.Event()

    @property
    def delay_seconds(self) -> float:
        return self._delay_seconds

    def cancel(self) -> None:
        """Demande l'arret du lot avant l'entite suivante."""
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    async def run(
        self,
        entities: Iterable[T],
        process: ProcessFn,
        describe: Optional[Callable[[T], tuple[str, str]]] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchStats:
        """
        Traite les entites une par une.

        Args:
            entities: Entites dans l'ordre du magasin
            process: Coroutine appliquee a chaque entite ; elle fait avancer
                l'EntityOutcome et renseigne ses compteurs
            describe: Retourne (cle, libelle) d'une entite
            on_progress: Callback appele apres chaque entite

        Returns:
            Statistiques du lot (cancelled=True si interrompu)
        """
        items = list(entities)
        stats = BatchStats(total=len(items))
        describe = describe or _default_describe

        for i, entity in enumerate(items):
            if i > 0 and self._delay_seconds > 0:
                await asyncio.sleep(self._delay_seconds)

            if self._cancel_event.is_set():
                stats.cancelled = True
                logger.warning(
                    "Lot interrompu",
                    processed=stats.processed,
                    remaining=stats.total - stats.processed,
                )
                break

            key, label = describe(entity)
            outcome = EntityOutcome(key=key, label=label)
            await self._process_one(entity, process, outcome)
            stats.record(outcome)

            if on_progress:
                on_progress(ProgressInfo(current=i + 1, total=stats.total, outcome=outcome))

        return stats

    async def _process_one(
        self, entity: Any, process: ProcessFn, outcome: EntityOutcome
    ) -> None:
        """Execute le traitement et convertit les erreurs en etat terminal."""
        try:
            await process(entity, outcome)
            outcome.finish()
        except NotFoundError as e:
            outcome.force_terminal(EntityState.NOT_FOUND, str(e))
            logger.info("Introuvable", entity=outcome.label, reason=str(e))
        except ValidationError as e:
            outcome.force_terminal(EntityState.SKIPPED, str(e))
            logger.warning("Entite invalide ignoree", entity=outcome.label, reason=str(e))
        except TransientNetworkError as e:
            outcome.force_terminal(EntityState.FAILED, str(e))
            logger.error("Echec reseau", entity=outcome.label, error=str(e), url=e.url)
        except Exception as e:
            outcome.force_terminal(EntityState.FAILED, f"{type(e).__name__}: {e}")
            logger.exception("Erreur inattendue", entity=outcome.label)


def _default_describe(entity: Any) -> tuple[str, str]:
    key = str(getattr(entity, "id", "") or "")
    label = getattr(entity, "title", None) or key
    return key, label


JobFn = Callable[[RecordDocument], Awaitable[BatchStats]]


async def run_job(
    store: IRecordStore, job: JobFn, persist: bool = True
) -> BatchStats:
    """
    Charge le magasin, execute un travail et sauvegarde une seule fois.

    La sauvegarde n'a lieu que si le travail a modifie le document ; elle a
    aussi lieu apres une annulation cooperative (les entites terminees sont
    conservees).

    Args:
        store: Magasin d'enregistrements
        job: Coroutine prenant le document et retournant ses statistiques
        persist: False pour un mode simulation (rien n'est ecrit)

    Raises:
        PersistenceError: Lecture ou ecriture impossible (fatal)
    """
    document = store.load()
    stats = await job(document)

    if persist and stats.changed:
        store.save(document)
        stats.persisted = True

    logger.info(
        "Travail termine",
        total=stats.total,
        created=stats.created,
        updated=stats.updated,
        removed=stats.removed,
        skipped=stats.skipped,
        not_found=stats.not_found,
        failed=stats.failed,
        cancelled=stats.cancelled,
        persisted=stats.persisted,
    )
    return stats
