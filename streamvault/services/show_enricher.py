"""
Service d'enrichissement TMDB pour les series du catalogue.

Recherche chaque serie par titre sur TMDB, recupere les details complets
(synopsis, genres, classification, distribution, createurs, images) puis
les fusionne sans regression dans l'enregistrement local.
"""

from typing import Optional

from streamvault.core.entities import RecordDocument, Show
from streamvault.core.errors import NotFoundError
from streamvault.core.ports.api_clients import IMetadataClient, MediaKind
from streamvault.services.batch import (
    BatchDriver,
    BatchStats,
    EntityOutcome,
    EntityState,
    ProgressCallback,
)
from streamvault.services.reconciliation import merge_show_details
from streamvault.utils.constants import TRUSTED_IMAGE_HOST
from streamvault.utils.helpers import utc_now_iso


def is_show_enriched(show: Show) -> bool:
    """True si la serie porte deja les donnees TMDB (rien a refaire)."""
    return bool(
        show.description
        and show.total_seasons
        and show.cast_details
        and show.poster_url
        and TRUSTED_IMAGE_HOST in show.poster_url
    )


class ShowEnricherService:
    """
    Service pour enrichir les metadonnees TMDB des series.

    Les series deja enrichies sont ignorees sauf en mode force, ce qui rend
    une relance sure et peu couteuse.
    """

    def __init__(self, metadata_client: IMetadataClient, driver: BatchDriver) -> None:
        self._client = metadata_client
        self._driver = driver

    async def enrich_shows(
        self,
        document: RecordDocument,
        force: bool = False,
        only_show_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchStats:
        """
        Enrichit les series du document.

        Args:
            document: Document charge (modifie en place)
            force: Retraiter aussi les series deja enrichies
            only_show_id: Limiter a une serie
            on_progress: Callback de progression optionnel

        Returns:
            Statistiques du lot
        """
        shows = [
            s for s in document.shows.values()
            if only_show_id is None or s.id == only_show_id
        ]

        async def process(show: Show, outcome: EntityOutcome) -> None:
            if not force and is_show_enriched(show):
                outcome.skip("deja enrichie")
                return
            await self._enrich_one(show, outcome)

        return await self._driver.run(
            shows,
            process,
            describe=lambda s: (s.id, s.title or s.id),
            on_progress=on_progress,
        )

    async def _enrich_one(self, show: Show, outcome: EntityOutcome) -> None:
        """Enrichit une seule serie depuis TMDB."""
        outcome.advance(EntityState.SEARCHING)
        tmdb_id = await self._client.search_title(show.title, MediaKind.SHOW)
        if not tmdb_id:
            raise NotFoundError(f"Aucun resultat TMDB pour '{show.title}'")
        outcome.advance(EntityState.FOUND)

        outcome.advance(EntityState.FETCHING)
        details = await self._client.fetch_detail(tmdb_id, MediaKind.SHOW)
        if details is None:
            raise NotFoundError(f"Details TMDB indisponibles (id {tmdb_id})")
        outcome.advance(EntityState.FETCHED)

        changed = merge_show_details(show, details)
        if changed:
            show.updated_at = utc_now_iso()
            outcome.updated += 1
