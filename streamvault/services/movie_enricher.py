"""
Service d'enrichissement TMDB pour les films du catalogue.

Meme principe que les series : recherche par titre, details avec credits et
certification US, fusion sans regression.
"""

from typing import Optional

from streamvault.core.entities import Movie, RecordDocument
from streamvault.core.errors import NotFoundError
from streamvault.core.ports.api_clients import IMetadataClient, MediaKind
from streamvault.services.batch import (
    BatchDriver,
    BatchStats,
    EntityOutcome,
    EntityState,
    ProgressCallback,
)
from streamvault.services.reconciliation import merge_movie_details
from streamvault.utils.constants import TRUSTED_IMAGE_HOST
from streamvault.utils.helpers import utc_now_iso


def is_movie_enriched(movie: Movie) -> bool:
    """True si le film porte deja les donnees TMDB."""
    return bool(
        movie.description
        and movie.duration
        and movie.cast_details
        and movie.poster_url
        and TRUSTED_IMAGE_HOST in movie.poster_url
    )


class MovieEnricherService:
    """Service pour enrichir les metadonnees TMDB des films."""

    def __init__(self, metadata_client: IMetadataClient, driver: BatchDriver) -> None:
        self._client = metadata_client
        self._driver = driver

    async def enrich_movies(
        self,
        document: RecordDocument,
        force: bool = False,
        only_movie_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchStats:
        """
        Enrichit les films du document.

        Args:
            document: Document charge (modifie en place)
            force: Retraiter aussi les films deja enrichis
            only_movie_id: Limiter a un film
            on_progress: Callback de progression optionnel
        """

        async def process(movie: Movie, outcome: EntityOutcome) -> None:
            if not force and is_movie_enriched(movie):
                outcome.skip("deja enrichi")
                return

            outcome.advance(EntityState.SEARCHING)
            tmdb_id = await self._client.search_title(movie.title, MediaKind.MOVIE)
            if not tmdb_id:
                raise NotFoundError(f"Aucun resultat TMDB pour '{movie.title}'")
            outcome.advance(EntityState.FOUND)

            outcome.advance(EntityState.FETCHING)
            details = await self._client.fetch_detail(tmdb_id, MediaKind.MOVIE)
            if details is None:
                raise NotFoundError(f"Details TMDB indisponibles (id {tmdb_id})")
            outcome.advance(EntityState.FETCHED)

            if merge_movie_details(movie, details):
                movie.updated_at = utc_now_iso()
                outcome.updated += 1

        movies = [
            m for m in document.movies.values()
            if only_movie_id is None or m.id == only_movie_id
        ]

        return await self._driver.run(
            movies,
            process,
            describe=lambda m: (m.id, m.title or m.id),
            on_progress=on_progress,
        )
