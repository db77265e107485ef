"""
Service d'ajout des horodatages de creation manquants.

Les series et films sans createdAt heritent de la date de l'article de blog
qui les reference, sinon du 1er juin de leur annee de sortie, sinon d'une
date de repli fixe.
"""

from typing import Optional, Union

from streamvault.core.entities import Movie, RecordDocument, Show
from streamvault.services.batch import (
    BatchDriver,
    BatchStats,
    EntityOutcome,
    ProgressCallback,
)
from streamvault.services.reconciliation import backfill_timestamps


class TimestampBackfillService:
    """Renseigne createdAt/updatedAt des series et films."""

    def __init__(self, driver: BatchDriver) -> None:
        self._driver = driver

    async def backfill(
        self,
        document: RecordDocument,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchStats:
        """Traite toutes les series puis tous les films du document."""
        entities: list[Union[Show, Movie]] = [
            *document.shows.values(),
            *document.movies.values(),
        ]

        async def process(entity: Union[Show, Movie], outcome: EntityOutcome) -> None:
            post = document.blog_post_for_content(entity.id) if entity.id else None
            if backfill_timestamps(entity, post):
                outcome.updated += 1

        return await self._driver.run(entities, process, on_progress=on_progress)
