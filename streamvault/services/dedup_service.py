"""
Service de deduplication des episodes.

Regroupe les episodes de chaque serie par triplet (show_id, season,
episode_number), garde le plus complet (voir score_episode) et supprime les
autres du document.
"""

from typing import Optional

from loguru import logger

from streamvault.core.entities import Episode, RecordDocument
from streamvault.services.batch import (
    BatchDriver,
    BatchStats,
    EntityOutcome,
    ProgressCallback,
)
from streamvault.services.reconciliation import DuplicateGroup, deduplicate


class DedupService:
    """Supprime les doublons d'episodes, serie par serie."""

    def __init__(self, driver: BatchDriver) -> None:
        self._driver = driver

    async def dedupe_episodes(
        self,
        document: RecordDocument,
        only_show_id: Optional[str] = None,
        dry_run: bool = False,
        groups: Optional[list[DuplicateGroup]] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchStats:
        """
        Deduplique les episodes du document.

        Args:
            document: Document charge (modifie en place sauf en simulation)
            only_show_id: Limiter a une serie
            dry_run: Compter les suppressions sans toucher au document
            groups: Liste remplie avec le detail des groupes en conflit
            on_progress: Callback de progression optionnel

        Returns:
            Statistiques (removed = episodes supprimes ou a supprimer)
        """
        by_show: dict[str, list[Episode]] = {}
        for episode in document.episodes.values():
            if not episode.show_id:
                logger.warning("Episode sans serie ignore", episode_id=episode.id)
                continue
            if only_show_id is not None and episode.show_id != only_show_id:
                continue
            by_show.setdefault(episode.show_id, []).append(episode)

        def describe(item: tuple[str, list[Episode]]) -> tuple[str, str]:
            show_id = item[0]
            show = document.shows.get(show_id)
            return show_id, show.title if show else show_id

        async def process(item: tuple[str, list[Episode]], outcome: EntityOutcome) -> None:
            show_id, episodes = item
            valid = []
            for episode in episodes:
                if episode.season is None or episode.episode_number is None:
                    logger.warning(
                        "Episode sans saison/numero ignore",
                        show_id=show_id,
                        episode_id=episode.id,
                    )
                    continue
                valid.append(episode)

            result = deduplicate(valid)
            if not result.remove:
                outcome.skip("aucun doublon")
                return

            for group in result.groups:
                logger.info(
                    "Doublon resolu",
                    show=outcome.label,
                    episode=group.kept.label,
                    kept=group.kept.id,
                    kept_score=group.scores[group.kept.id],
                    removed=[e.id for e in group.removed],
                )
            if groups is not None:
                groups.extend(result.groups)

            if dry_run:
                outcome.removed = len(result.remove)
            else:
                outcome.removed = document.remove_episodes(result.remove)

        return await self._driver.run(
            list(by_show.items()),
            process,
            describe=describe,
            on_progress=on_progress,
        )
