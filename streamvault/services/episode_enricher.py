"""
Service de reparation et d'ajout d'episodes depuis les saisons TMDB.

- fix_episodes : remplace les valeurs provisoires (titre "Episode N",
  description de template, vignette de banque d'images, duree ou date de
  diffusion manquantes) par les donnees TMDB de la saison. Si TMDB n'a pas
  de vignette, le backdrop de la serie remplace la photo generique.
- add_episodes : cree les episodes manquants d'une saison, avec les
  references video fournies par l'appelant (jamais par TMDB).
"""

import asyncio
from typing import Optional

from loguru import logger

from streamvault.core.entities import Episode, RecordDocument, Show
from streamvault.core.errors import NotFoundError, ValidationError
from streamvault.core.ports.api_clients import IMetadataClient, MediaKind, SeasonDetails
from streamvault.services.batch import (
    BatchDriver,
    BatchStats,
    EntityOutcome,
    EntityState,
    ProgressCallback,
)
from streamvault.services.reconciliation import (
    EpisodeOverrides,
    UpsertAction,
    is_generic_title,
    is_placeholder_air_date,
    is_placeholder_description,
    is_placeholder_thumbnail,
    upsert_episode,
)
from streamvault.utils.helpers import extract_drive_file_id, utc_now_iso


def needs_repair(episode: Episode) -> bool:
    """True si au moins un champ de l'episode est encore provisoire."""
    return (
        not episode.title
        or is_generic_title(episode.title)
        or is_placeholder_description(episode.description)
        or is_placeholder_thumbnail(episode.thumbnail_url)
        or not episode.duration
        or is_placeholder_air_date(episode.air_date)
    )


class EpisodeEnricherService:
    """
    Service pour reparer et completer les episodes des series.

    Les appels de saison d'une meme serie sont espaces de
    ``episode_delay_seconds`` ; les series le sont par le pilote de lots.
    """

    def __init__(
        self,
        metadata_client: IMetadataClient,
        driver: BatchDriver,
        episode_delay_seconds: float = 0.1,
    ) -> None:
        self._client = metadata_client
        self._driver = driver
        self._episode_delay_seconds = episode_delay_seconds

    @staticmethod
    def resolve_show(document: RecordDocument, key: str) -> Optional[Show]:
        """Retrouve une serie par id ou par slug."""
        return document.shows.get(key) or document.show_by_slug(key)

    async def _search_show(self, show: Show, outcome: EntityOutcome) -> str:
        outcome.advance(EntityState.SEARCHING)
        tmdb_id = await self._client.search_title(show.title, MediaKind.SHOW)
        if not tmdb_id:
            raise NotFoundError(f"Aucun resultat TMDB pour '{show.title}'")
        outcome.advance(EntityState.FOUND)
        return tmdb_id

    async def _fetch_season(
        self, tmdb_id: str, season: int, outcome: EntityOutcome
    ) -> Optional[SeasonDetails]:
        outcome.advance(EntityState.FETCHING)
        details = await self._client.fetch_season(tmdb_id, season)
        outcome.advance(EntityState.FETCHED)
        if details is None:
            logger.info("Saison absente de TMDB", show=outcome.label, season=season)
        return details

    # ------------------------------------------------------------------
    # fix-episodes
    # ------------------------------------------------------------------

    async def fix_episodes(
        self,
        document: RecordDocument,
        only_show_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchStats:
        """
        Repare les episodes provisoires de chaque serie.

        Args:
            document: Document charge (modifie en place)
            only_show_id: Limiter a une serie
            on_progress: Callback de progression optionnel

        Returns:
            Statistiques du lot (une entite = une serie ; updated compte les episodes)
        """
        shows = [
            s for s in document.shows.values()
            if only_show_id is None or s.id == only_show_id
        ]

        async def process(show: Show, outcome: EntityOutcome) -> None:
            to_fix = [e for e in document.episodes_for_show(show.id) if needs_repair(e)]
            if not to_fix:
                outcome.skip("aucun episode a reparer")
                return
            await self._fix_show(show, to_fix, outcome)

        return await self._driver.run(
            shows,
            process,
            describe=lambda s: (s.id, s.title or s.id),
            on_progress=on_progress,
        )

    async def _fix_show(
        self, show: Show, episodes: list[Episode], outcome: EntityOutcome
    ) -> None:
        by_season: dict[int, list[Episode]] = {}
        for episode in episodes:
            if episode.season is None or episode.episode_number is None:
                logger.warning(
                    "Episode sans saison/numero ignore",
                    show=show.title,
                    episode_id=episode.id,
                )
                continue
            by_season.setdefault(episode.season, []).append(episode)

        if not by_season:
            raise ValidationError(f"Aucun episode exploitable pour '{show.title}'")

        tmdb_id = await self._search_show(show, outcome)
        fallback = EpisodeOverrides(thumbnail_url=show.backdrop_url)

        for index, season in enumerate(sorted(by_season)):
            if index > 0 and self._episode_delay_seconds > 0:
                await asyncio.sleep(self._episode_delay_seconds)

            details = await self._fetch_season(tmdb_id, season, outcome)
            for episode in sorted(by_season[season], key=lambda e: e.episode_number):
                fetched = details.episode(episode.episode_number) if details else None
                result = upsert_episode(episode, fetched, fallback)
                if result.action == UpsertAction.UPDATED:
                    outcome.updated += 1
                    logger.debug(
                        "Episode repare",
                        show=show.title,
                        episode=episode.label,
                        fields=list(result.changed_fields),
                    )

    # ------------------------------------------------------------------
    # add-episodes
    # ------------------------------------------------------------------

    async def add_episodes(
        self,
        document: RecordDocument,
        show_id: str,
        season: int,
        video_refs: dict[int, str],
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchStats:
        """
        Cree les episodes manquants d'une saison.

        Seuls les episodes pour lesquels une reference video est fournie sont
        crees ; les episodes existants recoivent la reference si la leur est
        absente ou factice.

        Args:
            document: Document charge (modifie en place)
            show_id: Serie cible
            season: Numero de saison
            video_refs: Numero d'episode -> URL Google Drive ou id de fichier
            on_progress: Callback de progression optionnel

        Raises:
            ValidationError: Serie inconnue ou numero de saison invalide
        """
        show = document.shows.get(show_id)
        if show is None:
            raise ValidationError(f"Serie inconnue: {show_id}")
        if season < 1:
            raise ValidationError(f"Numero de saison invalide: {season}")

        refs = {n: extract_drive_file_id(url) for n, url in video_refs.items() if url.strip()}

        async def process(target: Show, outcome: EntityOutcome) -> None:
            tmdb_id = await self._search_show(target, outcome)
            details = await self._fetch_season(tmdb_id, season, outcome)
            if details is None:
                raise NotFoundError(f"Saison {season} introuvable pour '{target.title}'")
            self._add_season(document, target, details, refs, outcome)

        return await self._driver.run(
            [show],
            process,
            describe=lambda s: (s.id, f"{s.title} S{season:02d}"),
            on_progress=on_progress,
        )

    def _add_season(
        self,
        document: RecordDocument,
        show: Show,
        details: SeasonDetails,
        refs: dict[int, str],
        outcome: EntityOutcome,
    ) -> None:
        skipped: list[int] = []
        for fetched in details.episodes:
            number = fetched.episode_number
            existing = document.find_episode(show.id, details.season_number, number)
            ref = refs.get(number)

            if existing is None and ref is None:
                skipped.append(number)
                continue

            result = upsert_episode(
                existing,
                fetched,
                EpisodeOverrides(google_drive_url=ref, thumbnail_url=show.backdrop_url),
                show_id=show.id,
            )
            if result.action == UpsertAction.CREATED:
                document.add_episode(result.episode)
                outcome.created += 1
                logger.info("Episode ajoute", show=show.title, episode=result.episode.label)
            elif result.action == UpsertAction.UPDATED:
                outcome.updated += 1

        if skipped:
            outcome.reason = f"sans reference video: {', '.join(map(str, skipped))}"
            logger.info("Episodes non crees (pas de video)", show=show.title, episodes=skipped)

        if outcome.created:
            if not show.total_seasons or show.total_seasons < details.season_number:
                show.total_seasons = details.season_number
            show.updated_at = utc_now_iso()
