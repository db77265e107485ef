"""
Tests unitaires pour les services hors ligne : deduplication et horodatages.
"""

import pytest

from streamvault.core.entities import BlogPost, Episode, Movie, RecordDocument, Show
from streamvault.services.batch import BatchDriver
from streamvault.services.dedup_service import DedupService
from streamvault.services.reconciliation import DuplicateGroup
from streamvault.services.timestamp_backfill import TimestampBackfillService
from streamvault.utils.constants import FALLBACK_CREATED_AT, PLACEHOLDER_VIDEO_URL


@pytest.fixture
def duplicated_document(sample_document: RecordDocument) -> RecordDocument:
    """Ajoute un doublon factice de l'episode reel S01E01 et une autre serie."""
    sample_document.add_episode(
        Episode(
            id="ep-dup",
            show_id="show-peaky",
            season=1,
            episode_number=1,
            title="Episode 1",
            google_drive_url=PLACEHOLDER_VIDEO_URL,
        )
    )
    sample_document.shows["show-dark"] = Show(id="show-dark", title="Dark")
    sample_document.add_episode(
        Episode(id="dark-1", show_id="show-dark", season=1, episode_number=1, title="Secrets")
    )
    return sample_document


class TestDedupService:
    """Tests pour DedupService."""

    @pytest.mark.asyncio
    async def test_removes_lower_scored_duplicate(
        self, duplicated_document: RecordDocument, driver: BatchDriver
    ) -> None:
        groups: list[DuplicateGroup] = []

        stats = await DedupService(driver).dedupe_episodes(duplicated_document, groups=groups)

        assert stats.removed == 1
        assert stats.skipped == 1
        assert "ep-dup" not in duplicated_document.episodes
        assert "ep-real" in duplicated_document.episodes
        assert groups[0].kept.id == "ep-real"

    @pytest.mark.asyncio
    async def test_dry_run_keeps_document(
        self, duplicated_document: RecordDocument, driver: BatchDriver
    ) -> None:
        stats = await DedupService(driver).dedupe_episodes(duplicated_document, dry_run=True)

        assert stats.removed == 1
        assert "ep-dup" in duplicated_document.episodes

    @pytest.mark.asyncio
    async def test_second_run_removes_nothing(
        self, duplicated_document: RecordDocument, driver: BatchDriver
    ) -> None:
        service = DedupService(driver)
        await service.dedupe_episodes(duplicated_document)

        stats = await service.dedupe_episodes(duplicated_document)

        assert stats.removed == 0
        assert not stats.changed

    @pytest.mark.asyncio
    async def test_only_show_filter(
        self, duplicated_document: RecordDocument, driver: BatchDriver
    ) -> None:
        stats = await DedupService(driver).dedupe_episodes(
            duplicated_document, only_show_id="show-dark"
        )

        assert stats.total == 1
        assert stats.removed == 0
        assert "ep-dup" in duplicated_document.episodes

    @pytest.mark.asyncio
    async def test_incomplete_episodes_ignored(
        self, sample_document: RecordDocument, driver: BatchDriver
    ) -> None:
        sample_document.add_episode(Episode(id="orphan", show_id="show-peaky", title="?"))

        stats = await DedupService(driver).dedupe_episodes(sample_document)

        assert stats.failed == 0
        assert "orphan" in sample_document.episodes


class TestTimestampBackfill:
    """Tests pour TimestampBackfillService."""

    @pytest.mark.asyncio
    async def test_backfills_shows_and_movies(self, driver: BatchDriver) -> None:
        document = RecordDocument(
            shows={"s1": Show(id="s1", title="Dark", year=2017)},
            movies={
                "m1": Movie(id="m1", title="Inception"),
                "m2": Movie(id="m2", title="Old", created_at="2022-01-01T00:00:00.000Z"),
            },
            blog_posts={
                "p1": BlogPost(id="p1", content_id="m1", created_at="2023-05-05T12:00:00.000Z")
            },
        )

        stats = await TimestampBackfillService(driver).backfill(document)

        assert stats.total == 3
        assert stats.updated == 3
        assert document.shows["s1"].created_at == "2017-06-01T00:00:00.000Z"
        assert document.movies["m1"].created_at == "2023-05-05T12:00:00.000Z"
        assert document.movies["m2"].updated_at == "2022-01-01T00:00:00.000Z"

    @pytest.mark.asyncio
    async def test_second_run_changes_nothing(self, driver: BatchDriver) -> None:
        document = RecordDocument(movies={"m1": Movie(id="m1", title="X")})
        service = TimestampBackfillService(driver)
        await service.backfill(document)

        stats = await service.backfill(document)

        assert document.movies["m1"].created_at == FALLBACK_CREATED_AT
        assert not stats.changed
        assert stats.skipped == 1
