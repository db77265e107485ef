"""
Tests unitaires pour les commandes CLI.

Tests couvrant:
- enrich-shows / fix-episodes / add-episodes : delegation au service et resume
- dedupe-episodes : suppression reelle et mode simulation sur un vrai fichier
- stats, search, comments, clear-cache : consultation et entretien
- Erreurs fatales : cle TMDB absente, magasin illisible -> code de sortie 1
- parse_video_refs : options --video et --videos-file
- Application Typer : aide et version
"""

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import typer
from rich.table import Table
from typer.testing import CliRunner

from streamvault import __version__
from streamvault.adapters.cli.commands.enrichment_commands import (
    _add_episodes_async,
    _enrich_movies_async,
    _enrich_shows_async,
    _fix_episodes_async,
    parse_video_refs,
)
from streamvault.adapters.cli.commands.maintenance_commands import (
    _backfill_timestamps_async,
    _clear_cache_async,
    _comments_async,
    _dedupe_episodes_async,
    _search_async,
    _stats_async,
)
from streamvault.adapters.persistence import JsonRecordStore
from streamvault.core.errors import PersistenceError
from streamvault.main import app
from streamvault.services.batch import BatchDriver, BatchStats
from streamvault.services.dedup_service import DedupService
from streamvault.services.timestamp_backfill import TimestampBackfillService
from streamvault.utils.constants import PLACEHOLDER_VIDEO_URL

_ENRICH = "streamvault.adapters.cli.commands.enrichment_commands"
_MAINT = "streamvault.adapters.cli.commands.maintenance_commands"

runner = CliRunner()


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def mock_container(json_store: JsonRecordStore):
    """Mock le Container pour les tests.

    Patche Container dans helpers.py car c'est la que le decorateur
    @with_container() l'importe et l'instancie. Le magasin est un vrai
    fichier temporaire.
    """
    with patch("streamvault.adapters.cli.helpers.Container") as mock_cls, \
         patch("streamvault.adapters.cli.helpers.install_cancel_handler"):
        container_instance = MagicMock()
        mock_cls.return_value = container_instance
        container_instance.config.return_value = MagicMock(tmdb_enabled=True)
        container_instance.record_store.return_value = json_store
        container_instance.tmdb_client.return_value.close = AsyncMock()
        yield container_instance


@pytest.fixture
def store_with_duplicate(store_path: Path) -> Path:
    """Ajoute au magasin un doublon factice de S01E01."""
    data = json.loads(store_path.read_text(encoding="utf-8"))
    data["episodes"].append(
        {
            "id": "ep-dup",
            "showId": "show-peaky",
            "season": 1,
            "episodeNumber": 1,
            "title": "Episode 1",
            "googleDriveUrl": PLACEHOLDER_VIDEO_URL,
        }
    )
    data["episodes"][1]["googleDriveUrl"] = "1RealFileId"
    store_path.write_text(json.dumps(data), encoding="utf-8")
    return store_path


# ============================================================================
# Enrichissement TMDB
# ============================================================================


class TestEnrichmentCommands:

    @pytest.mark.asyncio
    async def test_enrich_shows_delegates_and_saves(
        self, mock_container, store_path: Path
    ) -> None:
        service = mock_container.show_enricher_service.return_value
        service.enrich_shows = AsyncMock(
            return_value=BatchStats(total=1, processed=1, updated=1)
        )

        with patch(f"{_ENRICH}.console"):
            await _enrich_shows_async(force=True, show="peaky-blinders")

        kwargs = service.enrich_shows.await_args.kwargs
        assert kwargs["force"] is True
        assert kwargs["only_show_id"] == "show-peaky"
        saved = json.loads(store_path.read_text(encoding="utf-8"))
        assert saved["lastUpdated"] != "2024-03-01T10:00:00.000Z"
        mock_container.tmdb_client.return_value.close.assert_awaited_once()
        mock_container.api_cache.return_value.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_unchanged_store_not_rewritten(
        self, mock_container, store_path: Path
    ) -> None:
        before = store_path.read_text(encoding="utf-8")
        service = mock_container.show_enricher_service.return_value
        service.enrich_shows = AsyncMock(return_value=BatchStats(total=1, processed=1, skipped=1))

        with patch(f"{_ENRICH}.console"):
            await _enrich_shows_async(force=False, show=None)

        assert store_path.read_text(encoding="utf-8") == before

    @pytest.mark.asyncio
    async def test_unknown_show_exits(self, mock_container) -> None:
        with patch(f"{_ENRICH}.console"):
            with pytest.raises(typer.Exit) as exc_info:
                await _fix_episodes_async(show="absent")

        assert exc_info.value.exit_code == 1

    @pytest.mark.asyncio
    async def test_missing_api_key_exits(self, mock_container) -> None:
        mock_container.config.return_value.tmdb_enabled = False

        with patch("streamvault.adapters.cli.helpers.console"):
            with pytest.raises(typer.Exit) as exc_info:
                await _enrich_shows_async(force=False, show=None)

        assert exc_info.value.exit_code == 1
        mock_container.show_enricher_service.assert_not_called()

    @pytest.mark.asyncio
    async def test_persistence_error_exits(self, mock_container) -> None:
        broken = MagicMock()
        broken.load.side_effect = PersistenceError("JSON invalide")
        mock_container.record_store.return_value = broken

        with patch("streamvault.adapters.cli.helpers.console") as mock_console:
            with pytest.raises(typer.Exit) as exc_info:
                await _enrich_shows_async(force=False, show=None)

        assert exc_info.value.exit_code == 1
        printed = " ".join(str(c.args[0]) for c in mock_console.print.call_args_list)
        assert "JSON invalide" in printed

    @pytest.mark.asyncio
    async def test_enrich_movies_unknown_movie_exits(self, mock_container) -> None:
        with patch(f"{_ENRICH}.console"):
            with pytest.raises(typer.Exit) as exc_info:
                await _enrich_movies_async(force=False, movie="absent")

        assert exc_info.value.exit_code == 1
        mock_container.movie_enricher_service.return_value.enrich_movies.assert_not_called()

    @pytest.mark.asyncio
    async def test_add_episodes_passes_refs(self, mock_container) -> None:
        service = mock_container.episode_enricher_service.return_value
        service.add_episodes = AsyncMock(return_value=BatchStats(total=1, processed=1, created=2))

        with patch(f"{_ENRICH}.console"):
            await _add_episodes_async(show="show-peaky", season=2, refs={1: "1A", 2: "1B"})

        args = service.add_episodes.await_args.args
        assert args[1:] == ("show-peaky", 2, {1: "1A", 2: "1B"})


# ============================================================================
# Maintenance hors ligne
# ============================================================================


class TestMaintenanceCommands:

    @pytest.mark.asyncio
    async def test_dedupe_removes_duplicate(
        self, mock_container, store_with_duplicate: Path
    ) -> None:
        mock_container.dedup_service.return_value = DedupService(BatchDriver(delay_seconds=0))

        with patch(f"{_MAINT}.console"):
            await _dedupe_episodes_async(show=None, dry_run=False)

        saved = json.loads(store_with_duplicate.read_text(encoding="utf-8"))
        ids = [e["id"] for e in saved["episodes"]]
        assert "ep-dup" not in ids
        assert "ep-canonical" in ids

    @pytest.mark.asyncio
    async def test_dedupe_dry_run_writes_nothing(
        self, mock_container, store_with_duplicate: Path
    ) -> None:
        before = store_with_duplicate.read_text(encoding="utf-8")
        mock_container.dedup_service.return_value = DedupService(BatchDriver(delay_seconds=0))

        with patch(f"{_MAINT}.console"):
            await _dedupe_episodes_async(show=None, dry_run=True)

        assert store_with_duplicate.read_text(encoding="utf-8") == before

    @pytest.mark.asyncio
    async def test_backfill_timestamps(self, mock_container, store_path: Path) -> None:
        mock_container.timestamp_backfill_service.return_value = TimestampBackfillService(
            BatchDriver(delay_seconds=0)
        )

        with patch(f"{_MAINT}.console"):
            await _backfill_timestamps_async()

        saved = json.loads(store_path.read_text(encoding="utf-8"))
        assert saved["shows"][0]["updatedAt"] == "2024-03-01T10:00:00.000Z"

    @pytest.mark.asyncio
    async def test_stats_prints_tables(self, mock_container) -> None:
        with patch(f"{_MAINT}.console") as mock_console:
            await _stats_async(top=5)

        tables = [c.args[0] for c in mock_console.print.call_args_list if isinstance(c.args[0], Table)]
        assert [t.title for t in tables] == ["Magasin StreamVault", "Contenus les plus demandes"]


# ============================================================================
# parse_video_refs
# ============================================================================


class TestParseVideoRefs:

    def test_inline_values(self) -> None:
        refs = parse_video_refs(["1=https://drive.google.com/file/d/abc/view", "2= 1XyZ "], None)

        assert refs == {1: "https://drive.google.com/file/d/abc/view", 2: "1XyZ"}

    def test_file_then_inline_override(self, tmp_path: Path) -> None:
        path = tmp_path / "videos.json"
        path.write_text(json.dumps({"1": "1FromFile", "3": "1Third"}), encoding="utf-8")

        refs = parse_video_refs(["1=1Inline"], path)

        assert refs == {1: "1Inline", 3: "1Third"}

    @pytest.mark.parametrize("value", ["1", "x=url", "2=", "=url"])
    def test_malformed_value_rejected(self, value: str) -> None:
        with pytest.raises(typer.BadParameter):
            parse_video_refs([value], None)

    def test_malformed_file_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "videos.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(typer.BadParameter):
            parse_video_refs([], path)


# ============================================================================
# Application Typer
# ============================================================================


class TestApp:

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for name in (
            "enrich-shows", "fix-episodes", "add-episodes", "dedupe-episodes",
            "stats", "search", "comments", "clear-cache",
        ):
            assert name in result.output

    def test_version(self) -> None:
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert f"StreamVault v{__version__}" in result.output

    def test_info_output_is_ascii(self) -> None:
        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0
        assert "API TMDB :" in result.output
        assert result.output.isascii()

    def test_add_episodes_rejects_season_zero(self) -> None:
        result = runner.invoke(app, ["add-episodes", "show-peaky", "0"])

        assert result.exit_code != 0


# ============================================================================
# Consultation du magasin et cache
# ============================================================================


@pytest.fixture
def store_with_comments(store_path: Path) -> Path:
    """Ajoute un film et des commentaires au magasin de test."""
    data = json.loads(store_path.read_text(encoding="utf-8"))
    data["movies"].append({"id": "movie-dune", "title": "Dune", "slug": "dune", "year": 2021})
    data["comments"].extend(
        [
            {"id": "c1", "movieId": "movie-dune", "userName": "ana", "comment": "Superbe",
             "createdAt": "2024-01-01T00:00:00.000Z"},
            {"id": "c2", "movieId": "movie-dune", "userName": "bo", "comment": "D'accord",
             "parentId": "c1", "createdAt": "2024-02-01T00:00:00.000Z"},
            {"id": "c3", "episodeId": "ep-canonical", "userName": "cy", "comment": "Enfin",
             "createdAt": "2024-01-15T00:00:00.000Z"},
        ]
    )
    store_path.write_text(json.dumps(data), encoding="utf-8")
    return store_path


def _printed_tables(mock_console) -> list[Table]:
    return [c.args[0] for c in mock_console.print.call_args_list if isinstance(c.args[0], Table)]


class TestCatalogCommands:

    @pytest.mark.asyncio
    async def test_search_lists_shows_and_movies(
        self, mock_container, store_with_comments: Path
    ) -> None:
        with patch(f"{_MAINT}.console") as mock_console:
            await _search_async(query="u")

        tables = _printed_tables(mock_console)
        assert len(tables) == 1
        assert tables[0].row_count == 1
        assert list(tables[0].columns[1].cells) == ["movie-dune"]

    @pytest.mark.asyncio
    async def test_search_show_counts_episodes(self, mock_container) -> None:
        with patch(f"{_MAINT}.console") as mock_console:
            await _search_async(query="PEAKY")

        table = _printed_tables(mock_console)[0]
        assert list(table.columns[0].cells) == ["serie (2 ep.)"]

    @pytest.mark.asyncio
    async def test_search_without_result(self, mock_container) -> None:
        with patch(f"{_MAINT}.console") as mock_console:
            await _search_async(query="zzyzx")

        assert _printed_tables(mock_console) == []

    @pytest.mark.asyncio
    async def test_movie_comments_by_slug_newest_first(
        self, mock_container, store_with_comments: Path
    ) -> None:
        with patch(f"{_MAINT}.console") as mock_console:
            await _comments_async(target="dune")

        table = _printed_tables(mock_console)[0]
        assert list(table.columns[1].cells) == ["bo", "ana"]
        assert list(table.columns[3].cells) == ["c1", ""]

    @pytest.mark.asyncio
    async def test_episode_comments(self, mock_container, store_with_comments: Path) -> None:
        with patch(f"{_MAINT}.console") as mock_console:
            await _comments_async(target="ep-canonical")

        table = _printed_tables(mock_console)[0]
        assert list(table.columns[2].cells) == ["Enfin"]

    @pytest.mark.asyncio
    async def test_comments_unknown_target_exits(self, mock_container) -> None:
        with patch(f"{_MAINT}.console"):
            with pytest.raises(typer.Exit) as exc_info:
                await _comments_async(target="absent")

        assert exc_info.value.exit_code == 1

    @pytest.mark.asyncio
    async def test_clear_cache(self, mock_container) -> None:
        cache = MagicMock()
        cache.__len__.return_value = 3
        cache.clear = AsyncMock()
        mock_container.api_cache.return_value = cache

        with patch(f"{_MAINT}.console") as mock_console:
            await _clear_cache_async()

        cache.clear.assert_awaited_once()
        cache.close.assert_called_once()
        assert "3 entree(s)" in mock_console.print.call_args.args[0]


class TestVerbosity:

    @pytest.mark.parametrize("flag, level", [("-q", "ERROR"), ("-v", "DEBUG")])
    def test_flags_reconfigure_logging(self, flag: str, level: str) -> None:
        with patch("streamvault.main._reconfigure_logging") as mock_reconfigure:
            result = runner.invoke(app, [flag, "version"])

        assert result.exit_code == 0
        mock_reconfigure.assert_called_once_with(level)
