"""
Fixtures pytest partagees pour les tests StreamVault.

Ce module contient les fixtures communes utilisees dans les tests:
- Entites type (serie, film, episodes placeholder/reels)
- Document en memoire et magasin JSON temporaire
- Mock du client de metadonnees (IMetadataClient)
- Pilote de lots sans delai
"""

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest

from streamvault.adapters.persistence import JsonRecordStore
from streamvault.core.entities import Episode, Movie, RecordDocument, Show
from streamvault.core.ports.api_clients import IMetadataClient
from streamvault.services.batch import BatchDriver
from streamvault.utils.constants import PLACEHOLDER_AIR_DATE, PLACEHOLDER_VIDEO_URL

SHOW_ID = "show-peaky"


@pytest.fixture
def sample_show() -> Show:
    """Serie non enrichie (pas de note IMDb ni de distribution)."""
    return Show(
        id=SHOW_ID,
        title="Peaky Blinders",
        slug="peaky-blinders",
        description="",
        year=2013,
        genres="Crime, Drama",
        featured=False,
        created_at="2024-03-01T10:00:00.000Z",
        updated_at="2024-03-01T10:00:00.000Z",
    )


@pytest.fixture
def sample_movie() -> Movie:
    """Film non enrichi."""
    return Movie(
        id="movie-inception",
        title="Inception",
        slug="inception",
        year=2010,
        google_drive_url="1AbCdEfGhIjK",
    )


@pytest.fixture
def placeholder_episode() -> Episode:
    """Episode jamais rempli : titre generique, description et video factices."""
    return Episode(
        id="ep-placeholder",
        show_id=SHOW_ID,
        season=1,
        episode_number=2,
        title="Episode 2",
        description="In this exciting episode of Peaky Blinders...",
        thumbnail_url="https://images.unsplash.com/photo-123",
        duration=45,
        google_drive_url=PLACEHOLDER_VIDEO_URL,
        air_date=PLACEHOLDER_AIR_DATE,
    )


@pytest.fixture
def real_episode() -> Episode:
    """Episode complet, avec une vraie video."""
    return Episode(
        id="ep-real",
        show_id=SHOW_ID,
        season=1,
        episode_number=1,
        title="The Shelby Company",
        description="Thomas Shelby plans a move into legitimate business.",
        thumbnail_url="https://image.tmdb.org/t/p/w500/still-101.jpg",
        duration=58,
        google_drive_url="1RealDriveFileId",
        air_date="2013-09-13",
    )


@pytest.fixture
def sample_document(
    sample_show: Show,
    sample_movie: Movie,
    real_episode: Episode,
    placeholder_episode: Episode,
) -> RecordDocument:
    """Document contenant une serie, un film et deux episodes."""
    document = RecordDocument(
        shows={sample_show.id: sample_show},
        movies={sample_movie.id: sample_movie},
    )
    document.add_episode(real_episode)
    document.add_episode(placeholder_episode)
    return document


@pytest.fixture
def raw_document() -> dict[str, Any]:
    """Document JSON brut, avec cles historiques et cles inconnues."""
    return {
        "shows": [
            {
                "id": SHOW_ID,
                "title": "Peaky Blinders",
                "slug": "peaky-blinders",
                "genres": ["Crime", "Drama"],
                "imdbRating": None,
                "createdAt": "2024-03-01T10:00:00.000Z",
                "customBadge": "new",
            }
        ],
        "episodes": [
            {
                "id": "ep-legacy",
                "showId": SHOW_ID,
                "seasonNumber": 1,
                "episode": "3",
                "title": "Episode 3",
                "googleDriveUrl": "1LegacyId",
            },
            {
                "id": "ep-canonical",
                "showId": SHOW_ID,
                "season": 1,
                "episodeNumber": 1,
                "title": "Episode 1",
                "description": "",
            },
        ],
        "movies": [],
        "blogPosts": [],
        "comments": [],
        "contentRequests": [
            {"id": "req-1", "contentType": "movie", "title": "Dune", "requestCount": 4},
        ],
        "issueReports": [],
        "siteSettings": {"maintenance": False},
        "lastUpdated": "2024-03-01T10:00:00.000Z",
    }


@pytest.fixture
def store_path(tmp_path: Path, raw_document: dict[str, Any]) -> Path:
    """Fichier magasin temporaire initialise avec raw_document."""
    path = tmp_path / "streamvault-data.json"
    path.write_text(json.dumps(raw_document, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def json_store(store_path: Path) -> JsonRecordStore:
    """Magasin JSON sur fichier temporaire."""
    return JsonRecordStore(store_path)


@pytest.fixture
def mock_metadata_client() -> AsyncMock:
    """
    Mock de IMetadataClient.

    Aucun resultat par defaut ; configurer les retours dans chaque test.
    """
    client = AsyncMock(spec=IMetadataClient)
    client.search_title.return_value = None
    client.fetch_detail.return_value = None
    client.fetch_season.return_value = None
    client.fetch_episode_detail.return_value = None
    client.fetch_external_links.return_value = None
    client.fetch_company.return_value = None
    return client


@pytest.fixture
def driver() -> BatchDriver:
    """Pilote de lots sans pause entre entites."""
    return BatchDriver(delay_seconds=0)
