"""
Catalog entities.

Shows, movies and episodes as stored in the StreamVault record store.
Field names are Python-side; the JSON codec maps them to the camelCase
keys of the document.

Every entity keeps the JSON keys the domain does not model in ``extra``,
so that a load/save cycle never loses data written by other tools.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class Show:
    """
    TV show record.

    Attributes:
        id: Stable identifier (UUID string)
        title: Display title
        slug: URL-safe unique key derived from the title
        description: Synopsis
        poster_url: Poster image URL
        backdrop_url: Backdrop image URL (also used as fallback episode thumbnail)
        year: First air year
        rating: Content rating (e.g. "TV-MA")
        imdb_rating: Rating as a string (e.g. "8.5")
        genres: Comma-separated string or list, as found in the document
        language: Display language name
        total_seasons: Number of seasons
        cast: Comma-separated main cast or list
        cast_details: JSON-encoded list of cast members with photos
        creators: Comma-separated creators
        featured / trending: Home page flags
        category: Browse category ("action", "drama", ...)
        created_at / updated_at: ISO-8601 timestamps
    """

    id: str = ""
    title: str = ""
    slug: Optional[str] = None
    description: Optional[str] = None
    poster_url: Optional[str] = None
    backdrop_url: Optional[str] = None
    year: Optional[int] = None
    rating: Optional[str] = None
    imdb_rating: Optional[str] = None
    genres: Any = None
    language: Optional[str] = None
    total_seasons: Optional[int] = None
    cast: Any = None
    cast_details: Optional[str] = None
    creators: Optional[str] = None
    featured: Optional[bool] = None
    trending: Optional[bool] = None
    category: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)
    present_fields: frozenset[str] = field(
        default_factory=frozenset, repr=False, compare=False
    )


@dataclass
class Movie:
    """
    Movie record.

    Same descriptive metadata as Show, with a single video reference
    (``google_drive_url``) and a runtime in minutes.
    """

    id: str = ""
    title: str = ""
    slug: Optional[str] = None
    description: Optional[str] = None
    poster_url: Optional[str] = None
    backdrop_url: Optional[str] = None
    year: Optional[int] = None
    rating: Optional[str] = None
    imdb_rating: Optional[str] = None
    genres: Any = None
    language: Optional[str] = None
    duration: Optional[int] = None
    cast: Any = None
    cast_details: Optional[str] = None
    directors: Optional[str] = None
    google_drive_url: Optional[str] = None
    featured: Optional[bool] = None
    trending: Optional[bool] = None
    category: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)
    present_fields: frozenset[str] = field(
        default_factory=frozenset, repr=False, compare=False
    )


@dataclass
class Episode:
    """
    Individual episode of a show.

    The natural key is the identity triple (show_id, season, episode_number).

    Attributes:
        id: Stable identifier
        show_id: Reference to the owning Show
        season: Season number (1-indexed)
        episode_number: Episode number within the season (1-indexed)
        title: Episode title ("Episode N" when never filled in)
        description: Episode synopsis
        thumbnail_url: Still image URL
        duration: Runtime in minutes
        google_drive_url: Primary video reference (file id or preview URL)
        video_url: Optional alternate video URL
        air_date: Original air date (YYYY-MM-DD)
        has_season_field: True when the stored record carried the canonical
            ``season`` key (older records only had ``seasonNumber``)
    """

    id: str = ""
    show_id: Optional[str] = None
    season: Optional[int] = None
    episode_number: Optional[int] = None
    title: str = ""
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: Optional[int] = None
    google_drive_url: Optional[str] = None
    video_url: Optional[str] = None
    air_date: Optional[str] = None
    has_season_field: bool = field(default=True, compare=False)
    extra: dict[str, Any] = field(default_factory=dict)
    present_fields: frozenset[str] = field(
        default_factory=frozenset, repr=False, compare=False
    )

    @property
    def identity(self) -> tuple[Optional[str], Optional[int], Optional[int]]:
        """Retourne le triplet d'identite (show_id, season, episode_number)."""
        return (self.show_id, self.season, self.episode_number)

    @property
    def label(self) -> str:
        """Libelle court de type S01E07."""
        season = self.season if self.season is not None else 0
        number = self.episode_number if self.episode_number is not None else 0
        return f"S{season:02d}E{number:02d}"
