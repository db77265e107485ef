"""
Interfaces ports pour le client de metadonnees.

Interfaces abstraites (ports) definissant le contrat de la source de
metadonnees externe (TMDB). L'adaptateur HTTP concret vit dans
adapters/api/tmdb_client.py.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class MediaKind(str, Enum):
    """Type de contenu recherche cote API."""

    SHOW = "show"
    MOVIE = "movie"

    @property
    def api_segment(self) -> str:
        """Segment d'URL TMDB correspondant ("tv" ou "movie")."""
        return "tv" if self is MediaKind.SHOW else "movie"


@dataclass
class CastMember:
    """Membre de la distribution avec photo et personnage."""

    name: str
    character: str = ""
    profile_url: Optional[str] = None


@dataclass
class Company:
    """Societe de production."""

    id: Optional[int]
    name: str
    logo_url: Optional[str] = None
    country: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None


@dataclass
class MediaDetails:
    """
    Informations detaillees d'une serie ou d'un film.

    Attributs :
        id : ID specifique a l'API
        title : Titre
        year : Annee de sortie/diffusion
        overview : Resume
        genres : Noms de genre
        language : Code langue originale (ex: "en")
        vote_average : Note moyenne (0-10)
        number_of_seasons : Nombre de saisons (series)
        runtime_minutes : Duree en minutes (films)
        poster_url / backdrop_url : URLs completes des images
        content_rating : Classification US (ex: "TV-MA", "PG-13")
        cast : Noms des acteurs principaux
        cast_members : Distribution detaillee (photos, personnages)
        creators : Createurs (series)
        directors : Realisateurs (films)
        production_companies : Societes de production
        homepage : Site officiel
    """

    id: str
    title: str
    year: Optional[int] = None
    overview: Optional[str] = None
    genres: tuple[str, ...] = ()
    language: Optional[str] = None
    vote_average: Optional[float] = None
    number_of_seasons: Optional[int] = None
    runtime_minutes: Optional[int] = None
    poster_url: Optional[str] = None
    backdrop_url: Optional[str] = None
    content_rating: Optional[str] = None
    cast: tuple[str, ...] = ()
    cast_members: tuple[CastMember, ...] = ()
    creators: tuple[str, ...] = ()
    directors: tuple[str, ...] = ()
    production_companies: tuple[Company, ...] = ()
    homepage: Optional[str] = None


@dataclass
class EpisodeDetails:
    """
    Detail d'un episode depuis l'API.

    Ne contient jamais de reference video : celle-ci vient
    exclusivement de l'appelant.
    """

    season: int
    episode_number: int
    name: Optional[str] = None
    overview: Optional[str] = None
    still_url: Optional[str] = None
    runtime: Optional[int] = None
    air_date: Optional[str] = None


@dataclass
class SeasonDetails:
    """Detail d'une saison avec la liste de ses episodes."""

    season_number: int
    name: Optional[str] = None
    overview: Optional[str] = None
    air_date: Optional[str] = None
    poster_url: Optional[str] = None
    episodes: list[EpisodeDetails] = field(default_factory=list)

    def episode(self, episode_number: int) -> Optional[EpisodeDetails]:
        """Retourne l'episode de ce numero, ou None."""
        return next(
            (e for e in self.episodes if e.episode_number == episode_number),
            None,
        )


class IMetadataClient(ABC):
    """
    Interface de la source de metadonnees en lecture seule.

    Toutes les methodes retournent None pour NOT_FOUND et levent
    TransientNetworkError apres epuisement des tentatives reseau.
    """

    @abstractmethod
    async def search_title(self, title: str, kind: MediaKind) -> Optional[str]:
        """
        Traduit un titre en identifiant externe.

        Essaie les variantes du titre dans l'ordre et garde le premier
        resultat de la premiere variante qui en produit.
        """
        ...

    @abstractmethod
    async def fetch_detail(
        self, media_id: str, kind: MediaKind
    ) -> Optional[MediaDetails]:
        """Recupere les metadonnees completes d'un identifiant connu."""
        ...

    @abstractmethod
    async def fetch_season(
        self, media_id: str, season: int
    ) -> Optional[SeasonDetails]:
        """Recupere une saison complete d'une serie."""
        ...

    @abstractmethod
    async def fetch_episode_detail(
        self, media_id: str, season: int, episode_number: int
    ) -> Optional[EpisodeDetails]:
        """Recupere le detail d'un episode precis."""
        ...

    @abstractmethod
    async def fetch_external_links(
        self, media_id: str, kind: MediaKind
    ) -> Optional[dict[str, Optional[str]]]:
        """Recupere les liens externes (IMDb, reseaux sociaux, Wikidata)."""
        ...

    @abstractmethod
    async def fetch_company(self, company_id: int) -> Optional[Company]:
        """Recupere le detail d'une societe de production."""
        ...

    @property
    @abstractmethod
    def source(self) -> str:
        """Retourne l'identifiant de la source API (ex: 'tmdb')."""
        ...
