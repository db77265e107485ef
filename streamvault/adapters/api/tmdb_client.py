"""
Client TMDB pour la recherche et recuperation de metadonnees.

Implemente l'interface IMetadataClient pour TMDB (The Movie Database).
Utilise le cache persistant (optionnel) et le mecanisme de retry pour
les erreurs reseau transitoires.

Usage:
    cache = APICache()
    client = TMDBClient(api_key="your_key", cache=cache)
    tmdb_id = await client.search_title("Dark", MediaKind.SHOW)
    details = await client.fetch_detail(tmdb_id, MediaKind.SHOW)
    await client.close()
"""

import asyncio
from typing import Any, Optional

import httpx
from loguru import logger

from streamvault.adapters.api.cache import APICache
from streamvault.adapters.api.retry import (
    DEFAULT_BACKOFF_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    request_with_retry,
)
from streamvault.core.ports.api_clients import (
    CastMember,
    Company,
    EpisodeDetails,
    IMetadataClient,
    MediaDetails,
    MediaKind,
    SeasonDetails,
)
from streamvault.utils.constants import (
    BACKDROP_SIZE,
    EXTERNAL_LINK_TEMPLATES,
    LOGO_SIZE,
    MAX_CAST_DETAILS,
    MAX_CAST_NAMES,
    POSTER_SIZE,
    PROFILE_SIZE,
    STILL_SIZE,
    TMDB_BASE_URL,
)
from streamvault.utils.helpers import title_variants, tmdb_image_url

# Sentinelle stockee en cache pour une recherche sans resultat
_NO_RESULT = ""


def _year_of(date_str: Optional[str]) -> Optional[int]:
    """Extrait l'annee d'une date YYYY-MM-DD."""
    if date_str and len(date_str) >= 4 and date_str[:4].isdigit():
        return int(date_str[:4])
    return None


class TMDBClient(IMetadataClient):
    """
    Client API TMDB pour les series, films, saisons et episodes.

    Implemente IMetadataClient avec:
    - Recherche par titre avec variantes (titre complet, avant ':', avant '-',
      espaces normalises)
    - Details serie/film avec credits, classification et societes
    - Saisons et episodes
    - Cache persistant optionnel (24h recherches, 7j details)
    - Retry sur erreurs de connexion, timeouts et 429

    Example:
        client = TMDBClient(api_key="xxx")
        tmdb_id = await client.search_title("Peaky Blinders", MediaKind.SHOW)
        if tmdb_id:
            season = await client.fetch_season(tmdb_id, 1)
        await client.close()
    """

    def __init__(
        self,
        api_key: str,
        cache: Optional[APICache] = None,
        language: str = "en-US",
        timeout: float = 30.0,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        variant_delay_seconds: float = 0.1,
        base_url: str = TMDB_BASE_URL,
    ) -> None:
        """
        Initialise le client TMDB.

        Args:
            api_key: Cle API v3 ou Read Access Token v4
            cache: Cache persistant optionnel
            language: Langue des metadonnees (ex: "en-US")
            timeout: Timeout par requete en secondes
            max_attempts: Tentatives sur erreur transitoire
            backoff_seconds: Increment du delai entre tentatives
            variant_delay_seconds: Pause entre deux variantes de recherche
            base_url: URL de base de l'API
        """
        self._api_key = api_key
        self._cache = cache
        self._language = language
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._backoff_seconds = backoff_seconds
        self._variant_delay_seconds = variant_delay_seconds
        self._base_url = base_url
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """
        Retourne le client HTTP, le cree si necessaire (lazy init).

        Supporte les deux modes d'authentification TMDB:
        - API Key v3 (32 caracteres hex) : passe en parametre api_key
        - Read Access Token v4 (long JWT) : passe en header Bearer
        """
        if self._client is None or self._client.is_closed:
            is_v4_token = len(self._api_key) > 40

            headers = {"Accept": "application/json", "User-Agent": "StreamVault/1.0"}
            params = {}

            if is_v4_token:
                headers["Authorization"] = f"Bearer {self._api_key}"
            else:
                params["api_key"] = self._api_key

            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                params=params,
                timeout=self._timeout,
            )
        return self._client

    @property
    def source(self) -> str:
        """Retourne l'identifiant de la source API."""
        return "tmdb"

    async def _get(self, path: str, **params: Any) -> Optional[dict]:
        """
        GET JSON avec retry ; une reponse 4xx/5xx vaut NOT_FOUND (None).

        Raises:
            TransientNetworkError: connexion/timeout/429 apres epuisement des tentatives
        """
        client = self._get_client()
        try:
            response = await request_with_retry(
                client,
                "GET",
                path,
                max_attempts=self._max_attempts,
                backoff_seconds=self._backoff_seconds,
                params={"language": self._language, **params},
            )
        except httpx.HTTPStatusError as e:
            logger.debug(
                "Reponse TMDB en erreur",
                path=path,
                status=e.response.status_code,
            )
            return None
        return response.json()

    async def _cached(self, key: str) -> Optional[Any]:
        if self._cache is None:
            return None
        return await self._cache.get(key)

    # ------------------------------------------------------------------
    # Recherche
    # ------------------------------------------------------------------

    async def search_title(self, title: str, kind: MediaKind) -> Optional[str]:
        """
        Recherche un identifiant TMDB a partir d'un titre.

        Les variantes sont essayees dans l'ordre ; le premier resultat de la
        premiere variante non vide est retenu (pas de scoring flou).

        Args:
            title: Titre tel que stocke dans le catalogue
            kind: Serie ou film

        Returns:
            ID TMDB, ou None si aucune variante ne donne de resultat
        """
        for index, query in enumerate(title_variants(title)):
            if index > 0 and self._variant_delay_seconds > 0:
                await asyncio.sleep(self._variant_delay_seconds)

            cache_key = APICache.make_key("tmdb", "search", kind.api_segment, query)
            cached = await self._cached(cache_key)
            if cached is not None:
                if cached != _NO_RESULT:
                    return cached
                continue

            data = await self._get(
                f"/search/{kind.api_segment}",
                query=query,
                include_adult="false",
            )
            results = (data or {}).get("results") or []
            found = str(results[0]["id"]) if results else _NO_RESULT

            if self._cache is not None and data is not None:
                await self._cache.set_search(cache_key, found)

            if found:
                logger.debug("Titre trouve sur TMDB", title=title, query=query, tmdb_id=found)
                return found

        logger.debug("Titre introuvable sur TMDB", title=title, kind=kind.value)
        return None

    # ------------------------------------------------------------------
    # Details
    # ------------------------------------------------------------------

    async def fetch_detail(
        self, media_id: str, kind: MediaKind
    ) -> Optional[MediaDetails]:
        """
        Recupere les details complets d'une serie ou d'un film.

        Les series incluent aggregate_credits et content_ratings ; les films
        incluent credits et release_dates.

        Returns:
            MediaDetails, ou None si non trouve
        """
        cache_key = APICache.make_key("tmdb", kind.api_segment, media_id)
        cached = await self._cached(cache_key)
        if cached is not None:
            return cached

        if kind is MediaKind.SHOW:
            append = "aggregate_credits,content_ratings"
        else:
            append = "credits,release_dates"
        data = await self._get(
            f"/{kind.api_segment}/{media_id}", append_to_response=append
        )
        if data is None:
            return None

        details = (
            self._parse_show(data) if kind is MediaKind.SHOW else self._parse_movie(data)
        )
        if self._cache is not None:
            await self._cache.set_details(cache_key, details)
        return details

    def _parse_common(self, data: dict) -> dict[str, Any]:
        """Champs communs series/films."""
        companies = tuple(
            Company(
                id=c.get("id"),
                name=c.get("name", ""),
                logo_url=tmdb_image_url(c.get("logo_path"), LOGO_SIZE),
                country=c.get("origin_country") or None,
            )
            for c in data.get("production_companies") or []
        )
        return {
            "id": str(data["id"]),
            "overview": data.get("overview") or None,
            "genres": tuple(g["name"] for g in data.get("genres") or [] if g.get("name")),
            "language": data.get("original_language"),
            "vote_average": data.get("vote_average"),
            "poster_url": tmdb_image_url(data.get("poster_path"), POSTER_SIZE),
            "backdrop_url": tmdb_image_url(data.get("backdrop_path"), BACKDROP_SIZE),
            "production_companies": companies,
            "homepage": data.get("homepage") or None,
        }

    def _parse_show(self, data: dict) -> MediaDetails:
        # Distribution triee par nombre d'episodes (series a distribution tournante)
        credits = data.get("aggregate_credits") or data.get("credits") or {}
        cast_list = sorted(
            credits.get("cast") or [],
            key=lambda c: c.get("total_episode_count") or 0,
            reverse=True,
        )
        cast_members = tuple(
            CastMember(
                name=c["name"],
                character=((c.get("roles") or [{}])[0].get("character") or c.get("character") or ""),
                profile_url=tmdb_image_url(c.get("profile_path"), PROFILE_SIZE),
            )
            for c in cast_list[:MAX_CAST_DETAILS]
            if c.get("name")
        )

        content_rating = None
        for rating in (data.get("content_ratings") or {}).get("results") or []:
            if rating.get("iso_3166_1") == "US":
                content_rating = rating.get("rating") or None
                break

        run_times = data.get("episode_run_time") or []
        return MediaDetails(
            title=data.get("name") or data.get("original_name", ""),
            year=_year_of(data.get("first_air_date")),
            number_of_seasons=data.get("number_of_seasons"),
            runtime_minutes=run_times[0] if run_times else None,
            content_rating=content_rating,
            cast=tuple(m.name for m in cast_members[:MAX_CAST_NAMES]),
            cast_members=cast_members,
            creators=tuple(c["name"] for c in data.get("created_by") or [] if c.get("name")),
            **self._parse_common(data),
        )

    def _parse_movie(self, data: dict) -> MediaDetails:
        credits = data.get("credits") or {}
        cast_members = tuple(
            CastMember(
                name=c["name"],
                character=c.get("character") or "",
                profile_url=tmdb_image_url(c.get("profile_path"), PROFILE_SIZE),
            )
            for c in (credits.get("cast") or [])[:MAX_CAST_DETAILS]
            if c.get("name")
        )
        directors = tuple(
            c["name"] for c in credits.get("crew") or [] if c.get("job") == "Director"
        )

        content_rating = None
        for country in (data.get("release_dates") or {}).get("results") or []:
            if country.get("iso_3166_1") != "US":
                continue
            for release in country.get("release_dates") or []:
                if release.get("certification"):
                    content_rating = release["certification"]
                    break
            break

        return MediaDetails(
            title=data.get("title") or data.get("original_title", ""),
            year=_year_of(data.get("release_date")),
            runtime_minutes=data.get("runtime") or None,
            content_rating=content_rating,
            cast=tuple(m.name for m in cast_members[:MAX_CAST_NAMES]),
            cast_members=cast_members,
            directors=directors,
            **self._parse_common(data),
        )

    # ------------------------------------------------------------------
    # Saisons et episodes
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_episode(item: dict, season: int) -> EpisodeDetails:
        return EpisodeDetails(
            season=item.get("season_number", season),
            episode_number=item["episode_number"],
            name=item.get("name") or None,
            overview=item.get("overview") or None,
            still_url=tmdb_image_url(item.get("still_path"), STILL_SIZE),
            runtime=item.get("runtime") or None,
            air_date=item.get("air_date") or None,
        )

    async def fetch_season(
        self, media_id: str, season: int
    ) -> Optional[SeasonDetails]:
        """
        Recupere une saison et la liste de ses episodes.

        Returns:
            SeasonDetails, ou None si la saison n'existe pas
        """
        cache_key = APICache.make_key("tmdb", "tv", media_id, "season", season)
        cached = await self._cached(cache_key)
        if cached is not None:
            return cached

        data = await self._get(f"/tv/{media_id}/season/{season}")
        if data is None:
            return None

        details = SeasonDetails(
            season_number=data.get("season_number", season),
            name=data.get("name") or None,
            overview=data.get("overview") or None,
            air_date=data.get("air_date") or None,
            poster_url=tmdb_image_url(data.get("poster_path"), POSTER_SIZE),
            episodes=[
                self._parse_episode(item, season)
                for item in data.get("episodes") or []
                if item.get("episode_number") is not None
            ],
        )
        if self._cache is not None:
            await self._cache.set_details(cache_key, details)
        return details

    async def fetch_episode_detail(
        self, media_id: str, season: int, episode_number: int
    ) -> Optional[EpisodeDetails]:
        """Recupere le detail d'un episode (None si inexistant)."""
        data = await self._get(
            f"/tv/{media_id}/season/{season}/episode/{episode_number}"
        )
        if data is None or data.get("episode_number") is None:
            return None
        return self._parse_episode(data, season)

    # ------------------------------------------------------------------
    # Liens externes et societes
    # ------------------------------------------------------------------

    async def fetch_external_links(
        self, media_id: str, kind: MediaKind
    ) -> Optional[dict[str, Optional[str]]]:
        """
        Recupere les IDs externes et les compose en URLs.

        Returns:
            Dictionnaire {imdb, facebook, twitter, instagram, wikidata},
            valeurs None si absentes ; None si non trouve
        """
        data = await self._get(f"/{kind.api_segment}/{media_id}/external_ids")
        if data is None:
            return None

        links: dict[str, Optional[str]] = {}
        for name, (field_name, template) in EXTERNAL_LINK_TEMPLATES.items():
            value = data.get(field_name)
            links[name] = template.format(value) if value else None
        return links

    async def fetch_company(self, company_id: int) -> Optional[Company]:
        """Recupere le detail d'une societe de production."""
        cache_key = APICache.make_key("tmdb", "company", company_id)
        cached = await self._cached(cache_key)
        if cached is not None:
            return cached

        data = await self._get(f"/company/{company_id}")
        if data is None:
            return None

        company = Company(
            id=data.get("id", company_id),
            name=data.get("name", ""),
            logo_url=tmdb_image_url(data.get("logo_path"), LOGO_SIZE),
            country=data.get("origin_country") or None,
            website=data.get("homepage") or None,
            description=data.get("description") or None,
        )
        if self._cache is not None:
            await self._cache.set_details(cache_key, company)
        return company

    async def close(self) -> None:
        """
        Ferme le client HTTP.

        Doit etre appele a la fin de l'utilisation pour liberer
        les ressources reseau.
        """
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
