"""
Tests pour TMDBClient - implementation du client de metadonnees TMDB.

Utilise respx pour simuler les appels httpx et verifie:
- La recherche essaie les variantes de titre et retient le premier resultat
- Les details serie/film sont convertis en MediaDetails
- Le cache est consulte AVANT l'appel API (cache-first)
- Les 4xx/5xx valent "non trouve", les timeouts sont relances
"""

from unittest.mock import AsyncMock

import httpx
import pytest
import respx

from streamvault.adapters.api.cache import APICache
from streamvault.adapters.api.tmdb_client import TMDBClient
from streamvault.core.errors import TransientNetworkError
from streamvault.core.ports.api_clients import (
    IMetadataClient,
    MediaDetails,
    MediaKind,
    SeasonDetails,
)
from tests.fixtures.tmdb_responses import (
    TMDB_COMPANY_RESPONSE,
    TMDB_EPISODE_RESPONSE,
    TMDB_EXTERNAL_IDS_RESPONSE,
    TMDB_MOVIE_DETAILS_RESPONSE,
    TMDB_NOT_FOUND_RESPONSE,
    TMDB_SEARCH_EMPTY_RESPONSE,
    TMDB_SEARCH_MOVIE_RESPONSE,
    TMDB_SEARCH_TV_RESPONSE,
    TMDB_SEASON_RESPONSE,
    TMDB_TV_DETAILS_RESPONSE,
)

BASE = "https://api.themoviedb.org/3"


@pytest.fixture
def mock_cache() -> AsyncMock:
    """APICache simule : miss par defaut."""
    cache = AsyncMock(spec=APICache)
    cache.get.return_value = None
    return cache


@pytest.fixture
def tmdb_client(mock_cache: AsyncMock) -> TMDBClient:
    """TMDBClient sans delais, avec cache simule."""
    return TMDBClient(
        api_key="test_api_key",
        cache=mock_cache,
        backoff_seconds=0,
        variant_delay_seconds=0,
    )


class TestTMDBClientInterface:
    """TMDBClient respecte le port IMetadataClient."""

    def test_implements_interface(self, tmdb_client: TMDBClient) -> None:
        assert isinstance(tmdb_client, IMetadataClient)

    def test_source_property_returns_tmdb(self, tmdb_client: TMDBClient) -> None:
        assert tmdb_client.source == "tmdb"


class TestAuthentication:
    """Choix du mode d'authentification selon la longueur de la cle."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_v3_key_sent_as_query_param(self) -> None:
        route = respx.get(f"{BASE}/search/tv").mock(
            return_value=httpx.Response(200, json=TMDB_SEARCH_TV_RESPONSE)
        )
        client = TMDBClient(api_key="a" * 32, variant_delay_seconds=0)

        await client.search_title("Peaky Blinders", MediaKind.SHOW)
        await client.close()

        request = route.calls.last.request
        assert request.url.params["api_key"] == "a" * 32
        assert "Authorization" not in request.headers

    @pytest.mark.asyncio
    @respx.mock
    async def test_v4_token_sent_as_bearer(self) -> None:
        token = "eyJ" + "x" * 80
        route = respx.get(f"{BASE}/search/tv").mock(
            return_value=httpx.Response(200, json=TMDB_SEARCH_TV_RESPONSE)
        )
        client = TMDBClient(api_key=token, variant_delay_seconds=0)

        await client.search_title("Peaky Blinders", MediaKind.SHOW)
        await client.close()

        request = route.calls.last.request
        assert request.headers["Authorization"] == f"Bearer {token}"
        assert "api_key" not in request.url.params


class TestSearchTitle:
    """Tests pour TMDBClient.search_title()."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_returns_first_result_id(
        self, tmdb_client: TMDBClient, mock_cache: AsyncMock
    ) -> None:
        route = respx.get(f"{BASE}/search/tv").mock(
            return_value=httpx.Response(200, json=TMDB_SEARCH_TV_RESPONSE)
        )

        tmdb_id = await tmdb_client.search_title("Peaky Blinders", MediaKind.SHOW)

        assert tmdb_id == "60574"
        params = route.calls.last.request.url.params
        assert params["query"] == "Peaky Blinders"
        assert params["include_adult"] == "false"
        assert params["language"] == "en-US"
        mock_cache.set_search.assert_called_once_with(
            "tmdb:search:tv:peaky blinders", "60574"
        )

    @pytest.mark.asyncio
    @respx.mock
    async def test_movie_search_uses_movie_endpoint(self, tmdb_client: TMDBClient) -> None:
        respx.get(f"{BASE}/search/movie").mock(
            return_value=httpx.Response(200, json=TMDB_SEARCH_MOVIE_RESPONSE)
        )

        assert await tmdb_client.search_title("Inception", MediaKind.MOVIE) == "27205"

    @pytest.mark.asyncio
    @respx.mock
    async def test_falls_back_to_variant_before_colon(self, tmdb_client: TMDBClient) -> None:
        """Le titre complet ne donne rien, la partie avant ':' trouve la serie."""
        route = respx.get(f"{BASE}/search/tv").mock(
            side_effect=[
                httpx.Response(200, json=TMDB_SEARCH_EMPTY_RESPONSE),
                httpx.Response(200, json=TMDB_SEARCH_TV_RESPONSE),
            ]
        )

        tmdb_id = await tmdb_client.search_title(
            "Peaky Blinders: The Complete Series", MediaKind.SHOW
        )

        assert tmdb_id == "60574"
        queries = [c.request.url.params["query"] for c in route.calls]
        assert queries == ["Peaky Blinders: The Complete Series", "Peaky Blinders"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_no_result_for_any_variant_returns_none(
        self, tmdb_client: TMDBClient, mock_cache: AsyncMock
    ) -> None:
        """Toutes les variantes vides : None, et chaque variante est memorisee."""
        route = respx.get(f"{BASE}/search/tv").mock(
            return_value=httpx.Response(200, json=TMDB_SEARCH_EMPTY_RESPONSE)
        )

        tmdb_id = await tmdb_client.search_title("Zzyzx Road - Director's Cut", MediaKind.SHOW)

        assert tmdb_id is None
        assert route.call_count == 2
        cached_values = [c.args[1] for c in mock_cache.set_search.call_args_list]
        assert cached_values == ["", ""]

    @pytest.mark.asyncio
    @respx.mock
    async def test_cache_hit_skips_api(
        self, tmdb_client: TMDBClient, mock_cache: AsyncMock
    ) -> None:
        mock_cache.get.return_value = "60574"
        route = respx.get(f"{BASE}/search/tv").mock(
            return_value=httpx.Response(200, json=TMDB_SEARCH_TV_RESPONSE)
        )

        assert await tmdb_client.search_title("Peaky Blinders", MediaKind.SHOW) == "60574"
        assert route.call_count == 0

    @pytest.mark.asyncio
    @respx.mock
    async def test_cached_no_result_skips_api(
        self, tmdb_client: TMDBClient, mock_cache: AsyncMock
    ) -> None:
        mock_cache.get.return_value = ""
        route = respx.get(f"{BASE}/search/tv").mock(
            return_value=httpx.Response(200, json=TMDB_SEARCH_TV_RESPONSE)
        )

        assert await tmdb_client.search_title("Peaky Blinders", MediaKind.SHOW) is None
        assert route.call_count == 0


class TestFetchDetail:
    """Tests pour TMDBClient.fetch_detail()."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_show_details_parsed(self, tmdb_client: TMDBClient) -> None:
        route = respx.get(f"{BASE}/tv/60574").mock(
            return_value=httpx.Response(200, json=TMDB_TV_DETAILS_RESPONSE)
        )

        details = await tmdb_client.fetch_detail("60574", MediaKind.SHOW)

        assert isinstance(details, MediaDetails)
        params = route.calls.last.request.url.params
        assert params["append_to_response"] == "aggregate_credits,content_ratings"
        assert details.id == "60574"
        assert details.title == "Peaky Blinders"
        assert details.year == 2013
        assert details.genres == ("Crime", "Drama")
        assert details.number_of_seasons == 6
        assert details.runtime_minutes == 60
        assert details.content_rating == "TV-MA"
        assert details.creators == ("Steven Knight",)
        assert details.poster_url == (
            "https://image.tmdb.org/t/p/w500/vUUqzWa2LnHIVqkaKVlVGkVcZIW.jpg"
        )
        assert details.backdrop_url == (
            "https://image.tmdb.org/t/p/original/wiE9doxiLwq3WCGamDIOb2PqBqc.jpg"
        )
        assert details.homepage == "https://www.bbc.co.uk/programmes/b045fz8r"

    @pytest.mark.asyncio
    @respx.mock
    async def test_show_cast_sorted_by_episode_count(self, tmdb_client: TMDBClient) -> None:
        respx.get(f"{BASE}/tv/60574").mock(
            return_value=httpx.Response(200, json=TMDB_TV_DETAILS_RESPONSE)
        )

        details = await tmdb_client.fetch_detail("60574", MediaKind.SHOW)

        names = [m.name for m in details.cast_members]
        assert names[2:] == ["Helen McCrory", "Tom Hardy"]
        assert set(names[:2]) == {"Paul Anderson", "Cillian Murphy"}
        hardy = details.cast_members[3]
        assert hardy.character == "Alfie Solomons"
        assert hardy.profile_url is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_show_companies_parsed(self, tmdb_client: TMDBClient) -> None:
        respx.get(f"{BASE}/tv/60574").mock(
            return_value=httpx.Response(200, json=TMDB_TV_DETAILS_RESPONSE)
        )

        details = await tmdb_client.fetch_detail("60574", MediaKind.SHOW)

        tiger, caryn = details.production_companies
        assert tiger.id == 7897
        assert tiger.logo_url == "https://image.tmdb.org/t/p/w200/tiger.png"
        assert tiger.country == "GB"
        assert caryn.logo_url is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_movie_details_parsed(self, tmdb_client: TMDBClient) -> None:
        route = respx.get(f"{BASE}/movie/27205").mock(
            return_value=httpx.Response(200, json=TMDB_MOVIE_DETAILS_RESPONSE)
        )

        details = await tmdb_client.fetch_detail("27205", MediaKind.MOVIE)

        params = route.calls.last.request.url.params
        assert params["append_to_response"] == "credits,release_dates"
        assert details.title == "Inception"
        assert details.year == 2010
        assert details.runtime_minutes == 148
        assert details.content_rating == "PG-13"
        assert details.directors == ("Christopher Nolan",)
        assert details.cast == ("Leonardo DiCaprio", "Joseph Gordon-Levitt")
        assert details.cast_members[0].character == "Cobb"

    @pytest.mark.asyncio
    @respx.mock
    async def test_not_found_returns_none(self, tmdb_client: TMDBClient) -> None:
        respx.get(f"{BASE}/tv/999999").mock(
            return_value=httpx.Response(404, json=TMDB_NOT_FOUND_RESPONSE)
        )

        assert await tmdb_client.fetch_detail("999999", MediaKind.SHOW) is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_server_error_returns_none_without_retry(self, tmdb_client: TMDBClient) -> None:
        route = respx.get(f"{BASE}/tv/60574").mock(return_value=httpx.Response(500))

        assert await tmdb_client.fetch_detail("60574", MediaKind.SHOW) is None
        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_two_timeouts_then_success(self, tmdb_client: TMDBClient) -> None:
        """Deux timeouts puis une reponse : le detail est retourne."""
        route = respx.get(f"{BASE}/tv/60574").mock(
            side_effect=[
                httpx.ReadTimeout("timeout"),
                httpx.ReadTimeout("timeout"),
                httpx.Response(200, json=TMDB_TV_DETAILS_RESPONSE),
            ]
        )

        details = await tmdb_client.fetch_detail("60574", MediaKind.SHOW)

        assert details is not None
        assert details.title == "Peaky Blinders"
        assert route.call_count == 3

    @pytest.mark.asyncio
    @respx.mock
    async def test_persistent_timeouts_raise_transient(self, tmdb_client: TMDBClient) -> None:
        respx.get(f"{BASE}/tv/60574").mock(side_effect=httpx.ConnectTimeout("timeout"))

        with pytest.raises(TransientNetworkError):
            await tmdb_client.fetch_detail("60574", MediaKind.SHOW)

    @pytest.mark.asyncio
    @respx.mock
    async def test_cache_first(self, tmdb_client: TMDBClient, mock_cache: AsyncMock) -> None:
        cached = MediaDetails(id="60574", title="Peaky Blinders")
        mock_cache.get.return_value = cached
        route = respx.get(f"{BASE}/tv/60574").mock(
            return_value=httpx.Response(200, json=TMDB_TV_DETAILS_RESPONSE)
        )

        assert await tmdb_client.fetch_detail("60574", MediaKind.SHOW) is cached
        assert route.call_count == 0

    @pytest.mark.asyncio
    @respx.mock
    async def test_result_is_cached(self, tmdb_client: TMDBClient, mock_cache: AsyncMock) -> None:
        respx.get(f"{BASE}/movie/27205").mock(
            return_value=httpx.Response(200, json=TMDB_MOVIE_DETAILS_RESPONSE)
        )

        details = await tmdb_client.fetch_detail("27205", MediaKind.MOVIE)

        mock_cache.set_details.assert_called_once_with("tmdb:movie:27205", details)


class TestSeasonsAndEpisodes:
    """Tests pour fetch_season() et fetch_episode_detail()."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_season(self, tmdb_client: TMDBClient) -> None:
        respx.get(f"{BASE}/tv/60574/season/1").mock(
            return_value=httpx.Response(200, json=TMDB_SEASON_RESPONSE)
        )

        season = await tmdb_client.fetch_season("60574", 1)

        assert isinstance(season, SeasonDetails)
        assert season.season_number == 1
        assert len(season.episodes) == 3
        garrison = season.episode(2)
        assert garrison.name == "The Garrison"
        assert garrison.still_url == "https://image.tmdb.org/t/p/w500/still-102.jpg"
        assert garrison.runtime == 58
        assert garrison.air_date == "2013-09-19"
        third = season.episode(3)
        assert third.still_url is None
        assert third.runtime is None
        assert season.episode(9) is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_season_returns_none(self, tmdb_client: TMDBClient) -> None:
        respx.get(f"{BASE}/tv/60574/season/42").mock(
            return_value=httpx.Response(404, json=TMDB_NOT_FOUND_RESPONSE)
        )

        assert await tmdb_client.fetch_season("60574", 42) is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_episode_detail(self, tmdb_client: TMDBClient) -> None:
        respx.get(f"{BASE}/tv/60574/season/1/episode/2").mock(
            return_value=httpx.Response(200, json=TMDB_EPISODE_RESPONSE)
        )

        episode = await tmdb_client.fetch_episode_detail("60574", 1, 2)

        assert episode.season == 1
        assert episode.episode_number == 2
        assert episode.overview == "Thomas provokes a bitter rivalry."


class TestLinksAndCompanies:
    """Tests pour fetch_external_links() et fetch_company()."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_external_links_composed(self, tmdb_client: TMDBClient) -> None:
        respx.get(f"{BASE}/tv/60574/external_ids").mock(
            return_value=httpx.Response(200, json=TMDB_EXTERNAL_IDS_RESPONSE)
        )

        links = await tmdb_client.fetch_external_links("60574", MediaKind.SHOW)

        assert links == {
            "imdb": "https://www.imdb.com/title/tt2442560",
            "facebook": "https://www.facebook.com/PeakyBlindersOfficial",
            "twitter": None,
            "instagram": "https://www.instagram.com/peakyblindersofficial",
            "wikidata": "https://www.wikidata.org/wiki/Q7157878",
        }

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_company(self, tmdb_client: TMDBClient) -> None:
        respx.get(f"{BASE}/company/7897").mock(
            return_value=httpx.Response(200, json=TMDB_COMPANY_RESPONSE)
        )

        company = await tmdb_client.fetch_company(7897)

        assert company.name == "Tiger Aspect Productions"
        assert company.website == "https://www.tigeraspect.co.uk"
        assert company.description == "British independent television production company."
        assert company.logo_url == "https://image.tmdb.org/t/p/w200/tiger.png"


class TestClose:
    """Tests pour close()."""

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, tmdb_client: TMDBClient) -> None:
        tmdb_client._get_client()
        await tmdb_client.close()
        await tmdb_client.close()
        assert tmdb_client._client is None
