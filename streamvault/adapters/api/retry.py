"""
Mecanisme de retry avec backoff lineaire pour l'API de metadonnees.

Les erreurs de connexion et les timeouts (httpx.TransportError) ainsi que
les reponses 429 sont relances un nombre fixe de fois avec un delai
croissant lineairement (1s x numero de tentative). Les autres erreurs HTTP
(4xx, 5xx) sont propagees immediatement sans retry.

Usage:
    # Avec le decorateur
    @with_retry(max_attempts=3)
    async def my_api_call():
        ...

    # Avec la fonction helper
    response = await request_with_retry(client, "GET", url)
"""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

import httpx
from loguru import logger
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from streamvault.core.errors import TransientNetworkError

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 1.0


class RateLimitError(TransientNetworkError):
    """
    Exception levee quand l'API retourne 429 Too Many Requests.

    Attributes:
        retry_after: Nombre de secondes a attendre (depuis le header Retry-After),
                     ou None si non specifie.
    """

    def __init__(self, retry_after: Optional[int] = None) -> None:
        self.retry_after = retry_after
        super().__init__(f"Rate limited. Retry after: {retry_after}s")


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    """
    Convertit un header Retry-After en secondes.

    Accepte un nombre de secondes ou une date HTTP. Une date passee donne 0,
    une valeur illisible donne None.
    """
    if not value:
        return None
    value = value.strip()
    if value.isdigit():
        return int(value)
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    delta = (when - datetime.now(timezone.utc)).total_seconds()
    return max(0, int(delta))


def _log_retry(retry_state: RetryCallState) -> None:
    """Trace chaque nouvelle tentative."""
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Erreur transitoire, nouvelle tentative",
        attempt=retry_state.attempt_number,
        error=type(exc).__name__ if exc else None,
    )


def with_retry(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
):
    """
    Decorateur pour relancer sur erreur transitoire avec backoff lineaire.

    Le delai avant la tentative n+1 vaut backoff_seconds x n.

    Args:
        max_attempts: Nombre maximum de tentatives (defaut: 3)
        backoff_seconds: Increment du delai entre tentatives (defaut: 1s)

    Returns:
        Decorateur a appliquer sur une fonction async
    """
    return retry(
        retry=retry_if_exception_type((httpx.TransportError, RateLimitError)),
        wait=wait_incrementing(start=backoff_seconds, increment=backoff_seconds),
        stop=stop_after_attempt(max_attempts),
        before_sleep=_log_retry,
        reraise=True,
    )


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
    **kwargs,
) -> httpx.Response:
    """
    Execute une requete HTTP avec retry automatique sur erreur transitoire.

    Args:
        client: Client httpx async a utiliser
        method: Methode HTTP (GET, POST, etc.)
        url: URL a appeler
        max_attempts: Nombre maximum de tentatives (defaut: 3)
        backoff_seconds: Increment du delai entre tentatives
        **kwargs: Arguments supplementaires passes a client.request()

    Returns:
        httpx.Response en cas de succes

    Raises:
        RateLimitError: Si 429 apres epuisement des tentatives
        TransientNetworkError: Si connexion/timeout apres epuisement des tentatives
        httpx.HTTPStatusError: Pour les autres erreurs HTTP (jamais relancees)
    """

    @with_retry(max_attempts=max_attempts, backoff_seconds=backoff_seconds)
    async def _do_request() -> httpx.Response:
        response = await client.request(method, url, **kwargs)
        if response.status_code == 429:
            raise RateLimitError(parse_retry_after(response.headers.get("Retry-After")))
        response.raise_for_status()
        return response

    try:
        return await _do_request()
    except httpx.TransportError as e:
        raise TransientNetworkError(
            f"{type(e).__name__} apres {max_attempts} tentative(s): {url}",
            url=url,
        ) from e
