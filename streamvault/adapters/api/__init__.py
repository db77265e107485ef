"""
Client API externe pour l'enrichissement des metadonnees.

- TMDBClient : The Movie Database (series, films, saisons, episodes, societes)

Infrastructure partagee:
- APICache: Cache persistant avec TTL differencies (recherche 24h, details 7j)
- RateLimitError: Exception pour les erreurs 429
- with_retry / request_with_retry: Retry a backoff lineaire (tenacity)

Le client implemente IMetadataClient defini dans core/ports/api_clients.py.
"""

from streamvault.adapters.api.cache import APICache
from streamvault.adapters.api.retry import RateLimitError, request_with_retry, with_retry
from streamvault.adapters.api.tmdb_client import TMDBClient

__all__ = [
    "APICache",
    "RateLimitError",
    "TMDBClient",
    "request_with_retry",
    "with_retry",
]
