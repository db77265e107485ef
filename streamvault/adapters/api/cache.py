"""
Cache persistant des reponses TMDB avec TTL differencies.

Le cache utilise diskcache pour la persistence sur disque : relancer un
script de maintenance ne refait pas les recherches deja resolues.

TTL par defaut:
- Recherches (SEARCH_TTL): 24 heures - un titre peut etre ajoute cote TMDB
- Details (DETAILS_TTL): 7 jours - series, films, saisons, societes
"""

import asyncio
from functools import partial
from pathlib import Path
from typing import Any, Optional, Union

from diskcache import Cache


class APICache:
    """
    Cache asynchrone avec TTL pour les appels API.

    Utilise diskcache pour la persistence et run_in_executor pour
    ne pas bloquer la boucle d'evenements.

    Example:
        cache = APICache(cache_dir=".cache/tmdb")
        key = APICache.make_key("tmdb", "search", "tv", "dark")
        await cache.set_search(key, "70523")
        tmdb_id = await cache.get(key)
    """

    SEARCH_TTL = 24 * 60 * 60  # 24 heures en secondes (86400)
    DETAILS_TTL = 7 * 24 * 60 * 60  # 7 jours en secondes (604800)

    def __init__(self, cache_dir: Union[str, Path] = ".cache/tmdb") -> None:
        self._cache = Cache(cache_dir)

    @staticmethod
    def make_key(*parts: Any) -> str:
        """Construit une cle 'a:b:c' normalisee (minuscules)."""
        return ":".join(str(p).strip().lower() for p in parts)

    async def get(self, key: str) -> Optional[Any]:
        """Retourne la valeur stockee ou None si absente ou expiree."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._cache.get, key)

    async def set(self, key: str, value: Any, ttl: int) -> None:
        """
        Stocke une valeur avec une duree de vie.

        Args:
            key: Cle unique
            value: Valeur picklable
            ttl: Duree de vie en secondes
        """
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None, partial(self._cache.set, key, value, expire=ttl)
        )

    async def set_search(self, key: str, value: Any) -> None:
        """Stocke un resultat de recherche (TTL de 24h)."""
        await self.set(key, value, self.SEARCH_TTL)

    async def set_details(self, key: str, value: Any) -> None:
        """Stocke un detail (serie, film, saison, episode, societe ; TTL de 7 jours)."""
        await self.set(key, value, self.DETAILS_TTL)

    async def clear(self) -> None:
        """Supprime toutes les entrees du cache."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._cache.clear)

    def __len__(self) -> int:
        """Nombre d'entrees presentes (expirees comprises)."""
        return len(self._cache)

    def close(self) -> None:
        """Ferme la connexion au cache (a appeler a la fin)."""
        self._cache.close()
