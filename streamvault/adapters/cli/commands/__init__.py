"""Sous-package CLI commands - re-exporte les commandes publiques."""

from streamvault.adapters.cli.commands.enrichment_commands import (
    add_episodes,
    enrich_movies,
    enrich_production_info,
    enrich_shows,
    fix_episodes,
)
from streamvault.adapters.cli.commands.maintenance_commands import (
    backfill_timestamps,
    clear_cache,
    dedupe_episodes,
    list_comments,
    search_catalog,
    store_stats,
)

__all__ = [
    # enrichissement TMDB
    "enrich_shows",
    "enrich_movies",
    "fix_episodes",
    "add_episodes",
    "enrich_production_info",
    # maintenance hors ligne
    "dedupe_episodes",
    "backfill_timestamps",
    "store_stats",
    "search_catalog",
    "list_comments",
    "clear_cache",
]
