"""
Container d'injection de dependances via dependency-injector.

Centralise la construction du magasin, du client TMDB et des services de
maintenance pour le CLI. La configuration est injectee, jamais lue depuis
des globales de module par les services.
"""

import asyncio

from dependency_injector import containers, providers

from .adapters.api.cache import APICache
from .adapters.api.tmdb_client import TMDBClient
from .adapters.persistence.json_store import JsonRecordStore
from .config import Settings
from .services.batch import BatchDriver
from .services.dedup_service import DedupService
from .services.episode_enricher import EpisodeEnricherService
from .services.movie_enricher import MovieEnricherService
from .services.production_info_enricher import ProductionInfoEnricherService
from .services.show_enricher import ShowEnricherService
from .services.timestamp_backfill import TimestampBackfillService


class Container(containers.DeclarativeContainer):
    """Container DI de l'application.

    Utilisation :
        container = Container()
        store = container.record_store()
        service = container.show_enricher_service()
    """

    # Configuration - singleton charge une seule fois
    config = providers.Singleton(Settings)

    # Evenement d'annulation cooperative partage par tous les lots
    cancel_event = providers.Singleton(asyncio.Event)

    # Magasin d'enregistrements
    record_store = providers.Singleton(
        JsonRecordStore,
        path=config.provided.data_file,
    )

    # Cache API - Singleton partage
    api_cache = providers.Singleton(
        APICache,
        cache_dir=config.provided.cache_dir,
    )

    # Client TMDB - la cle est verifiee par le CLI avant tout travail reseau
    tmdb_client = providers.Singleton(
        TMDBClient,
        api_key=config.provided.tmdb_api_key,
        cache=api_cache,
        language=config.provided.tmdb_language,
        timeout=config.provided.request_timeout,
        max_attempts=config.provided.retry_attempts,
        backoff_seconds=config.provided.retry_backoff_seconds,
        variant_delay_seconds=config.provided.episode_delay_seconds,
    )

    # Pilotes de lots : avec delai pour les travaux reseau, sans pour les autres
    network_driver = providers.Factory(
        BatchDriver,
        delay_seconds=config.provided.request_delay_seconds,
        cancel_event=cancel_event,
    )
    offline_driver = providers.Factory(
        BatchDriver,
        delay_seconds=0.0,
        cancel_event=cancel_event,
    )

    # Services
    show_enricher_service = providers.Factory(
        ShowEnricherService,
        metadata_client=tmdb_client,
        driver=network_driver,
    )
    movie_enricher_service = providers.Factory(
        MovieEnricherService,
        metadata_client=tmdb_client,
        driver=network_driver,
    )
    episode_enricher_service = providers.Factory(
        EpisodeEnricherService,
        metadata_client=tmdb_client,
        driver=network_driver,
        episode_delay_seconds=config.provided.episode_delay_seconds,
    )
    production_info_service = providers.Factory(
        ProductionInfoEnricherService,
        metadata_client=tmdb_client,
        driver=network_driver,
        company_delay_seconds=config.provided.episode_delay_seconds,
    )
    dedup_service = providers.Factory(DedupService, driver=offline_driver)
    timestamp_backfill_service = providers.Factory(
        TimestampBackfillService,
        driver=offline_driver,
    )
