"""
Service d'enrichissement des articles de blog : societes de production et
liens externes.

Pour chaque article sans ces donnees, retrouve le film ou la serie sur TMDB,
recupere le detail des 5 premieres societes (logo, site, pays) et compose
les liens externes (site officiel, IMDb, reseaux sociaux, Wikidata). Les
deux structures sont stockees en JSON dans l'article.
"""

import asyncio
import json
from typing import Any, Optional

from loguru import logger

from streamvault.core.entities import BlogPost, RecordDocument
from streamvault.core.errors import NotFoundError, TransientNetworkError, ValidationError
from streamvault.core.ports.api_clients import Company, IMetadataClient, MediaKind
from streamvault.services.batch import (
    BatchDriver,
    BatchStats,
    EntityOutcome,
    EntityState,
    ProgressCallback,
)
from streamvault.utils.constants import MAX_PRODUCTION_COMPANIES
from streamvault.utils.helpers import utc_now_iso

_CONTENT_KINDS = {"movie": MediaKind.MOVIE, "show": MediaKind.SHOW}


def _company_record(company: Company, detailed: Optional[Company]) -> dict[str, Any]:
    """Fusionne la societe du detail film/serie avec sa fiche complete."""
    if detailed is None:
        return {
            "name": company.name,
            "logoUrl": company.logo_url,
            "website": None,
            "country": company.country,
        }
    return {
        "name": detailed.name or company.name,
        "logoUrl": detailed.logo_url,
        "website": detailed.website,
        "description": detailed.description,
        "country": detailed.country or company.country,
    }


class ProductionInfoEnricherService:
    """Complete productionCompanies et externalLinks des articles de blog."""

    def __init__(
        self,
        metadata_client: IMetadataClient,
        driver: BatchDriver,
        company_delay_seconds: float = 0.1,
    ) -> None:
        self._client = metadata_client
        self._driver = driver
        self._company_delay_seconds = company_delay_seconds

    async def enrich_blog_posts(
        self,
        document: RecordDocument,
        force: bool = False,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchStats:
        """
        Enrichit les articles du document.

        Args:
            document: Document charge (modifie en place)
            force: Retraiter aussi les articles deja complets
            on_progress: Callback de progression optionnel
        """

        async def process(post: BlogPost, outcome: EntityOutcome) -> None:
            if not force and post.production_companies and post.external_links:
                outcome.skip("deja renseigne")
                return
            await self._enrich_one(post, outcome)

        return await self._driver.run(
            list(document.blog_posts.values()),
            process,
            describe=lambda p: (p.id, p.title or p.id),
            on_progress=on_progress,
        )

    async def _enrich_one(self, post: BlogPost, outcome: EntityOutcome) -> None:
        kind = _CONTENT_KINDS.get(post.content_type or "")
        if kind is None:
            raise ValidationError(f"Type de contenu inconnu: {post.content_type!r}")
        if not post.title:
            raise ValidationError("Article sans titre")

        outcome.advance(EntityState.SEARCHING)
        tmdb_id = await self._client.search_title(post.title, kind)
        if not tmdb_id:
            raise NotFoundError(f"Aucun resultat TMDB pour '{post.title}'")
        outcome.advance(EntityState.FOUND)

        outcome.advance(EntityState.FETCHING)
        details = await self._client.fetch_detail(tmdb_id, kind)
        if details is None:
            raise NotFoundError(f"Details TMDB indisponibles (id {tmdb_id})")
        outcome.advance(EntityState.FETCHED)

        outcome.advance(EntityState.FETCHING)
        companies = await self._fetch_companies(details.production_companies)
        external = await self._client.fetch_external_links(tmdb_id, kind) or {}
        outcome.advance(EntityState.FETCHED)

        links = {"homepage": details.homepage, **external}
        production_companies = json.dumps(companies)
        external_links = json.dumps(links)

        if (post.production_companies, post.external_links) != (
            production_companies,
            external_links,
        ):
            post.production_companies = production_companies
            post.external_links = external_links
            post.updated_at = utc_now_iso()
            outcome.updated += 1
            logger.info(
                "Article enrichi",
                title=post.title,
                companies=len(companies),
                links=[name for name, url in links.items() if url],
            )

    async def _fetch_companies(self, companies: tuple[Company, ...]) -> list[dict[str, Any]]:
        """Fiche complete des premieres societes ; repli sur les donnees de base."""
        records = []
        for index, company in enumerate(companies[:MAX_PRODUCTION_COMPANIES]):
            if index > 0 and self._company_delay_seconds > 0:
                await asyncio.sleep(self._company_delay_seconds)

            detailed = None
            if company.id is not None:
                try:
                    detailed = await self._client.fetch_company(company.id)
                except TransientNetworkError as e:
                    logger.warning("Societe indisponible", company=company.name, error=str(e))
            records.append(_company_record(company, detailed))
        return records
