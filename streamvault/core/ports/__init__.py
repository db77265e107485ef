"""
Ports (interfaces abstraites) definissant les contrats pour les adaptateurs.

Ports repository :
- IRecordStore : Chargement/sauvegarde du document JSON complet

Ports client API :
- IMetadataClient : Source de metadonnees en lecture seule (TMDB)
- MediaKind, MediaDetails, SeasonDetails, EpisodeDetails,
  CastMember, Company : Objets retournes par l'API
"""

from streamvault.core.ports.api_clients import (
    CastMember,
    Company,
    EpisodeDetails,
    IMetadataClient,
    MediaDetails,
    MediaKind,
    SeasonDetails,
)
from streamvault.core.ports.repositories import IRecordStore

__all__ = [
    # Repositories
    "IRecordStore",
    # Client API
    "IMetadataClient",
    "MediaKind",
    "MediaDetails",
    "SeasonDetails",
    "EpisodeDetails",
    "CastMember",
    "Company",
]
