"""
Fonctions utilitaires partagees dans le projet StreamVault.

Ce module centralise les fonctions reutilisees a travers le codebase :
- slugify : cle URL a partir d'un titre
- title_variants : variantes de recherche d'un titre
- tmdb_image_url : composition d'une URL d'image TMDB
- map_genres_to_category / map_content_rating / language_name : correspondances
- utc_now_iso / year_timestamp : horodatages au format du document
"""

import re
from datetime import datetime, timezone
from typing import Iterable, Optional

from streamvault.utils.constants import (
    CONTENT_RATING_MAP,
    DEFAULT_CATEGORY,
    DEFAULT_CONTENT_RATING,
    DEFAULT_LANGUAGE,
    GENRE_CATEGORY_RULES,
    LANGUAGE_NAMES,
    MIN_QUERY_LENGTH,
    TMDB_IMAGE_BASE_URL,
)

_DRIVE_FILE_ID_RE = re.compile(r"/d/([a-zA-Z0-9_-]+)")


def slugify(title: str) -> str:
    """Genere un slug URL : minuscules, sequences non alphanumeriques -> '-'."""
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower())
    return slug.strip("-")


def title_variants(title: str) -> list[str]:
    """
    Genere les variantes de recherche d'un titre, dans l'ordre d'essai.

    Ordre : titre complet, partie avant ':', partie avant '-', titre aux
    espaces normalises. Les doublons et les variantes trop courtes sont
    retires en gardant l'ordre.
    """
    candidates = [
        title.strip(),
        title.split(":")[0].strip(),
        title.split("-")[0].strip(),
        re.sub(r"\s+", " ", title).strip(),
    ]
    variants: list[str] = []
    for candidate in candidates:
        if len(candidate) < MIN_QUERY_LENGTH or candidate in variants:
            continue
        variants.append(candidate)
    return variants


def tmdb_image_url(path: Optional[str], size: str) -> Optional[str]:
    """Compose l'URL complete d'une image TMDB (None si pas de chemin)."""
    if not path:
        return None
    return f"{TMDB_IMAGE_BASE_URL}/{size}{path}"


def extract_drive_file_id(value: str) -> str:
    """Extrait l'id de fichier d'une URL Google Drive (sinon retourne la valeur)."""
    value = value.strip()
    if "drive.google.com" in value:
        match = _DRIVE_FILE_ID_RE.search(value)
        if match:
            return match.group(1)
    return value


def map_genres_to_category(genres: Iterable[str]) -> str:
    """Associe une categorie de navigation a une liste de genres TMDB."""
    lowered = [g.lower() for g in genres]
    for keywords, category in GENRE_CATEGORY_RULES:
        if any(k in g for g in lowered for k in keywords):
            return category
    return DEFAULT_CATEGORY


def map_content_rating(rating: Optional[str]) -> str:
    """Convertit une classification TMDB en classification TV affichee."""
    if not rating:
        return DEFAULT_CONTENT_RATING
    return CONTENT_RATING_MAP.get(rating, DEFAULT_CONTENT_RATING)


def language_name(code: Optional[str]) -> str:
    """Nom affiche d'un code langue ISO 639-1."""
    if not code:
        return DEFAULT_LANGUAGE
    return LANGUAGE_NAMES.get(code, DEFAULT_LANGUAGE)


def format_timestamp(moment: datetime) -> str:
    """Formate un datetime comme le document (ISO UTC en millisecondes, suffixe Z)."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def utc_now_iso() -> str:
    """Horodatage courant au format du document."""
    return format_timestamp(datetime.now(timezone.utc))


def year_timestamp(year: int) -> str:
    """Horodatage estime pour une annee de sortie : 1er juin a minuit UTC."""
    return f"{year:04d}-06-01T00:00:00.000Z"
