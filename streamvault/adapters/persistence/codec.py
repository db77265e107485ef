"""
Conversion bidirectionnelle document JSON <-> entites du domaine.

Chaque entite est decrite par une table (attribut Python, cle JSON). Les
cles inconnues sont conservees dans ``extra`` et les cles presentes dans
``present_fields``, ce qui permet de reecrire un ``null`` explicite et de
ne pas ajouter de cle absente du document d'origine.

Migration des episodes : les anciennes cles ``seasonNumber`` et ``episode``
sont reportees sur les cles canoniques ``season`` et ``episodeNumber`` au
chargement ; seules les cles canoniques sont ecrites.
"""

from typing import Any, Optional, TypeVar

from loguru import logger

from streamvault.core.entities import (
    BlogPost,
    Comment,
    ContentRequest,
    Episode,
    IssueReport,
    Movie,
    RecordDocument,
    Show,
)
from streamvault.core.errors import PersistenceError

FieldMap = tuple[tuple[str, str], ...]

_DESCRIPTIVE_FIELDS: FieldMap = (
    ("id", "id"),
    ("title", "title"),
    ("slug", "slug"),
    ("description", "description"),
    ("poster_url", "posterUrl"),
    ("backdrop_url", "backdropUrl"),
    ("year", "year"),
    ("rating", "rating"),
    ("imdb_rating", "imdbRating"),
    ("genres", "genres"),
    ("language", "language"),
)

SHOW_FIELDS: FieldMap = _DESCRIPTIVE_FIELDS + (
    ("total_seasons", "totalSeasons"),
    ("cast", "cast"),
    ("cast_details", "castDetails"),
    ("creators", "creators"),
    ("featured", "featured"),
    ("trending", "trending"),
    ("category", "category"),
    ("created_at", "createdAt"),
    ("updated_at", "updatedAt"),
)

MOVIE_FIELDS: FieldMap = _DESCRIPTIVE_FIELDS + (
    ("duration", "duration"),
    ("cast", "cast"),
    ("cast_details", "castDetails"),
    ("directors", "directors"),
    ("google_drive_url", "googleDriveUrl"),
    ("featured", "featured"),
    ("trending", "trending"),
    ("category", "category"),
    ("created_at", "createdAt"),
    ("updated_at", "updatedAt"),
)

EPISODE_FIELDS: FieldMap = (
    ("id", "id"),
    ("show_id", "showId"),
    ("season", "season"),
    ("episode_number", "episodeNumber"),
    ("title", "title"),
    ("description", "description"),
    ("thumbnail_url", "thumbnailUrl"),
    ("duration", "duration"),
    ("google_drive_url", "googleDriveUrl"),
    ("video_url", "videoUrl"),
    ("air_date", "airDate"),
)

BLOG_POST_FIELDS: FieldMap = (
    ("id", "id"),
    ("title", "title"),
    ("slug", "slug"),
    ("content_type", "contentType"),
    ("content_id", "contentId"),
    ("featured_image", "featuredImage"),
    ("excerpt", "excerpt"),
    ("content", "content"),
    ("production_companies", "productionCompanies"),
    ("external_links", "externalLinks"),
    ("season_details", "seasonDetails"),
    ("published", "published"),
    ("created_at", "createdAt"),
    ("updated_at", "updatedAt"),
)

COMMENT_FIELDS: FieldMap = (
    ("id", "id"),
    ("episode_id", "episodeId"),
    ("movie_id", "movieId"),
    ("parent_id", "parentId"),
    ("user_name", "userName"),
    ("comment", "comment"),
    ("created_at", "createdAt"),
)

CONTENT_REQUEST_FIELDS: FieldMap = (
    ("id", "id"),
    ("content_type", "contentType"),
    ("title", "title"),
    ("year", "year"),
    ("genre", "genre"),
    ("description", "description"),
    ("reason", "reason"),
    ("email", "email"),
    ("request_count", "requestCount"),
    ("created_at", "createdAt"),
)

ISSUE_REPORT_FIELDS: FieldMap = (
    ("id", "id"),
    ("issue_type", "issueType"),
    ("title", "title"),
    ("description", "description"),
    ("url", "url"),
    ("email", "email"),
    ("status", "status"),
    ("created_at", "createdAt"),
)

# Cles historiques des episodes -> cle canonique
LEGACY_EPISODE_KEYS = {"seasonNumber": "season", "episode": "episodeNumber"}

# (attribut du document, cle JSON, classe, table de champs)
COLLECTIONS = (
    ("shows", "shows", Show, SHOW_FIELDS),
    ("episodes", "episodes", Episode, EPISODE_FIELDS),
    ("movies", "movies", Movie, MOVIE_FIELDS),
    ("blog_posts", "blogPosts", BlogPost, BLOG_POST_FIELDS),
    ("comments", "comments", Comment, COMMENT_FIELDS),
    ("content_requests", "contentRequests", ContentRequest, CONTENT_REQUEST_FIELDS),
    ("issue_reports", "issueReports", IssueReport, ISSUE_REPORT_FIELDS),
)

LAST_UPDATED_KEY = "lastUpdated"

_KNOWN_TOP_LEVEL = {key for _, key, _, _ in COLLECTIONS} | {LAST_UPDATED_KEY}

T = TypeVar("T")


def _as_int(value: Any) -> Any:
    """Convertit un numero stocke en chaine ("3") en entier, sinon inchange."""
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return value


def _migrate_episode(raw: dict[str, Any]) -> tuple[dict[str, Any], bool]:
    """
    Reporte les cles historiques sur les cles canoniques.

    Returns:
        (enregistrement migre, presence de la cle canonique ``season``)
    """
    has_season_field = "season" in raw
    migrated = dict(raw)
    for legacy, canonical in LEGACY_EPISODE_KEYS.items():
        if legacy in migrated:
            value = migrated.pop(legacy)
            if migrated.get(canonical) is None and value is not None:
                migrated[canonical] = value
    for key in ("season", "episodeNumber"):
        if key in migrated:
            migrated[key] = _as_int(migrated[key])
    return migrated, has_season_field


def decode_entity(cls: type[T], fields: FieldMap, raw: dict[str, Any]) -> T:
    """
    Construit une entite a partir d'un enregistrement JSON.

    Args:
        cls: Classe de l'entite (dataclass)
        fields: Table (attribut, cle JSON)
        raw: Enregistrement tel que lu dans le document

    Returns:
        L'entite, avec les cles non modelisees dans ``extra``
    """
    kwargs: dict[str, Any] = {}
    if cls is Episode:
        raw, kwargs["has_season_field"] = _migrate_episode(raw)

    known = set()
    present = set()
    for attr, key in fields:
        known.add(key)
        if key in raw:
            kwargs[attr] = raw[key]
            present.add(key)

    kwargs["extra"] = {k: v for k, v in raw.items() if k not in known}
    kwargs["present_fields"] = frozenset(present)
    return cls(**kwargs)


def encode_entity(entity: Any, fields: FieldMap) -> dict[str, Any]:
    """
    Serialise une entite en enregistrement JSON.

    Une cle connue est ecrite si elle etait presente a la lecture ou si sa
    valeur n'est pas None ; les cles de ``extra`` suivent, telles quelles.
    """
    record: dict[str, Any] = {}
    for attr, key in fields:
        value = getattr(entity, attr)
        if value is not None or key in entity.present_fields:
            record[key] = value
    for key, value in entity.extra.items():
        record.setdefault(key, value)
    return record


def decode_document(raw: Any) -> RecordDocument:
    """
    Construit le document en memoire a partir du JSON charge.

    Raises:
        PersistenceError: Structure de premier niveau invalide
    """
    if not isinstance(raw, dict):
        raise PersistenceError("Le document doit etre un objet JSON")

    document = RecordDocument(
        last_updated=raw.get(LAST_UPDATED_KEY),
        extra={k: v for k, v in raw.items() if k not in _KNOWN_TOP_LEVEL},
    )
    for attr, key, cls, fields in COLLECTIONS:
        records = raw.get(key) or []
        if not isinstance(records, list):
            raise PersistenceError(f"La collection '{key}' doit etre une liste")

        collection: dict[str, Any] = getattr(document, attr)
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                raise PersistenceError(
                    f"Enregistrement invalide dans '{key}' (position {index})"
                )
            entity = decode_entity(cls, fields, record)
            entity_id: Optional[str] = entity.id
            if not entity_id:
                entity_id = f"{key}-{index}"
                logger.warning(
                    "Identifiant absent, id attribue (ecrit a la prochaine sauvegarde)",
                    collection=key,
                    position=index,
                    new_id=entity_id,
                )
                entity.id = entity_id
            elif entity_id in collection:
                # Cle interne seulement : l'id d'origine est reecrit a la
                # sauvegarde pour ne pas casser les references.
                entity_id = f"{entity_id}#{index}"
                logger.warning(
                    "Identifiant duplique, cle interne de substitution",
                    collection=key,
                    position=index,
                    original_id=entity.id,
                    internal_key=entity_id,
                )
                document.original_ids[(attr, entity_id)] = entity.id
                entity.id = entity_id
            collection[entity_id] = entity
    return document


def encode_document(document: RecordDocument) -> dict[str, Any]:
    """Serialise le document complet (collections, cles inconnues, lastUpdated)."""
    data: dict[str, Any] = {}
    for attr, key, _, fields in COLLECTIONS:
        collection: dict[str, Any] = getattr(document, attr)
        records = []
        for entity in collection.values():
            record = encode_entity(entity, fields)
            original_id = document.original_ids.get((attr, entity.id))
            if original_id is not None:
                record["id"] = original_id
            records.append(record)
        data[key] = records
    for key, value in document.extra.items():
        data.setdefault(key, value)
    data[LAST_UPDATED_KEY] = document.last_updated
    return data
