"""
Moteur de reconciliation entre le magasin local et les metadonnees TMDB.

Fonctions pures, sans I/O :
- detection des valeurs provisoires (titre "Episode N", description de
  template, vignette de banque d'images)
- score de completude d'un episode et deduplication par triplet d'identite
- creation/mise a jour d'episode sans regression des champs deja bons
- fusion des details serie/film
- horodatages de creation manquants

Une entree sans champs d'identite leve ValidationError ; le pilote de lots
ignore alors cette seule entite.
"""

import json
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Union

from streamvault.core.entities import BlogPost, Episode, Movie, Show
from streamvault.core.errors import ValidationError
from streamvault.core.ports.api_clients import EpisodeDetails, MediaDetails
from streamvault.utils.constants import (
    DEFAULT_EPISODE_DURATION,
    FALLBACK_CREATED_AT,
    GENERIC_EPISODE_TITLE_RE,
    PLACEHOLDER_AIR_DATE,
    PLACEHOLDER_DESCRIPTION_MARKERS,
    PLACEHOLDER_VIDEO_URL,
    STOCK_IMAGE_HOSTS,
    TRUSTED_IMAGE_HOST,
)
from streamvault.utils.helpers import (
    language_name,
    map_content_rating,
    map_genres_to_category,
    slugify,
    year_timestamp,
)

# Poids du score de completude
SCORE_SEASON_FIELD = 10
SCORE_REAL_TITLE = 5
SCORE_REAL_DESCRIPTION = 5
SCORE_TRUSTED_THUMBNAIL = 5
SCORE_REAL_VIDEO = 10
SCORE_REAL_AIR_DATE = 3
SCORE_DURATION = 2


# ----------------------------------------------------------------------
# Detection des valeurs provisoires
# ----------------------------------------------------------------------


def is_generic_title(title: Optional[str]) -> bool:
    """True pour un titre de la forme "Episode N"."""
    return bool(title) and GENERIC_EPISODE_TITLE_RE.match(title) is not None


def is_placeholder_description(text: Optional[str]) -> bool:
    """True pour une description vide ou issue d'un template d'import."""
    if not text or not text.strip():
        return True
    return any(marker in text for marker in PLACEHOLDER_DESCRIPTION_MARKERS)


def is_placeholder_thumbnail(url: Optional[str]) -> bool:
    """True pour une vignette absente ou hebergee sur une banque d'images."""
    if not url:
        return True
    return any(host in url for host in STOCK_IMAGE_HOSTS)


def is_placeholder_video(url: Optional[str]) -> bool:
    """True pour une reference video absente ou egale au lien factice."""
    return not url or url == PLACEHOLDER_VIDEO_URL


def is_placeholder_air_date(air_date: Optional[str]) -> bool:
    return not air_date or air_date == PLACEHOLDER_AIR_DATE


# ----------------------------------------------------------------------
# Score et deduplication
# ----------------------------------------------------------------------


def score_episode(episode: Episode) -> int:
    """
    Score de completude d'un episode.

    +10 si l'enregistrement portait la cle ``season`` (les plus anciens
    n'avaient que ``seasonNumber``), +5 titre reel, +5 description reelle,
    +5 vignette TMDB, +10 vraie reference video, +3 vraie date de diffusion,
    +2 duree positive.
    """
    score = 0
    if episode.has_season_field and episode.season is not None:
        score += SCORE_SEASON_FIELD
    if episode.title and not is_generic_title(episode.title):
        score += SCORE_REAL_TITLE
    if not is_placeholder_description(episode.description):
        score += SCORE_REAL_DESCRIPTION
    if episode.thumbnail_url and TRUSTED_IMAGE_HOST in episode.thumbnail_url:
        score += SCORE_TRUSTED_THUMBNAIL
    if not is_placeholder_video(episode.google_drive_url):
        score += SCORE_REAL_VIDEO
    if not is_placeholder_air_date(episode.air_date):
        score += SCORE_REAL_AIR_DATE
    if episode.duration and episode.duration > 0:
        score += SCORE_DURATION
    return score


@dataclass
class DuplicateGroup:
    """Groupe d'episodes partageant un meme triplet d'identite."""

    identity: tuple[str, int, int]
    kept: Episode
    removed: list[Episode]
    scores: dict[str, int]


@dataclass
class DeduplicationResult:
    """
    Resultat d'une deduplication.

    Attributes:
        keep: Episodes conserves, dans l'ordre d'entree
        remove: IDs des episodes a supprimer
        groups: Detail des groupes en conflit (pour l'affichage)
    """

    keep: list[Episode] = field(default_factory=list)
    remove: list[str] = field(default_factory=list)
    groups: list[DuplicateGroup] = field(default_factory=list)


def _require_identity(episode: Episode) -> tuple[str, int, int]:
    if not episode.show_id or episode.season is None or episode.episode_number is None:
        raise ValidationError(
            f"Episode {episode.id or '?'} sans triplet d'identite complet "
            f"(showId={episode.show_id}, season={episode.season}, "
            f"episodeNumber={episode.episode_number})"
        )
    return (episode.show_id, episode.season, episode.episode_number)


def deduplicate(episodes: Iterable[Episode]) -> DeduplicationResult:
    """
    Ne garde qu'un episode par triplet (show_id, season, episode_number).

    Le meilleur score gagne ; a score egal, l'id le plus petit
    lexicographiquement est conserve. Relancer sur le resultat ne supprime
    plus rien.

    Raises:
        ValidationError: Episode sans triplet d'identite complet
    """
    episode_list = list(episodes)
    groups: dict[tuple[str, int, int], list[Episode]] = {}
    for episode in episode_list:
        groups.setdefault(_require_identity(episode), []).append(episode)

    result = DeduplicationResult()
    removed_ids: set[str] = set()
    for identity, members in groups.items():
        if len(members) < 2:
            continue
        scores = {e.id: score_episode(e) for e in members}
        ranked = sorted(members, key=lambda e: (-scores[e.id], e.id))
        best, others = ranked[0], ranked[1:]
        result.groups.append(
            DuplicateGroup(identity=identity, kept=best, removed=others, scores=scores)
        )
        for other in others:
            removed_ids.add(other.id)
            result.remove.append(other.id)

    result.keep = [e for e in episode_list if e.id not in removed_ids]
    return result


# ----------------------------------------------------------------------
# Creation / mise a jour d'episode
# ----------------------------------------------------------------------


class UpsertAction(str, Enum):
    """Issue d'un upsert d'episode."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass
class EpisodeOverrides:
    """
    Valeurs fournies par l'appelant, jamais par la source de metadonnees.

    Attributes:
        google_drive_url: Reference video principale (id ou URL de preview)
        video_url: URL video alternative
        title / description / duration / air_date: Valeurs de repli a la creation
        thumbnail_url: Vignette de repli (ex: backdrop de la serie)
    """

    google_drive_url: Optional[str] = None
    video_url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: Optional[int] = None
    air_date: Optional[str] = None


@dataclass
class UpsertOutcome:
    """Resultat d'upsert : action, episode concerne et champs modifies."""

    action: UpsertAction
    episode: Episode
    changed_fields: tuple[str, ...] = ()


def _create_episode(
    show_id: Optional[str],
    fetched: Optional[EpisodeDetails],
    overrides: EpisodeOverrides,
) -> Episode:
    if not show_id:
        raise ValidationError("Creation d'episode sans reference de serie")
    if fetched is None:
        raise ValidationError("Creation d'episode sans detail de saison/numero")

    return Episode(
        id=str(uuid.uuid4()),
        show_id=show_id,
        season=fetched.season,
        episode_number=fetched.episode_number,
        title=fetched.name or overrides.title or f"Episode {fetched.episode_number}",
        description=fetched.overview or overrides.description,
        thumbnail_url=fetched.still_url or overrides.thumbnail_url,
        duration=fetched.runtime or overrides.duration or DEFAULT_EPISODE_DURATION,
        google_drive_url=overrides.google_drive_url,
        video_url=overrides.video_url,
        air_date=fetched.air_date or overrides.air_date,
    )


def upsert_episode(
    existing: Optional[Episode],
    fetched: Optional[EpisodeDetails],
    overrides: Optional[EpisodeOverrides] = None,
    show_id: Optional[str] = None,
) -> UpsertOutcome:
    """
    Cree ou met a jour un episode a partir du detail TMDB.

    Creation (``existing`` absent) : valeurs TMDB, puis valeurs de
    l'appelant, puis "Episode N" et la duree par defaut.

    Mise a jour : seuls les champs provisoires sont remplaces (titre
    generique, description de template, vignette de banque d'images, duree
    nulle, date de diffusion factice). La reference video ne vient que de
    l'appelant et n'est jamais effacee.

    Args:
        existing: Episode deja present pour ce triplet, ou None
        fetched: Detail TMDB de l'episode (None si TMDB ne le connait pas)
        overrides: Valeurs fournies par l'appelant
        show_id: Serie proprietaire (requis pour une creation)

    Returns:
        UpsertOutcome

    Raises:
        ValidationError: Triplet d'identite incomplet
    """
    overrides = overrides or EpisodeOverrides()

    if existing is None:
        episode = _create_episode(show_id, fetched, overrides)
        return UpsertOutcome(UpsertAction.CREATED, episode)

    _require_identity(existing)
    changed: list[str] = []

    def assign(attr: str, value: Any) -> None:
        if value and getattr(existing, attr) != value:
            setattr(existing, attr, value)
            changed.append(attr)

    if fetched is not None:
        if (not existing.title or is_generic_title(existing.title)) and not is_generic_title(fetched.name):
            assign("title", fetched.name)
        if is_placeholder_description(existing.description) and not is_placeholder_description(fetched.overview):
            assign("description", fetched.overview)
        if is_placeholder_thumbnail(existing.thumbnail_url):
            assign("thumbnail_url", fetched.still_url)
        if not existing.duration or existing.duration <= 0:
            assign("duration", fetched.runtime)
        if is_placeholder_air_date(existing.air_date):
            assign("air_date", fetched.air_date)

    # Repli (ex: backdrop de la serie) si TMDB n'a pas fourni de vignette
    if is_placeholder_thumbnail(existing.thumbnail_url) and not is_placeholder_thumbnail(
        overrides.thumbnail_url
    ):
        assign("thumbnail_url", overrides.thumbnail_url)

    if is_placeholder_video(existing.google_drive_url) and not is_placeholder_video(
        overrides.google_drive_url
    ):
        assign("google_drive_url", overrides.google_drive_url)
    if not existing.video_url:
        assign("video_url", overrides.video_url)

    action = UpsertAction.UPDATED if changed else UpsertAction.UNCHANGED
    return UpsertOutcome(action, existing, tuple(changed))


# ----------------------------------------------------------------------
# Fusion serie / film
# ----------------------------------------------------------------------


def _as_list_like(current: Any, values: tuple[str, ...]) -> Union[str, list[str]]:
    """Garde le format du document : liste si c'etait une liste, sinon chaine."""
    if isinstance(current, list):
        return list(values)
    return ", ".join(values)


def _cast_details_json(details: MediaDetails) -> Optional[str]:
    if not details.cast_members:
        return None
    return json.dumps(
        [
            {"name": m.name, "character": m.character, "profileUrl": m.profile_url}
            for m in details.cast_members
        ]
    )


def _merge_common(
    entity: Union[Show, Movie], details: MediaDetails, changed: list[str]
) -> None:
    def assign(attr: str, value: Any) -> None:
        if value in (None, "", [], ()):
            return
        if getattr(entity, attr) != value:
            setattr(entity, attr, value)
            changed.append(attr)

    if not entity.title:
        raise ValidationError(f"Entite {entity.id or '?'} sans titre")

    assign("description", details.overview)
    assign("year", details.year)
    if details.genres:
        assign("genres", _as_list_like(entity.genres, details.genres))
        if not entity.category:
            assign("category", map_genres_to_category(details.genres))
    if details.language:
        assign("language", language_name(details.language))
    if details.vote_average:
        assign("imdb_rating", f"{details.vote_average:.1f}")
    if details.cast:
        assign("cast", _as_list_like(entity.cast, details.cast))
    assign("cast_details", _cast_details_json(details))
    # Un poster/backdrop absent cote TMDB ne remplace jamais l'image locale
    assign("poster_url", details.poster_url)
    assign("backdrop_url", details.backdrop_url)
    if not entity.slug:
        assign("slug", slugify(entity.title))


def merge_show_details(show: Show, details: MediaDetails) -> tuple[str, ...]:
    """
    Fusionne les details TMDB dans une serie, sans regression.

    Une valeur vide cote TMDB ne remplace jamais une valeur locale ; la
    categorie et le slug ne sont renseignes que s'ils manquent.

    Returns:
        Noms des attributs modifies (vide si rien n'a change)

    Raises:
        ValidationError: Serie sans titre
    """
    changed: list[str] = []
    _merge_common(show, details, changed)

    if details.number_of_seasons and details.number_of_seasons != show.total_seasons:
        show.total_seasons = details.number_of_seasons
        changed.append("total_seasons")
    if details.content_rating:
        rating = map_content_rating(details.content_rating)
        if rating != show.rating:
            show.rating = rating
            changed.append("rating")
    if details.creators:
        creators = ", ".join(details.creators)
        if creators != show.creators:
            show.creators = creators
            changed.append("creators")
    return tuple(changed)


def merge_movie_details(movie: Movie, details: MediaDetails) -> tuple[str, ...]:
    """
    Fusionne les details TMDB dans un film, sans regression.

    Returns:
        Noms des attributs modifies (vide si rien n'a change)

    Raises:
        ValidationError: Film sans titre
    """
    changed: list[str] = []
    _merge_common(movie, details, changed)

    if details.runtime_minutes and details.runtime_minutes != movie.duration:
        movie.duration = details.runtime_minutes
        changed.append("duration")
    if details.content_rating and details.content_rating != movie.rating:
        movie.rating = details.content_rating
        changed.append("rating")
    if details.directors:
        directors = ", ".join(details.directors)
        if directors != movie.directors:
            movie.directors = directors
            changed.append("directors")
    return tuple(changed)


# ----------------------------------------------------------------------
# Horodatages
# ----------------------------------------------------------------------


def backfill_timestamps(
    entity: Union[Show, Movie], blog_post: Optional[BlogPost] = None
) -> tuple[str, ...]:
    """
    Renseigne created_at/updated_at manquants.

    Ordre de priorite pour created_at : date de creation de l'article lie,
    1er juin de l'annee de sortie, puis FALLBACK_CREATED_AT. updated_at
    manquant reprend created_at.

    Returns:
        Noms des attributs modifies

    Raises:
        ValidationError: Entite sans id
    """
    if not entity.id:
        raise ValidationError("Entite sans id, horodatage impossible")

    year = entity.year
    if isinstance(year, str) and year.strip().isdigit():
        year = int(year)

    changed: list[str] = []
    if not entity.created_at:
        if blog_post is not None and blog_post.created_at:
            created_at = blog_post.created_at
        elif isinstance(year, int) and year > 0:
            created_at = year_timestamp(year)
        else:
            created_at = FALLBACK_CREATED_AT
        entity.created_at = created_at
        changed.append("created_at")
    if not entity.updated_at:
        entity.updated_at = entity.created_at
        changed.append("updated_at")
    return tuple(changed)
