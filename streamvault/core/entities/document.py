"""
Document en memoire du magasin d'enregistrements.

Le magasin est un unique document JSON charge entierement en memoire,
modifie, puis reserialise en entier. Chaque collection est un dict indexe
par id (ordre d'insertion conserve = ordre du magasin), ce qui evite les
parcours lineaires repetes des scripts historiques.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from streamvault.core.entities.catalog import Episode, Movie, Show
from streamvault.core.entities.content import (
    BlogPost,
    Comment,
    ContentRequest,
    IssueReport,
)


@dataclass
class RecordDocument:
    """
    Document complet du magasin StreamVault.

    Attributes:
        shows: Series indexees par id
        episodes: Episodes indexes par id
        movies: Films indexes par id
        blog_posts: Articles indexes par id
        comments: Commentaires indexes par id
        content_requests: Demandes de contenu indexees par id
        issue_reports: Signalements indexes par id
        last_updated: Horodatage ISO de la derniere sauvegarde
        extra: Cles de premier niveau non modelisees, reecrites telles quelles
        original_ids: Id d'origine des enregistrements charges avec un id duplique,
            par (collection, cle interne)
    """

    shows: dict[str, Show] = field(default_factory=dict)
    episodes: dict[str, Episode] = field(default_factory=dict)
    movies: dict[str, Movie] = field(default_factory=dict)
    blog_posts: dict[str, BlogPost] = field(default_factory=dict)
    comments: dict[str, Comment] = field(default_factory=dict)
    content_requests: dict[str, ContentRequest] = field(default_factory=dict)
    issue_reports: dict[str, IssueReport] = field(default_factory=dict)
    last_updated: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)
    original_ids: dict[tuple[str, str], str] = field(
        default_factory=dict, repr=False, compare=False
    )
    _indexes: dict[str, tuple[int, dict[Any, list[str]]]] = field(
        default_factory=dict, repr=False, compare=False
    )

    # ------------------------------------------------------------------
    # Index secondaires
    # ------------------------------------------------------------------

    def _lookup(
        self,
        name: str,
        collection: dict[str, Any],
        key_of: Callable[[Any], Any],
    ) -> dict[Any, list[str]]:
        """
        Index paresseux cle secondaire -> ids, dans l'ordre du magasin.

        L'index est reconstruit quand la taille de la collection change
        (ajout direct dans le dict) ou apres add_episode/remove_episodes.
        """
        cached = self._indexes.get(name)
        if cached is None or cached[0] != len(collection):
            index: dict[Any, list[str]] = {}
            for entity_id, entity in collection.items():
                index.setdefault(key_of(entity), []).append(entity_id)
            cached = (len(collection), index)
            self._indexes[name] = cached
        return cached[1]

    def _first(
        self,
        name: str,
        collection: dict[str, Any],
        key_of: Callable[[Any], Any],
        key: Any,
    ) -> Optional[Any]:
        for entity_id in self._lookup(name, collection, key_of).get(key, []):
            entity = collection.get(entity_id)
            if entity is not None and key_of(entity) == key:
                return entity
        return None

    def _invalidate_episodes(self) -> None:
        self._indexes.pop("episode_identity", None)
        self._indexes.pop("episodes_by_show", None)

    # ------------------------------------------------------------------
    # Episodes
    # ------------------------------------------------------------------

    def find_episode(
        self, show_id: str, season: int, episode_number: int
    ) -> Optional[Episode]:
        """Retourne le premier episode portant ce triplet d'identite."""
        return self._first(
            "episode_identity",
            self.episodes,
            lambda e: e.identity,
            (show_id, season, episode_number),
        )

    def episodes_for_show(self, show_id: str) -> list[Episode]:
        """Episodes d'une serie, dans l'ordre du magasin."""
        ids = self._lookup("episodes_by_show", self.episodes, lambda e: e.show_id)
        return [
            self.episodes[i]
            for i in ids.get(show_id, [])
            if i in self.episodes and self.episodes[i].show_id == show_id
        ]

    def add_episode(self, episode: Episode) -> Episode:
        """Ajoute un episode (genere un id si absent)."""
        if not episode.id:
            episode.id = str(uuid.uuid4())
        self.episodes[episode.id] = episode
        self._invalidate_episodes()
        return episode

    def remove_episodes(self, episode_ids: Iterable[str]) -> int:
        """Supprime des episodes par id. Retourne le nombre supprime."""
        removed = 0
        for episode_id in episode_ids:
            if self.episodes.pop(episode_id, None) is not None:
                removed += 1
        if removed:
            self._invalidate_episodes()
        return removed

    # ------------------------------------------------------------------
    # Recherches par cle secondaire
    # ------------------------------------------------------------------

    def show_by_slug(self, slug: str) -> Optional[Show]:
        return self._first("shows_by_slug", self.shows, lambda s: s.slug, slug)

    def movie_by_slug(self, slug: str) -> Optional[Movie]:
        return self._first("movies_by_slug", self.movies, lambda m: m.slug, slug)

    def blog_post_for_content(self, content_id: str) -> Optional[BlogPost]:
        """Premier article dont content_id reference ce film/cette serie."""
        return self._first(
            "posts_by_content", self.blog_posts, lambda b: b.content_id, content_id
        )

    def search_shows(self, query: str) -> list[Show]:
        """Recherche insensible a la casse sur le titre."""
        needle = query.lower()
        return [s for s in self.shows.values() if needle in (s.title or "").lower()]

    def search_movies(self, query: str) -> list[Movie]:
        needle = query.lower()
        return [m for m in self.movies.values() if needle in (m.title or "").lower()]

    # ------------------------------------------------------------------
    # Commentaires et demandes
    # ------------------------------------------------------------------

    def _comments_by(self, name: str, key_of: Callable[[Comment], Any], key: str) -> list[Comment]:
        ids = self._lookup(name, self.comments, key_of).get(key, [])
        found = [self.comments[i] for i in ids if i in self.comments]
        return sorted(found, key=lambda c: c.created_at or "", reverse=True)

    def comments_for_episode(self, episode_id: str) -> list[Comment]:
        """Commentaires d'un episode, du plus recent au plus ancien."""
        return self._comments_by("comments_by_episode", lambda c: c.episode_id, episode_id)

    def comments_for_movie(self, movie_id: str) -> list[Comment]:
        return self._comments_by("comments_by_movie", lambda c: c.movie_id, movie_id)

    def top_content_requests(self, limit: int) -> list[ContentRequest]:
        """Demandes les plus frequentes en premier."""
        ranked = sorted(
            self.content_requests.values(),
            key=lambda r: r.request_count,
            reverse=True,
        )
        return ranked[:limit]
