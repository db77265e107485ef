"""
Editorial and user-submitted entities.

Blog posts attached to movies/shows, comments on episodes/movies, and the
free-text content requests and issue reports sent by visitors.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class BlogPost:
    """
    Blog article generated for a movie or a show.

    Attributes:
        id: Stable identifier
        title: Article title (usually the movie/show title)
        slug: URL-safe unique key
        content_type: "movie" or "show"
        content_id: Weak reference to a Movie or Show id (may dangle)
        featured_image: Header image URL
        excerpt: Short description for cards
        content: Full article body
        production_companies: JSON-encoded list of companies
        external_links: JSON-encoded mapping of external links
        season_details: JSON-encoded list of season summaries
        created_at / updated_at: ISO-8601 timestamps
    """

    id: str = ""
    title: str = ""
    slug: Optional[str] = None
    content_type: Optional[str] = None
    content_id: Optional[str] = None
    featured_image: Optional[str] = None
    excerpt: Optional[str] = None
    content: Optional[str] = None
    production_companies: Optional[str] = None
    external_links: Optional[str] = None
    season_details: Optional[str] = None
    published: Optional[bool] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)
    present_fields: frozenset[str] = field(
        default_factory=frozenset, repr=False, compare=False
    )


@dataclass
class Comment:
    """
    Comment on an episode or a movie.

    Exactly one of ``episode_id`` / ``movie_id`` is set. ``parent_id`` points
    to another comment and forms a reply tree.
    """

    id: str = ""
    episode_id: Optional[str] = None
    movie_id: Optional[str] = None
    parent_id: Optional[str] = None
    user_name: str = ""
    comment: str = ""
    created_at: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)
    present_fields: frozenset[str] = field(
        default_factory=frozenset, repr=False, compare=False
    )


@dataclass
class ContentRequest:
    """Demande de contenu envoyee par un visiteur."""

    id: str = ""
    content_type: str = ""
    title: str = ""
    year: Optional[str] = None
    genre: Optional[str] = None
    description: Optional[str] = None
    reason: Optional[str] = None
    email: Optional[str] = None
    request_count: int = 1
    created_at: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)
    present_fields: frozenset[str] = field(
        default_factory=frozenset, repr=False, compare=False
    )


@dataclass
class IssueReport:
    """Signalement de probleme (lien mort, mauvais episode, ...)."""

    id: str = ""
    issue_type: str = ""
    title: str = ""
    description: str = ""
    url: Optional[str] = None
    email: Optional[str] = None
    status: str = "pending"
    created_at: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)
    present_fields: frozenset[str] = field(
        default_factory=frozenset, repr=False, compare=False
    )
