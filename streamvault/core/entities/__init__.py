"""
Business entities representing the StreamVault catalog.

Entities are mutable objects with identity that persist in the record store.

Exports:
- Show, Movie, Episode: Catalog entries
- BlogPost, Comment, ContentRequest, IssueReport: Editorial and user content
- RecordDocument: The whole record store held in memory
"""

from streamvault.core.entities.catalog import Episode, Movie, Show
from streamvault.core.entities.content import (
    BlogPost,
    Comment,
    ContentRequest,
    IssueReport,
)
from streamvault.core.entities.document import RecordDocument

__all__ = [
    "Show",
    "Movie",
    "Episode",
    "BlogPost",
    "Comment",
    "ContentRequest",
    "IssueReport",
    "RecordDocument",
]
