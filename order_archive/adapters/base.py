"""Base storage interface shared by the local and remote backends."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..core.models import Article, Comment, Member

MEMBERS_KEY = "order_members_v5"
ARTICLES_KEY = "order_articles_v5"


class StorageError(RuntimeError):
    """Raised when a backend fails to add or upsert a record."""


class StorageBackend(ABC):
    """Abstract persistence backend for members, articles and comments."""

    mode: str = ""

    # ------------------------------------------------------------------
    # Members
    @abstractmethod
    async def fetch_members(self, strict: bool = False) -> list[Member]:
        """Return every stored member.

        A failed read is logged and returns an empty list, unless ``strict``
        is set; then it raises :class:`StorageError` so callers can tell
        "no members" apart from "could not read members".
        """

    @abstractmethod
    async def save_member(self, member: Member) -> None:
        """Insert ``member`` or overwrite the record with the same id."""

    @abstractmethod
    async def remove_member(self, member_id: str) -> bool:
        """Delete a member, returning whether a record was removed."""

    # ------------------------------------------------------------------
    # Articles
    @abstractmethod
    async def fetch_articles(self) -> list[Article]:
        """Return every article with its comment forest attached."""

    @abstractmethod
    async def save_article(self, article: Article) -> None:
        """Insert ``article`` or update the record with the same id."""

    @abstractmethod
    async def remove_article(self, article_id: str) -> bool:
        """Delete an article and all of its comments."""

    @abstractmethod
    async def toggle_pin(self, article_id: str) -> None:
        """Flip the pin flag of an article."""

    # ------------------------------------------------------------------
    # Comments
    @abstractmethod
    async def insert_comment(
        self, article_id: str, comment: Comment, parent_id: str | None = None
    ) -> bool:
        """Attach ``comment`` at the root of the forest or under ``parent_id``."""

    @abstractmethod
    async def remove_comment(self, article_id: str, comment_id: str) -> bool:
        """Delete a comment together with its whole reply subtree."""

    @abstractmethod
    async def like_comment(self, article_id: str, comment_id: str) -> bool:
        """Increment the likes counter of one comment by one."""

    # ------------------------------------------------------------------
    @abstractmethod
    async def clear(self) -> None:
        """Remove all stored data (the remote store keeps the root member)."""

    async def close(self) -> None:
        """Release any held resources."""
