"""Member and article operations composed over a storage backend."""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable

from ..adapters.base import StorageBackend, StorageError
from ..core.models import (
    ROOT_ID,
    Article,
    Comment,
    Member,
    MemberRank,
    VerificationResult,
)

logger = logging.getLogger(__name__)


def sort_pinned_first(articles: Iterable[Article]) -> list[Article]:
    """Pinned articles first; order within each group is preserved."""
    return sorted(articles, key=lambda a: not a.is_pinned)


class ArchiveRepository:
    """Entry point used by front-ends to read and change archive state.

    The backend is chosen by the caller (see
    :func:`order_archive.adapters.factory.create_backend`) and passed in, so
    the repository never checks which storage mode is active.
    """

    def __init__(self, backend: StorageBackend, root_password: str = "") -> None:
        self.backend = backend
        self.root_password = root_password

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------
    async def list_members(self) -> list[Member]:
        return await self.backend.fetch_members()

    async def get_member_by_id(self, member_id: str) -> Member | None:
        members = await self.backend.fetch_members()
        return next((m for m in members if m.id == member_id), None)

    async def upsert_member(self, member: Member) -> None:
        """Insert or replace ``member``.

        A blank password never overwrites a stored one, whichever backend is
        active. If the stored members cannot be read the upsert fails with
        :class:`StorageError` rather than risk blanking a password.
        """
        if not member.password:
            members = await self.backend.fetch_members(strict=True)
            existing = next((m for m in members if m.id == member.id), None)
            if existing is not None and existing.password:
                member = member.model_copy(update={"password": existing.password})
        await self.backend.save_member(member)

    async def delete_member(self, member_id: str) -> bool:
        if member_id == ROOT_ID:
            logger.warning("Refusing to delete the Root Architect")
            return False
        return await self.backend.remove_member(member_id)

    async def register_member(self, name: str, codename: str, password: str) -> Member:
        """Self-initiate a new member with a generated guest id."""
        if not name.strip() or not codename.strip() or not password:
            raise ValueError("name, codename and password are required")
        taken = {m.id for m in await self.backend.fetch_members(strict=True)}
        member_id = _guest_id()
        while member_id in taken:
            member_id = _guest_id()
        member = Member(
            id=member_id,
            name=name.strip(),
            codename=codename.strip(),
            password=password,
            email="pending@verify.com",
            rank=MemberRank.INITIATE,
            active=True,
            notes="Self-initiated via Portal.",
        )
        await self.backend.save_member(member)
        logger.info("Registered member %s", member_id)
        return member

    async def verify_member(self, query: str) -> VerificationResult:
        member = await self.get_member_by_id(query.strip())
        return VerificationResult(valid=member is not None, member=member)

    async def ensure_root(self) -> bool:
        """Create the Root Architect if it is missing.

        Returns ``True`` when a record was created. Without a configured root
        password nothing is created, and nothing is written when the member
        list cannot be read.
        """
        try:
            members = await self.backend.fetch_members(strict=True)
        except StorageError:
            logger.error("Member list unreadable; not checking for the Root Architect")
            return False
        if any(m.id == ROOT_ID for m in members):
            return False
        if not self.root_password:
            logger.warning("Root Architect missing and no root password configured")
            return False
        await self.backend.save_member(
            Member(
                id=ROOT_ID,
                name="Root Architect",
                codename="ARCHITECT",
                password=self.root_password,
                rank=MemberRank.ARCHITECT,
            )
        )
        logger.info("Created Root Architect %s", ROOT_ID)
        return True

    # ------------------------------------------------------------------
    # Articles
    # ------------------------------------------------------------------
    async def list_articles(self, author: str | None = None) -> list[Article]:
        articles = sort_pinned_first(await self.backend.fetch_articles())
        if author:
            articles = [a for a in articles if a.author == author]
        return articles

    async def get_article(self, article_id: str) -> Article | None:
        articles = await self.backend.fetch_articles()
        return next((a for a in articles if a.id == article_id), None)

    async def upsert_article(self, article: Article) -> None:
        await self.backend.save_article(article)

    async def delete_article(self, article_id: str) -> bool:
        return await self.backend.remove_article(article_id)

    async def toggle_pin(self, article_id: str) -> None:
        await self.backend.toggle_pin(article_id)

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------
    async def add_comment(
        self, article_id: str, comment: Comment, parent_id: str | None = None
    ) -> bool:
        return await self.backend.insert_comment(article_id, comment, parent_id)

    async def delete_comment(self, article_id: str, comment_id: str) -> bool:
        return await self.backend.remove_comment(article_id, comment_id)

    async def like_comment(self, article_id: str, comment_id: str) -> bool:
        return await self.backend.like_comment(article_id, comment_id)

    # ------------------------------------------------------------------
    async def reset(self) -> None:
        """Wipe the archive and restore the Root Architect."""
        await self.backend.clear()
        await self.ensure_root()

    async def close(self) -> None:
        await self.backend.close()


def _guest_id() -> str:
    return f"AO-{random.randint(1000, 9999)}-GST"
