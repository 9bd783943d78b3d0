"""Local fallback backend persisted to a JSON key-value file.

Members and articles live as two opaque text blobs under fixed keys. Every
mutation reads the whole collection, changes an in-memory copy and writes
the whole blob back. There is no locking; a single writer is assumed.

Reads used by mutations are strict: if stored data cannot be parsed the
mutation is refused instead of overwriting it with a partial copy.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel

from ..core import tree
from ..core.models import Article, Comment, Member
from .base import ARTICLES_KEY, MEMBERS_KEY, StorageBackend, StorageError

logger = logging.getLogger(__name__)


class KeyValueFile:
    """Tiny persistent mapping of string keys to string values."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, encoding="utf-8") as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as exc:
                logger.error("Store file %s is not valid JSON", self.path)
                raise StorageError(f"{self.path} is unreadable") from exc

    def _write(self, data: dict[str, str]) -> None:
        """Persist ``data`` atomically."""
        tmp = self.path.with_name(self.path.name + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, self.path)

    def get_item(self, key: str) -> str | None:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)


class LocalBackend(StorageBackend):
    """Backend used when no remote service is configured."""

    mode = "local"

    def __init__(self, path: str | Path) -> None:
        self.store = KeyValueFile(path)

    # ------------------------------------------------------------------
    # Blob helpers
    def _load(self, key: str, model: type[BaseModel], strict: bool = False) -> list:
        """Parse the blob under ``key``.

        Unreadable data is logged; it reads as empty unless ``strict`` is
        set, in which case :class:`StorageError` is raised.
        """
        try:
            blob = self.store.get_item(key)
            if not blob:
                return []
            return [model.model_validate(item) for item in json.loads(blob)]
        except (StorageError, TypeError, ValueError) as exc:
            logger.error("Unreadable %s data: %s", key, exc)
            if strict:
                raise StorageError(f"stored {key} data is unreadable") from exc
            return []

    def _dump(self, key: str, records: list[BaseModel]) -> None:
        payload = [r.model_dump(mode="json", by_alias=True) for r in records]
        self.store.set_item(key, json.dumps(payload, ensure_ascii=False))

    def _articles(self) -> list[Article] | None:
        """Strict article read for mutations that report failure as ``None``."""
        try:
            return self._load(ARTICLES_KEY, Article, strict=True)
        except StorageError:
            return None

    def _article(self, articles: list[Article] | None, article_id: str) -> Article | None:
        return next((a for a in articles or [] if a.id == article_id), None)

    # ------------------------------------------------------------------
    # Members
    async def fetch_members(self, strict: bool = False) -> list[Member]:
        return self._load(MEMBERS_KEY, Member, strict=strict)

    async def save_member(self, member: Member) -> None:
        members = self._load(MEMBERS_KEY, Member, strict=True)
        for index, existing in enumerate(members):
            if existing.id == member.id:
                members[index] = member
                break
        else:
            members.append(member)
        self._dump(MEMBERS_KEY, members)

    async def remove_member(self, member_id: str) -> bool:
        try:
            members = self._load(MEMBERS_KEY, Member, strict=True)
        except StorageError:
            return False
        remaining = [m for m in members if m.id != member_id]
        if len(remaining) == len(members):
            return False
        self._dump(MEMBERS_KEY, remaining)
        return True

    # ------------------------------------------------------------------
    # Articles
    async def fetch_articles(self) -> list[Article]:
        return self._load(ARTICLES_KEY, Article)

    async def save_article(self, article: Article) -> None:
        articles = self._load(ARTICLES_KEY, Article, strict=True)
        for index, existing in enumerate(articles):
            if existing.id == article.id:
                # only fields the caller set replace stored values
                articles[index] = existing.model_copy(
                    update={k: getattr(article, k) for k in article.model_fields_set}
                )
                break
        else:
            articles.insert(0, article)
        self._dump(ARTICLES_KEY, articles)

    async def remove_article(self, article_id: str) -> bool:
        articles = self._articles()
        if articles is None:
            return False
        remaining = [a for a in articles if a.id != article_id]
        if len(remaining) == len(articles):
            return False
        self._dump(ARTICLES_KEY, remaining)
        return True

    async def toggle_pin(self, article_id: str) -> None:
        articles = self._articles()
        article = self._article(articles, article_id)
        if article is None:
            return
        article.is_pinned = not article.is_pinned
        self._dump(ARTICLES_KEY, articles)

    # ------------------------------------------------------------------
    # Comments
    async def insert_comment(
        self, article_id: str, comment: Comment, parent_id: str | None = None
    ) -> bool:
        articles = self._load(ARTICLES_KEY, Article, strict=True)
        article = self._article(articles, article_id)
        if article is None:
            logger.warning("Comment on unknown article %s ignored", article_id)
            return False
        if not tree.insert_comment(article.comments, comment, parent_id):
            logger.warning("Reply to unknown comment %s ignored", parent_id)
            return False
        self._dump(ARTICLES_KEY, articles)
        return True

    async def remove_comment(self, article_id: str, comment_id: str) -> bool:
        articles = self._articles()
        article = self._article(articles, article_id)
        if article is None or tree.remove_comment(article.comments, comment_id) is None:
            return False
        self._dump(ARTICLES_KEY, articles)
        return True

    async def like_comment(self, article_id: str, comment_id: str) -> bool:
        articles = self._articles()
        article = self._article(articles, article_id)
        comment = tree.find_comment(article.comments, comment_id) if article else None
        if comment is None:
            return False
        comment.likes += 1
        self._dump(ARTICLES_KEY, articles)
        return True

    # ------------------------------------------------------------------
    async def clear(self) -> None:
        self.store.remove_item(MEMBERS_KEY)
        self.store.remove_item(ARTICLES_KEY)
