"""Remote backend talking to a hosted relational store over its REST API.

The service exposes the ``members``, ``articles`` and ``comments`` tables
through a PostgREST compatible interface. It uses :mod:`httpx` so all calls
stay asynchronous. Comments are flat rows referencing their article and,
optionally, a parent comment; forests are rebuilt with one lookup per node.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core import tree
from ..core.models import ROOT_ID, Article, Comment, Member
from .base import StorageBackend, StorageError

logger = logging.getLogger(__name__)

ARTICLE_COLUMNS = ("id", "title", "author", "date", "type", "content", "tags", "is_pinned")


# failures that are logged and reported as an empty or no-op result;
# malformed JSON bodies and rows failing validation raise ValueError
SOFT_ERRORS = (httpx.HTTPError, KeyError, ValueError)


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _in(values: list[str]) -> str:
    return "in.(" + ",".join(_quote(v) for v in values) + ")"


class RestBackend(StorageBackend):
    """Backend used when both an endpoint and an access key are configured."""

    mode = "remote"

    def __init__(
        self, endpoint: str, access_key: str, client: httpx.AsyncClient | None = None
    ) -> None:
        """Store the service ``endpoint``, ``access_key`` and optional ``client``."""
        self.base_url = endpoint.rstrip("/") + "/rest/v1"
        self.headers = {"apikey": access_key, "Authorization": f"Bearer {access_key}"}
        self.client = client or httpx.AsyncClient()

    # ------------------------------------------------------------------
    # Request helpers
    async def _request(
        self,
        method: str,
        table: str,
        params: dict[str, str] | None = None,
        payload: Any = None,
        prefer: str | None = None,
    ) -> Any:
        headers = dict(self.headers)
        if prefer:
            headers["Prefer"] = prefer
        response = await self.client.request(
            method,
            f"{self.base_url}/{table}",
            params=params,
            json=payload,
            headers=headers,
        )
        response.raise_for_status()
        if not response.content:
            return None
        return response.json()

    async def _select(self, table: str, **params: str) -> list[dict[str, Any]]:
        params.setdefault("select", "*")
        return await self._request("GET", table, params=params) or []

    async def _delete(self, table: str, **params: str) -> list[dict[str, Any]]:
        return (
            await self._request("DELETE", table, params=params, prefer="return=representation")
            or []
        )

    async def _upsert(self, table: str, row: dict[str, Any]) -> None:
        await self._request(
            "POST",
            table,
            params={"on_conflict": "id"},
            payload=row,
            prefer="resolution=merge-duplicates,return=minimal",
        )

    async def _children(self, parent_id: str) -> list[dict[str, Any]]:
        return await self._select(
            "comments", parent_id=f"eq.{parent_id}", order="created_at.asc"
        )

    async def _article_from_row(self, row: dict[str, Any]) -> Article:
        roots = await self._select(
            "comments",
            article_id=f"eq.{row['id']}",
            parent_id="is.null",
            order="created_at.asc",
        )
        return Article(
            id=str(row["id"]),
            title=row["title"],
            author=row["author"],
            date=row.get("date") or "",
            type=row["type"],
            content=row.get("content") or "",
            tags=row.get("tags") or [],
            is_pinned=row.get("is_pinned") or False,
            comments=await tree.build_forest(roots, self._children),
        )

    # ------------------------------------------------------------------
    # Members
    async def fetch_members(self, strict: bool = False) -> list[Member]:
        try:
            rows = await self._select("members")
            return [
                Member.model_validate({k: v for k, v in row.items() if v is not None})
                for row in rows
            ]
        except SOFT_ERRORS as exc:
            logger.exception("Error fetching members")
            if strict:
                raise StorageError("could not read members") from exc
            return []

    async def save_member(self, member: Member) -> None:
        try:
            await self._upsert("members", member.model_dump(mode="json"))
        except httpx.HTTPError as exc:
            logger.exception("Error saving member %s", member.id)
            raise StorageError(f"could not save member {member.id}") from exc

    async def remove_member(self, member_id: str) -> bool:
        try:
            removed = await self._delete("members", id=f"eq.{member_id}")
        except SOFT_ERRORS:
            logger.exception("Error deleting member %s", member_id)
            return False
        return bool(removed)

    # ------------------------------------------------------------------
    # Articles
    async def fetch_articles(self) -> list[Article]:
        try:
            rows = await self._select("articles", order="created_at.desc")
            return [await self._article_from_row(row) for row in rows]
        except SOFT_ERRORS:
            logger.exception("Error fetching articles")
            return []

    async def save_article(self, article: Article) -> None:
        row = article.model_dump(mode="json", include=set(ARTICLE_COLUMNS))
        try:
            await self._upsert("articles", row)
        except httpx.HTTPError as exc:
            logger.exception("Error saving article %s", article.id)
            raise StorageError(f"could not save article {article.id}") from exc

    async def remove_article(self, article_id: str) -> bool:
        try:
            await self._delete("comments", article_id=f"eq.{article_id}")
            removed = await self._delete("articles", id=f"eq.{article_id}")
        except SOFT_ERRORS:
            logger.exception("Error deleting article %s", article_id)
            return False
        return bool(removed)

    async def toggle_pin(self, article_id: str) -> None:
        try:
            rows = await self._select("articles", select="is_pinned", id=f"eq.{article_id}")
            if rows:
                await self._request(
                    "PATCH",
                    "articles",
                    params={"id": f"eq.{article_id}"},
                    payload={"is_pinned": not rows[0].get("is_pinned")},
                )
        except SOFT_ERRORS:
            logger.exception("Error toggling pin on %s", article_id)

    # ------------------------------------------------------------------
    # Comments
    async def insert_comment(
        self, article_id: str, comment: Comment, parent_id: str | None = None
    ) -> bool:
        row = {
            "id": comment.id,
            "article_id": article_id,
            "parent_id": parent_id or None,
            "author": comment.author,
            "date": comment.date,
            "content": comment.content,
            "likes": comment.likes,
        }
        try:
            await self._request("POST", "comments", payload=row, prefer="return=minimal")
        except httpx.HTTPError as exc:
            logger.exception("Error adding comment to %s", article_id)
            raise StorageError(f"could not add comment to {article_id}") from exc
        return True

    async def remove_comment(self, article_id: str, comment_id: str) -> bool:
        try:
            # gather the subtree level by level, then delete leaves first
            levels = [[comment_id]]
            while levels[-1]:
                rows = await self._select("comments", select="id", parent_id=_in(levels[-1]))
                levels.append([str(row["id"]) for row in rows])
            removed = []
            for level in reversed(levels[:-1]):
                removed = await self._delete("comments", id=_in(level))
        except SOFT_ERRORS:
            logger.exception("Error deleting comment %s", comment_id)
            return False
        return bool(removed)

    async def like_comment(self, article_id: str, comment_id: str) -> bool:
        try:
            rows = await self._select("comments", select="likes", id=f"eq.{comment_id}")
            if not rows:
                return False
            await self._request(
                "PATCH",
                "comments",
                params={"id": f"eq.{comment_id}"},
                payload={"likes": (rows[0].get("likes") or 0) + 1},
            )
        except SOFT_ERRORS:
            logger.exception("Error liking comment %s", comment_id)
            return False
        return True

    # ------------------------------------------------------------------
    async def clear(self) -> None:
        try:
            await self._delete("comments", id="neq.0")
            await self._delete("articles", id="neq.0")
            await self._delete("members", id=f"neq.{ROOT_ID}")
        except SOFT_ERRORS:
            logger.exception("Error resetting database")

    async def close(self) -> None:
        """Close the underlying :class:`httpx.AsyncClient`."""
        await self.client.aclose()
