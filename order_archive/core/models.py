"""Data models for the archive's core records.

The models are implemented using :mod:`pydantic` so that they provide
runtime validation and convenient serialisation to and from dictionaries.
Attribute names are snake_case; the stored local format uses camelCase
aliases (``isPinned``, ``joinedDate`` ...) and both spellings are accepted
when validating.
"""

from __future__ import annotations

import datetime
import enum
import uuid

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ROOT_ID = "AO-000-ALPHA"
ADMIN_ALIAS = "ADMIN"


def _today() -> str:
    return datetime.date.today().isoformat()


def _now_minutes() -> str:
    return datetime.datetime.now().strftime("%Y-%m-%d %H:%M")


class MemberRank(str, enum.Enum):
    """Ordered set of ranks a member can hold."""

    INITIATE = "Initiate"
    ADEPT = "Adept"
    MAGUS = "Magus"
    ARCHITECT = "Architect"

    @property
    def level(self) -> int:
        return list(MemberRank).index(self)


class ArticleType(str, enum.Enum):
    TEXT = "TEXT"
    PDF = "PDF"
    RITUAL = "RITUAL"


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Member(_Record):
    """An identity record of the Order.

    Attributes
    ----------
    id:
        Stable, human-chosen identifier. Immutable once assigned.
    codename:
        Display alias used as comment and article author. Not unique.
    password:
        Plaintext credential. An empty value on upsert keeps the stored one.
    rank:
        One of :class:`MemberRank`; Architects administer the archive.

    """

    id: str
    name: str
    codename: str
    password: str = ""
    email: str = ""
    photo_url: str | None = None
    rank: MemberRank = MemberRank.INITIATE
    joined_date: str = Field(default_factory=_today)
    active: bool = True
    notes: str | None = None

    @property
    def is_architect(self) -> bool:
        return self.rank == MemberRank.ARCHITECT

    @property
    def is_root(self) -> bool:
        return self.id == ROOT_ID


class Comment(_Record):
    """A node in an article's comment forest.

    ``replies`` nests further comments. Ids are unique across the whole
    forest of one article, not only among siblings.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    author: str
    date: str = Field(default_factory=_now_minutes)
    content: str
    likes: int = Field(default=0, ge=0)
    replies: list[Comment] = Field(default_factory=list)


class Article(_Record):
    """A publication together with the comment forest it owns."""

    id: str
    title: str
    author: str
    date: str = Field(default_factory=_today)
    type: ArticleType = ArticleType.TEXT
    content: str = ""
    tags: list[str] = Field(default_factory=list)
    is_pinned: bool = False
    comments: list[Comment] = Field(default_factory=list)


class VerificationResult(BaseModel):
    """Outcome of a public membership verification lookup."""

    valid: bool
    member: Member | None = None
    timestamp: str = Field(
        default_factory=lambda: datetime.datetime.now().isoformat(timespec="seconds")
    )
