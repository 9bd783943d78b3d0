"""Core package for the Order's archive.

This module exposes the data models, the storage backends and the
repository so that consumers of the package can simply import them from
``order_archive``.
"""

from .adapters.base import StorageBackend, StorageError
from .adapters.factory import create_backend
from .adapters.local import LocalBackend
from .adapters.rest import RestBackend
from .core.models import ROOT_ID, Article, ArticleType, Comment, Member, MemberRank
from .data.auth import authenticate
from .data.repository import ArchiveRepository

__all__ = [
    "ROOT_ID",
    "ArchiveRepository",
    "Article",
    "ArticleType",
    "Comment",
    "LocalBackend",
    "Member",
    "MemberRank",
    "RestBackend",
    "StorageBackend",
    "StorageError",
    "authenticate",
    "create_backend",
]
