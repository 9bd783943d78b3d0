"""Resolve login identifiers to members and check credentials."""

from __future__ import annotations

import logging

from ..core.models import ADMIN_ALIAS, ROOT_ID, Member
from .repository import ArchiveRepository

logger = logging.getLogger(__name__)


def normalize_identifier(identifier: str) -> str:
    """Strip ``identifier`` and map the ``ADMIN`` alias to the root id."""
    identifier = identifier.strip()
    if identifier.upper() == ADMIN_ALIAS:
        return ROOT_ID
    return identifier


async def authenticate(
    repository: ArchiveRepository, identifier: str, password: str
) -> Member | None:
    """Return the member identified by ``identifier`` if ``password`` matches.

    ``identifier`` is matched case-insensitively against member ids and
    codenames. An identifier matching more than one member is rejected.
    Passwords are compared as stored, without hashing.
    """
    key = normalize_identifier(identifier).lower()
    if not key or not password:
        return None
    matches = [
        m
        for m in await repository.list_members()
        if m.id.lower() == key or m.codename.lower() == key
    ]
    if len(matches) != 1:
        if matches:
            logger.warning("Identifier %r is ambiguous", identifier)
        return None
    member = matches[0]
    if member.password != password:
        logger.info("Failed login for %s", member.id)
        return None
    return member
