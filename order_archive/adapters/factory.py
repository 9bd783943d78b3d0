"""Select the storage backend for the lifetime of the process."""

from __future__ import annotations

import logging

import httpx

from ..config import Settings
from .base import StorageBackend
from .local import LocalBackend
from .rest import RestBackend

logger = logging.getLogger(__name__)


def create_backend(
    settings: Settings, client: httpx.AsyncClient | None = None
) -> StorageBackend:
    """Return the remote backend when fully configured, else the local one."""
    if settings.remote:
        logger.info("Using remote storage at %s", settings.endpoint)
        return RestBackend(settings.endpoint, settings.access_key, client=client)
    logger.info("Remote storage not configured; using %s", settings.data_path)
    return LocalBackend(settings.data_path)
