"""Firestore async client singleton."""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

_client: Any = None


def get_firestore_client() -> Any:
    """Return a lazy-initialized Firestore AsyncClient.

    Uses Application Default Credentials (ADC).  The import is deferred so
    that the in-memory store works without google-cloud-firestore
    installed.
    """
    global _client
    if _client is not None:
        return _client

    from google.cloud.firestore import AsyncClient

    _client = AsyncClient()
    logger.info("Using Google Cloud Firestore")
    return _client


def _reset_client() -> None:
    """Reset the singleton (for testing only)."""
    global _client
    _client = None
