"""
Unauthenticated reads against the Firestore REST API.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import requests

logger = logging.getLogger(__name__)


class FirestoreFetchError(RuntimeError):
    """The REST call failed or returned a non-2xx status."""


class FirestoreSanitizeError(ValueError):
    """The REST response body could not be reshaped."""


def collection_url(base_url: str, project_id: str, collection: str) -> str:
    return (
        f"{base_url.rstrip('/')}/projects/{project_id}"
        f"/databases/(default)/documents/{collection}"
    )


def sanitize_documents(payload: Any) -> List[Dict[str, Any]]:
    """
    Reduce a ``documents.list`` response to each document's ``fields`` object.

    Documents without a ``fields`` mapping are skipped.
    """
    if not isinstance(payload, dict):
        raise FirestoreSanitizeError("Firestore response is not a JSON object")
    documents = payload.get("documents") or []
    if not isinstance(documents, list):
        raise FirestoreSanitizeError("'documents' is not a list")
    field_lists = []
    for doc in documents:
        fields = doc.get("fields") if isinstance(doc, dict) else None
        if isinstance(fields, dict):
            field_lists.append(fields)
    return field_lists


def fetch_collection_fields(
    base_url: str,
    project_id: str,
    collection: str,
    timeout: float,
) -> List[Dict[str, Any]]:
    """
    Fetches every document of ``collection`` through the public REST API.

    Raises:
        FirestoreFetchError: if the request fails.
        FirestoreSanitizeError: if the response is not the expected JSON.
    """
    url = collection_url(base_url, project_id, collection)
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error("Firestore REST request to %s failed: %s", url, e)
        raise FirestoreFetchError(str(e)) from e

    try:
        payload = response.json()
    except ValueError as e:
        raise FirestoreSanitizeError(f"Invalid JSON from Firestore: {e}") from e
    return sanitize_documents(payload)
