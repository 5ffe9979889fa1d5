"""
Document store abstraction for Firestore and an in-memory test implementation.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Protocol

from firebase_admin import firestore
from google.cloud.firestore_v1 import SERVER_TIMESTAMP

logger = logging.getLogger(__name__)

TIMESTAMP_FIELD = "timestamp"
PAYLOAD_FIELD = "queryData"
ID_FIELD = "id"


class DocumentStore(Protocol):
    """Interface for the document collection the API reads and writes."""

    collection: str

    def add(self, payload: str) -> str:
        ...

    def list_all(self) -> List[Dict[str, Any]]:
        ...


class InMemoryDocumentStore:
    """Simple in-memory document collection for development and tests."""

    def __init__(self, collection: str = "tes"):
        self.collection = collection
        self.documents: Dict[str, Dict[str, Any]] = {}

    def add(self, payload: str) -> str:
        doc_id = uuid.uuid4().hex
        self.documents[doc_id] = {
            TIMESTAMP_FIELD: datetime.now(timezone.utc),
            PAYLOAD_FIELD: payload,
        }
        return doc_id

    def list_all(self) -> List[Dict[str, Any]]:
        return [
            {ID_FIELD: doc_id, **fields} for doc_id, fields in self.documents.items()
        ]

    def reset(self) -> None:
        """Clear all stored documents (useful in tests)."""
        self.documents.clear()


class FirestoreDocumentStore:
    """
    Firestore-backed collection. The timestamp is assigned by the server.
    """

    def __init__(self, client, collection: str = "tes"):
        self.client = client
        self.collection = collection

    @classmethod
    def from_app(cls, app, collection: str) -> "FirestoreDocumentStore":
        return cls(firestore.client(app=app), collection)

    def add(self, payload: str) -> str:
        try:
            _, doc_ref = self.client.collection(self.collection).add(
                {TIMESTAMP_FIELD: SERVER_TIMESTAMP, PAYLOAD_FIELD: payload}
            )
        except Exception:
            logger.exception("Failed to add document to %s", self.collection)
            raise
        return doc_ref.id

    def list_all(self) -> List[Dict[str, Any]]:
        # Full scan; the collection is expected to stay small.
        documents = []
        try:
            for snapshot in self.client.collection(self.collection).stream():
                # A stored "id" field takes precedence over the document id.
                documents.append({ID_FIELD: snapshot.id, **(snapshot.to_dict() or {})})
        except Exception:
            logger.exception("Failed to list documents in %s", self.collection)
            raise
        return documents
