"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import credentials

from storage_gateway.config import get_settings
from storage_gateway.documents import (
    DocumentStore,
    FirestoreDocumentStore,
    InMemoryDocumentStore,
)
from storage_gateway.storage import GcsStorageClient, InMemoryStorageClient, StorageClient

logger = logging.getLogger(__name__)

_firebase_app: firebase_admin.App | None = None
_storage_client: StorageClient | None = None
_document_store: DocumentStore | None = None


def get_firebase_app() -> firebase_admin.App:
    """
    Return the singleton Firebase app built from the service-account settings.
    """
    global _firebase_app
    if _firebase_app:
        return _firebase_app

    settings = get_settings()
    settings.require_credentials()
    cred = credentials.Certificate(settings.service_account_info())
    _firebase_app = firebase_admin.initialize_app(
        cred,
        {
            "storageBucket": settings.bucket_name,
            "projectId": settings.firebase_project_id,
        },
    )
    logger.info(
        "Initialized Firebase app for project %s", settings.firebase_project_id
    )
    return _firebase_app


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _storage_client = InMemoryStorageClient(
            bucket_name=settings.bucket_name or "test-bucket"
        )
    else:
        _storage_client = GcsStorageClient.from_app(get_firebase_app())
    return _storage_client


def get_document_store() -> DocumentStore:
    global _document_store
    if _document_store:
        return _document_store

    settings = get_settings()
    if settings.use_in_memory_backends:
        _document_store = InMemoryDocumentStore(settings.firestore_collection)
    else:
        _document_store = FirestoreDocumentStore.from_app(
            get_firebase_app(), settings.firestore_collection
        )
    return _document_store


def reset_clients() -> None:
    """Drop cached clients so the next call rebuilds them (useful in tests)."""
    global _firebase_app, _storage_client, _document_store
    if _firebase_app:
        firebase_admin.delete_app(_firebase_app)
    _firebase_app = None
    _storage_client = None
    _document_store = None
