"""
Storage abstraction for Cloud Storage (via Firebase Admin) and in-memory testing.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Protocol
import logging

from firebase_admin import storage as firebase_storage

from storage_gateway.errors import InvalidObjectName

logger = logging.getLogger(__name__)

RAW_URL_BASE = "https://storage.googleapis.com"


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    bucket_name: str

    def sign_get_url(self, path: str, expires_at: datetime) -> str:
        ...

    def upload_bytes(
        self, path: str, data: bytes, content_type: str = "application/octet-stream"
    ) -> None:
        ...


@dataclass(frozen=True)
class SignedUrls:
    signed_url: str
    raw_url: str
    expires_at: datetime


def raw_object_url(bucket_name: str, path: str) -> str:
    """Unsigned public URL of an object."""
    return f"{RAW_URL_BASE}/{bucket_name}/{path}"


def generate_urls(
    storage: StorageClient,
    path: str,
    ttl_seconds: int,
    *,
    now: Optional[datetime] = None,
) -> SignedUrls:
    """
    Sign a GET URL for ``path`` that expires ``ttl_seconds`` from now.

    The raw URL is built from the bucket name alone and carries no signature.
    Signing errors from the SDK are propagated unchanged.
    """
    if not path or not path.strip():
        raise InvalidObjectName("filename must not be empty")
    if ttl_seconds <= 0:
        raise ValueError("ttl_seconds must be positive")

    issued_at = now or datetime.now(timezone.utc)
    expires_at = issued_at + timedelta(seconds=ttl_seconds)
    signed_url = storage.sign_get_url(path, expires_at)
    return SignedUrls(
        signed_url=signed_url,
        raw_url=raw_object_url(storage.bucket_name, path),
        expires_at=expires_at,
    )


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    bucket_name: str = "test-bucket"
    base_url: str = "https://example.test/storage"
    stored_objects: dict = None

    def __post_init__(self):
        if self.stored_objects is None:
            self.stored_objects = {}

    def sign_get_url(self, path: str, expires_at: datetime) -> str:
        return (
            f"{self.base_url}/{self.bucket_name}/{path}"
            f"?Expires={int(expires_at.timestamp())}&Signature=in-memory"
        )

    def upload_bytes(
        self, path: str, data: bytes, content_type: str = "application/octet-stream"
    ) -> None:
        self.stored_objects[path] = (data, content_type)


@dataclass
class GcsStorageClient:
    """
    Cloud Storage client backed by the Firebase app's default bucket.

    URLs are signed locally with the service account's private key, so no
    request reaches the bucket until the caller follows the URL.
    """

    bucket: Any

    @classmethod
    def from_app(cls, app) -> "GcsStorageClient":
        # Raises ValueError when the app was initialized without storageBucket.
        return cls(bucket=firebase_storage.bucket(app=app))

    @property
    def bucket_name(self) -> str:
        return self.bucket.name

    def sign_get_url(self, path: str, expires_at: datetime) -> str:
        blob = self.bucket.blob(path)
        return blob.generate_signed_url(
            version="v4",
            expiration=expires_at,
            method="GET",
        )

    def upload_bytes(
        self, path: str, data: bytes, content_type: str = "application/octet-stream"
    ) -> None:
        blob = self.bucket.blob(path)
        blob.upload_from_string(data, content_type=content_type)
        logger.info("Uploaded %d bytes to gs://%s/%s", len(data), self.bucket_name, path)
