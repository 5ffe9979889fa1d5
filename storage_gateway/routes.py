"""
HTTP routes for the storage gateway.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import RedirectResponse

from storage_gateway import firestore_rest
from storage_gateway.config import Settings, get_settings
from storage_gateway.dependencies import get_document_store, get_storage_client
from storage_gateway.documents import DocumentStore
from storage_gateway.errors import (
    ApiError,
    InvalidObjectName,
    UnsupportedFormatError,
    signing_error,
)
from storage_gateway.mime import decode_base64_with_format, generate_random_name
from storage_gateway.schemas import (
    Base64UploadRequest,
    DocumentListResponse,
    HealthResponse,
    MessageResponse,
    UploadResponse,
    UrlFile,
    UrlResponse,
)
from storage_gateway.storage import (
    SignedUrls,
    StorageClient,
    generate_urls,
    raw_object_url,
)

logger = logging.getLogger(__name__)

router = APIRouter()

MIME_TYPES_BY_EXTENSION = {
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".jpg": "image/jpeg",
}


def _sign(storage: StorageClient, filename: str, ttl_seconds: int) -> SignedUrls:
    try:
        return generate_urls(storage, filename, ttl_seconds)
    except InvalidObjectName as e:
        raise ApiError(400, str(e)) from e
    except Exception as e:
        logger.exception("Failed to sign URL for %s", filename)
        raise signing_error(e) from e


def _content_disposition(filename: str) -> str:
    # Header values must be latin-1; non-ASCII names go in the RFC 5987 filename* form.
    fallback = filename.encode("ascii", "replace").decode("ascii").replace("?", "_")
    fallback = fallback.replace("\\", "_").replace('"', "_")
    return (
        f'attachment; filename="{fallback}"; '
        f"filename*=UTF-8''{quote(filename, safe='')}"
    )


def _download_redirect(url: str, filename: str) -> RedirectResponse:
    return RedirectResponse(
        url,
        status_code=302,
        headers={
            "Content-Disposition": _content_disposition(filename),
            "Content-Type": "application/octet-stream",
        },
    )


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok")


@router.get("/url/{filename:path}", response_model=UrlResponse)
def get_urls(
    filename: str,
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_settings),
):
    """
    Return a short-lived signed URL and the raw URL for an object.
    """
    urls = _sign(storage, filename, settings.signed_url_ttl_seconds)
    return UrlResponse(signed_url=urls.signed_url, raw_url=urls.raw_url)


@router.get("/download-signed/{filename:path}")
def download_signed(
    filename: str,
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_settings),
):
    urls = _sign(storage, filename, settings.download_url_ttl_seconds)
    return _download_redirect(urls.signed_url, filename)


@router.get("/download-unsigned/{filename:path}")
def download_unsigned(
    filename: str,
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_settings),
):
    urls = _sign(storage, filename, settings.download_url_ttl_seconds)
    return _download_redirect(urls.raw_url, filename)


async def _accept_upload(file: UploadFile | None) -> UploadResponse:
    # Placeholder: the content is read and dropped, nothing reaches the bucket.
    if file is None or not file.filename:
        raise ApiError(400, "file is required")
    content = await file.read()
    logger.info("Received upload %s (%d bytes)", file.filename, len(content))
    return UploadResponse(message="File uploaded successfully", file=file.filename)


@router.post("/upload-signed", response_model=UploadResponse)
async def upload_signed(file: UploadFile | None = File(None)):
    return await _accept_upload(file)


@router.post("/upload-unsigned", response_model=UploadResponse)
async def upload_unsigned(file: UploadFile | None = File(None)):
    return await _accept_upload(file)


@router.post("/upload-base64", response_model=UrlFile)
def upload_base64(
    payload: Base64UploadRequest,
    storage: StorageClient = Depends(get_storage_client),
):
    """
    Store a base64-encoded PDF/PNG/JPEG under a random name.
    """
    try:
        content, extension = decode_base64_with_format(payload.base64_data)
    except UnsupportedFormatError as e:
        raise ApiError(400, str(e)) from e

    path = generate_random_name() + extension
    try:
        storage.upload_bytes(path, content, MIME_TYPES_BY_EXTENSION[extension])
    except Exception as e:
        logger.exception("Failed to upload %s as %s", payload.file_name, path)
        raise ApiError(500, "Failed to upload file") from e
    return UrlFile(url=raw_object_url(storage.bucket_name, path))


@router.post("/data-firestore-sdk/{data}", response_model=MessageResponse)
def add_document(data: str, store: DocumentStore = Depends(get_document_store)):
    try:
        store.add(data)
    except Exception as e:
        raise ApiError(500, "Failed to add data to Firestore") from e
    return MessageResponse(message="Data added to Firestore with timestamp")


@router.get("/data-firestore-sdk", response_model=DocumentListResponse)
def list_documents(store: DocumentStore = Depends(get_document_store)):
    try:
        documents = store.list_all()
    except Exception as e:
        raise ApiError(500, "Failed to fetch data from Firestore") from e
    return DocumentListResponse(data=documents)


@router.get("/data-firestore-url-unsigned", response_model=DocumentListResponse)
def list_documents_rest(settings: Settings = Depends(get_settings)):
    try:
        fields = firestore_rest.fetch_collection_fields(
            settings.firestore_rest_base_url,
            settings.firebase_project_id or "",
            settings.firestore_collection,
            timeout=settings.request_timeout_seconds,
        )
    except firestore_rest.FirestoreFetchError as e:
        raise ApiError(500, "Failed to fetch data from Firestore") from e
    except firestore_rest.FirestoreSanitizeError as e:
        raise ApiError(500, "Failed to sanitize data") from e
    return DocumentListResponse(data=fields)
