"""
Base64 file sniffing by encoded signature prefix.
"""

from __future__ import annotations

import base64
import binascii
import secrets
import string

from storage_gateway.errors import UnsupportedFormatError

# Base64 of each format's magic bytes ("%PDF-", "\x89PNG\r\n\x1a\n", "\xff\xd8\xff").
SIGNATURES = {
    "JVBERi0": "application/pdf",
    "iVBORw0KGgo": "image/png",
    "/9j/": "image/jpeg",
}

EXTENSIONS = {
    "application/pdf": ".pdf",
    "image/png": ".png",
    "image/jpeg": ".jpg",
}

RANDOM_NAME_CHARSET = string.ascii_letters + string.digits
RANDOM_NAME_LENGTH = 128


def detect_mime_type(data: str) -> str:
    for prefix, mime_type in SIGNATURES.items():
        if data.startswith(prefix):
            return mime_type
    raise UnsupportedFormatError("unsupported base64 format")


def decode_base64_with_format(data: str) -> tuple[bytes, str]:
    """
    Decode base64 content whose format is one of the known signatures.

    Returns:
        The decoded bytes and the file extension (with leading dot).

    Raises:
        UnsupportedFormatError: if the prefix is unknown or the payload is not
            valid base64.
    """
    mime_type = detect_mime_type(data)
    try:
        decoded = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise UnsupportedFormatError(f"invalid base64 data: {e}") from e
    return decoded, EXTENSIONS[mime_type]


def generate_random_name(length: int = RANDOM_NAME_LENGTH) -> str:
    return "".join(secrets.choice(RANDOM_NAME_CHARSET) for _ in range(length))
