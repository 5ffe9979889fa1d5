"""
Pydantic schemas for the storage gateway API.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class UrlResponse(BaseModel):
    signed_url: str
    raw_url: str


class UploadResponse(BaseModel):
    message: str
    file: str


class Base64UploadRequest(BaseModel):
    file_name: str = Field(..., min_length=1)
    base64_data: str = Field(..., min_length=1)


class UrlFile(BaseModel):
    url: str


class MessageResponse(BaseModel):
    message: str


class DocumentListResponse(BaseModel):
    data: list[dict[str, Any]]


class HealthResponse(BaseModel):
    status: Literal["ok"]
