"""
Configuration and settings for the storage gateway.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from storage_gateway.errors import ConfigurationError

# Maps service-account JSON keys to the settings fields that hold them.
SERVICE_ACCOUNT_FIELDS = {
    "type": "firebase_type",
    "project_id": "firebase_project_id",
    "private_key_id": "firebase_private_key_id",
    "private_key": "firebase_private_key",
    "client_email": "firebase_client_email",
    "client_id": "firebase_client_id",
    "auth_uri": "firebase_auth_url",
    "token_uri": "firebase_token_url",
    "auth_provider_x509_cert_url": "firebase_auth_provider_x509_cert_url",
    "client_x509_cert_url": "firebase_client_x509_cert_url",
    "universe_domain": "firebase_universe_domain",
}

# Fields the Admin SDK cannot start without.
REQUIRED_FIELDS = (
    "bucket_name",
    "firebase_type",
    "firebase_project_id",
    "firebase_private_key",
    "firebase_client_email",
    "firebase_token_url",
)


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="")

    # Cloud Storage
    bucket_name: Optional[str] = Field(default=None)

    # Firebase service account
    firebase_type: Optional[str] = Field(default=None)
    firebase_project_id: Optional[str] = Field(default=None)
    firebase_private_key_id: Optional[str] = Field(default=None)
    firebase_private_key: Optional[str] = Field(default=None)
    firebase_client_email: Optional[str] = Field(default=None)
    firebase_client_id: Optional[str] = Field(default=None)
    firebase_auth_url: Optional[str] = Field(default=None)
    firebase_token_url: Optional[str] = Field(default=None)
    firebase_auth_provider_x509_cert_url: Optional[str] = Field(default=None)
    firebase_client_x509_cert_url: Optional[str] = Field(default=None)
    firebase_universe_domain: Optional[str] = Field(default=None)

    # Firestore
    firestore_collection: str = Field(default="tes")
    firestore_rest_base_url: str = Field(
        default="https://firestore.googleapis.com/v1"
    )
    request_timeout_seconds: float = Field(default=30, gt=0)

    # Signed URL lifetimes
    signed_url_ttl_seconds: int = Field(default=30, gt=0)
    download_url_ttl_seconds: int = Field(default=5, gt=0)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)
    log_level: str = Field(default="INFO")

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    @field_validator("firebase_private_key")
    @classmethod
    def _unescape_newlines(cls, value: Optional[str]) -> Optional[str]:
        # .env files usually carry the PEM block on one line with literal "\n".
        if value is None:
            return value
        return value.replace("\\n", "\n")

    def service_account_info(self) -> dict:
        """Return the credential dict expected by ``credentials.Certificate``."""
        return {
            key: getattr(self, field_name) or ""
            for key, field_name in SERVICE_ACCOUNT_FIELDS.items()
        }

    def missing_credentials(self) -> list[str]:
        return [name.upper() for name in REQUIRED_FIELDS if not getattr(self, name)]

    def require_credentials(self) -> None:
        missing = self.missing_credentials()
        if missing:
            raise ConfigurationError(
                "Missing required configuration: " + ", ".join(missing)
            )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
