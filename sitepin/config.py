"""Pydantic Settings — loads configuration from environment variables."""

from functools import lru_cache
from pathlib import Path
from urllib.parse import urlparse

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

_VALID_SCHEMES = {"http", "https"}
_LOG_FORMATS = {"text", "json"}


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "extra": "ignore"}

    website: str

    storage_account: str = Field(
        validation_alias=AliasChoices("storage_account", "email"),
    )
    storage_space: str = Field(
        validation_alias=AliasChoices("storage_space", "space"),
    )
    storage_secret: str = ""
    storage_api_url: str = "http://127.0.0.1:5001/api/v0"
    gateway_domain: str = "ipfs.w3s.link"

    workspace_dir: Path = Path("temp")
    upload_roots: list[Path] = []

    asset_concurrency: int = Field(default=8, ge=1)
    request_timeout: float = Field(default=30.0, gt=0)
    user_agent: str = "sitepin/0.1.0"

    log_level: str = "INFO"
    log_format: str = "text"

    @field_validator("website")
    @classmethod
    def _check_website(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in _VALID_SCHEMES or not parsed.netloc:
            raise ValueError("website must be an absolute http(s) URL")
        return value.rstrip("/")

    @field_validator("storage_account", "storage_space")
    @classmethod
    def _check_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in _LOG_FORMATS:
            raise ValueError(f"log_format must be one of {sorted(_LOG_FORMATS)}")
        return value

    @property
    def roots(self) -> list[Path]:
        """Directories handed to the publish stage; defaults to the workspace."""
        return list(self.upload_roots) or [self.workspace_dir]


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
