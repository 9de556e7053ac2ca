from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _strip_scheme(endpoint: str) -> str:
    # MINIO_ENDPOINT is a bare host; tolerate a pasted URL
    endpoint = (endpoint or "").strip()
    for scheme in ("http://", "https://"):
        if endpoint.lower().startswith(scheme):
            endpoint = endpoint[len(scheme) :]
    return endpoint.rstrip("/")


@dataclass
class Settings:
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    MINIO_ENDPOINT: str = "minio"
    MINIO_PORT: int = 9000
    MINIO_USE_SSL: bool = False
    MINIO_ACCESS_KEY: str = "minioadmin"
    MINIO_SECRET_KEY: str = "minioadmin"
    MINIO_REGION: str = "us-east-1"
    BUCKET_NAME: str = "family-cloud"
    STORAGE_CONNECT_TIMEOUT: float = 5.0
    STORAGE_READ_TIMEOUT: float = 60.0
    STORAGE_MAX_ATTEMPTS: int = 1
    DOWNLOAD_CHUNK_SIZE: int = 64 * 1024
    CORS_ENABLED: bool = True
    CORS_ORIGINS: list[str] = field(default_factory=list)
    ENABLE_METRICS: bool = True
    LOG_LEVEL: str = "INFO"

    def __post_init__(self) -> None:
        self.MINIO_ENDPOINT = _strip_scheme(self.MINIO_ENDPOINT)
        if not self.MINIO_ENDPOINT:
            raise ValueError("MINIO_ENDPOINT must not be empty.")
        if not self.BUCKET_NAME:
            raise ValueError("BUCKET_NAME must not be empty.")
        if self.STORAGE_MAX_ATTEMPTS < 1:
            raise ValueError("STORAGE_MAX_ATTEMPTS must be at least 1.")
        if self.DOWNLOAD_CHUNK_SIZE <= 0:
            raise ValueError("DOWNLOAD_CHUNK_SIZE must be positive.")

    @property
    def storage_endpoint_url(self) -> str:
        scheme = "https" if self.MINIO_USE_SSL else "http"
        return f"{scheme}://{self.MINIO_ENDPOINT}:{self.MINIO_PORT}"

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            HOST=os.environ.get("HOST", cls.HOST),
            PORT=int(os.environ.get("PORT", cls.PORT)),
            MINIO_ENDPOINT=os.environ.get("MINIO_ENDPOINT", cls.MINIO_ENDPOINT),
            MINIO_PORT=int(os.environ.get("MINIO_PORT", cls.MINIO_PORT)),
            MINIO_USE_SSL=_as_bool(
                os.environ.get("MINIO_USE_SSL"), cls.MINIO_USE_SSL
            ),
            MINIO_ACCESS_KEY=os.environ.get("MINIO_ACCESS_KEY", cls.MINIO_ACCESS_KEY),
            MINIO_SECRET_KEY=os.environ.get("MINIO_SECRET_KEY", cls.MINIO_SECRET_KEY),
            MINIO_REGION=os.environ.get("MINIO_REGION", cls.MINIO_REGION),
            BUCKET_NAME=os.environ.get("BUCKET_NAME") or cls.BUCKET_NAME,
            STORAGE_CONNECT_TIMEOUT=float(
                os.environ.get("STORAGE_CONNECT_TIMEOUT", cls.STORAGE_CONNECT_TIMEOUT)
            ),
            STORAGE_READ_TIMEOUT=float(
                os.environ.get("STORAGE_READ_TIMEOUT", cls.STORAGE_READ_TIMEOUT)
            ),
            STORAGE_MAX_ATTEMPTS=int(
                os.environ.get("STORAGE_MAX_ATTEMPTS", cls.STORAGE_MAX_ATTEMPTS)
            ),
            DOWNLOAD_CHUNK_SIZE=int(
                os.environ.get("DOWNLOAD_CHUNK_SIZE", cls.DOWNLOAD_CHUNK_SIZE)
            ),
            CORS_ENABLED=_as_bool(os.environ.get("CORS_ENABLED"), cls.CORS_ENABLED),
            CORS_ORIGINS=_as_list(os.environ.get("CORS_ORIGINS")),
            ENABLE_METRICS=_as_bool(
                os.environ.get("ENABLE_METRICS"), cls.ENABLE_METRICS
            ),
            LOG_LEVEL=os.environ.get("LOG_LEVEL", cls.LOG_LEVEL).upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
