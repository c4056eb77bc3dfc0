import os
import tempfile
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    ENV: str = "local"
    LOG_LEVEL: str = "INFO"
    CORS_ALLOW_ORIGINS: List[str] = ["*"]

    # Optional caller authentication; an empty key disables the check
    JWT_PUBLIC_KEY: str = ""
    JWT_ALGORITHM: str = "RS256"
    EXPECTED_JWT_ISSUER: Optional[str] = None
    EXPECTED_JWT_AUDIENCE: Optional[str] = None

    # Per-session chunk directories live under this root until finalize
    STAGING_ROOT: str = os.path.join(tempfile.gettempdir(), "uploads")

    # Assembled files (local backend) and the public prefix they are served under
    DESTINATION_ROOT: str = os.path.join("public", "uploads")
    PUBLIC_URL_PREFIX: str = "/uploads"

    MAX_CHUNKS: int = 1000
    ATOMIC_FINALIZE: bool = False
    IO_WORKERS: int = 4

    STORAGE_BACKEND: str = "local"  # 's3' or 'local'
    S3_ACCESS_KEY: str = ""
    S3_SECRET_KEY: str = ""
    S3_BUCKET_NAME: str = "uploads"
    S3_ENDPOINT_URL: Optional[str] = None
    S3_REGION_NAME: Optional[str] = None
    S3_KEY_PREFIX: str = "uploads/"

    SERVICE_PORT: int = 8000

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

settings = Settings()
