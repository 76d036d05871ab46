from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Catalog Media API"
    debug: bool = False
    log_level: str = "INFO"
    upload_dir: str = "uploads"
    public_url_prefix: str = "/uploads"
    max_upload_bytes: int = Field(default=50 * MIB, ge=1)
    max_request_body_bytes: int = Field(default=100 * MIB, ge=1)
    max_image_width: int = Field(default=1200, ge=1)
    webp_quality: int = Field(default=85, ge=0, le=100)
    transcode_workers: int = Field(default=2, ge=1)
    admin_token: str | None = None
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])

    @property
    def upload_path(self) -> Path:
        return Path(self.upload_dir)


settings = Settings()
