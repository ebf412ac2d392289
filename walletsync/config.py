import os

from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Ensure we pick up legacy environment variable aliases."""

        super().model_post_init(__context)

        if not self.debank_api_key:
            fallback = os.getenv("DEBANK_ACCESS_KEY")
            if fallback:
                object.__setattr__(self, "debank_api_key", fallback)

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")

    # DeBank Provider
    debank_api_key: str = Field(
        default="",
        description="DeBank OpenAPI access key",
        validation_alias=AliasChoices("debank_api_key", "DEBANK_API_KEY"),
    )
    debank_base_url: str = Field(
        default="https://api.connect.debank.com",
        description="Base URL for the DeBank OpenAPI",
    )
    debank_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Wall-clock ceiling for a single DeBank request",
    )
    enable_debank: bool = Field(default=True, description="Enable DeBank provider")

    @property
    def has_debank_key(self) -> bool:
        return bool(self.debank_api_key)


# Global settings instance
settings = Settings()
