from functools import lru_cache
from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    # DB URL (env: DATABASE_URL)
    database_url: str = Field(
        default="sqlite:///./dev.db",
        validation_alias="DATABASE_URL",
    )
    environment: str = Field(default="local")
    log_level: str = Field(default="INFO")

    # JWT
    secret_key: str = Field(default="CHANGE_ME_SECRET")
    jwt_algorithm: str = Field(default="HS256")
    access_token_exp_minutes: int = Field(default=60)

    # CORS
    cors_origins: str = Field(default="http://localhost:3000")  # comma separated list

    # Cover image storage
    storage_backend: Literal["local", "s3"] = Field(default="local")
    upload_dir: str = Field(default="./uploads")
    static_base_url: str = Field(default="/uploads/")
    max_upload_mb: int = Field(default=5)

    # AWS/S3 (storage_backend == "s3")
    aws_access_key_id: Optional[str] = Field(
        default=None,
        validation_alias="AWS_ACCESS_KEY_ID",
    )
    aws_secret_access_key: Optional[str] = Field(
        default=None,
        validation_alias="AWS_SECRET_ACCESS_KEY",
    )
    aws_region: Optional[str] = Field(
        default=None,
        validation_alias="AWS_REGION",
    )
    s3_bucket: Optional[str] = Field(
        default=None,
        validation_alias="S3_BUCKET",
    )
    s3_public_base_url: Optional[str] = Field(
        default=None,
        validation_alias="S3_PUBLIC_BASE_URL",
    )  # e.g., https://cdn.example.com/

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="forbid",
    )

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
