from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    # Tokens are issued by the auth provider and signed with this shared secret.
    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    jwt_audience: Optional[str] = Field(None, alias="JWT_AUDIENCE")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    default_max_students: int = Field(10, alias="DEFAULT_MAX_STUDENTS")

    request_timeout_seconds: float = Field(15.0, alias="REQUEST_TIMEOUT_SECONDS")
    max_request_timeout_seconds: float = Field(60.0, alias="MAX_REQUEST_TIMEOUT_SECONDS")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    seed_admin_email: Optional[str] = Field(None, alias="SEED_ADMIN_EMAIL")
    seed_admin_password: Optional[str] = Field(None, alias="SEED_ADMIN_PASSWORD")
    seed_admin_full_name: str = Field("School Admin", alias="SEED_ADMIN_FULL_NAME")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
