from typing import Any, List
import os

from pydantic import Field, PostgresDsn, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "knowledge-assistant"

    # CORS
    CORS_ORIGINS: str = "http://localhost:5173"  # Frontend URL

    # Database
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "knowledge_assistant"
    SQLALCHEMY_DATABASE_URI: str | None = Field(default=None, validate_default=True)
    SYNC_SQLALCHEMY_DATABASE_URI: str | None = Field(default=None, validate_default=True)

    @field_validator("SQLALCHEMY_DATABASE_URI", mode="before")
    def assemble_db_connection(cls, v: str | None, info: Any) -> Any:
        if isinstance(v, str):
            return v
        return str(
            PostgresDsn.build(
                scheme="postgresql+asyncpg",
                username=info.data.get("POSTGRES_USER"),
                password=info.data.get("POSTGRES_PASSWORD"),
                host=info.data.get("POSTGRES_HOST"),
                port=info.data.get("POSTGRES_PORT"),
                path=f"{info.data.get('POSTGRES_DB') or ''}",
            )
        )

    @field_validator("SYNC_SQLALCHEMY_DATABASE_URI", mode="before")
    def assemble_sync_db_connection(cls, v: str | None, info: Any) -> Any:
        if isinstance(v, str):
            return v
        return str(
            PostgresDsn.build(
                scheme="postgresql+psycopg2",  # Alembic runs on the synchronous driver
                username=info.data.get("POSTGRES_USER"),
                password=info.data.get("POSTGRES_PASSWORD"),
                host=info.data.get("POSTGRES_HOST"),
                port=info.data.get("POSTGRES_PORT"),
                path=f"{info.data.get('POSTGRES_DB') or ''}",
            )
        )

    # Redis
    REDIS_HOST: str = "localhost"
    REDIS_PORT: str = "6379"
    REDIS_PASSWORD: str = ""
    REDIS_URL: str | None = Field(default=None, validate_default=True)

    @field_validator("REDIS_URL", mode="before")
    def assemble_redis_connection(cls, v: str | None, info: Any) -> Any:
        if isinstance(v, str):
            return v
        password = f":{info.data.get('REDIS_PASSWORD')}@" if info.data.get("REDIS_PASSWORD") else ""
        return f"redis://{password}{info.data.get('REDIS_HOST')}:{info.data.get('REDIS_PORT')}/0"

    CELERY_BROKER_URL: str | None = None
    CELERY_RESULT_BACKEND: str | None = None

    # Vector store (Mem0)
    MEM0_API_KEY: str | None = None
    VECTOR_NAMESPACE: str = "knowledge-base"
    VECTOR_STORE_TIMEOUT: float = 30.0

    # Remote answering service
    ANSWERING_SERVICE_URL: str = "http://localhost:8080/mimod"
    ANSWERING_SERVICE_TIMEOUT: float = 60.0

    # Auth
    SECRET_KEY: str = "change-me"
    JWT_ALGORITHMS: List[str] = ["HS256"]

    # File ingestion
    DATA_DIR: str = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), "data")
    MAX_UPLOAD_FILES: int = 10
    MAX_UPLOAD_BYTES: int = 1024 * 1024 * 1024  # 1 GiB per request
    INGESTION_BACKEND: str = "background"  # "background" or "celery"
    CHUNK_SIZE: int = 1000  # tokens
    CHUNK_OVERLAP: int = 100  # tokens

    # Runtime
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False
    AUTO_CREATE_TABLES: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="allow",  # Allow extra fields from environment variables
    )


settings = Settings()
