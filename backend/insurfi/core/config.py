from typing import List, Union
from pydantic import AnyHttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_MIME_TYPES = [
    "image/jpeg",
    "image/png",
    "image/gif",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
]


class Settings(BaseSettings):
    PROJECT_NAME: str = "Insurfi Claims"
    API_V1_STR: str = "/api"

    # CORS
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = ["http://localhost:5173", "http://localhost:3000"]

    @field_validator("BACKEND_CORS_ORIGINS", mode='before')
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Database
    SQLALCHEMY_DATABASE_URI: str = "sqlite+aiosqlite:///./insurfi.db"
    SQL_ECHO: bool = False
    DB_POOL_SIZE: int = 5  # 0 disables pooling

    # Claim documents
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024
    MAX_UPLOAD_FILES: int = 10
    ALLOWED_MIME_TYPES: List[str] = DEFAULT_ALLOWED_MIME_TYPES

    @field_validator("ALLOWED_MIME_TYPES", mode='before')
    def assemble_mime_types(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    CLAIM_ID_PREFIX: str = "CLM"
    CURRENCY_SYMBOL: str = "$"

    # Admin sessions
    ADMIN_SESSION_HOURS: int = 24

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")


settings = Settings()
