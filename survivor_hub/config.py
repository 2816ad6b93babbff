"""
Application Configuration
Uses Pydantic Settings for environment-based configuration
"""

from enum import Enum

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "Survivor Hub API"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production)$")
    DEBUG: bool = Field(default=False)
    API_V1_STR: str = "/api/v1"

    # Security
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # CORS
    # Allow str because it can be a comma-separated string in .env
    CORS_ORIGINS: str | list[str] = Field(
        default=["http://localhost:5173", "http://localhost:8080"]
    )

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_ECHO: bool = False

    # Redis
    REDIS_URL: str = Field(default="redis://localhost:6379/0")
    REPORT_EVENTS_CHANNEL: str = "reports-changes"

    # Task Queue
    TASK_QUEUE_TYPE: str = Field(
        default="background",  # Options: "background", "arq"
        pattern="^(background|arq)$",
    )
    ARQ_REDIS_URL: str = Field(default="redis://localhost:6379/1")
    ARQ_MAX_TRIES: int = 3
    ARQ_KEEP_RESULT: int = 3600  # 1 hour

    # Evidence storage
    EVIDENCE_STORAGE_PATH: str = "/survivor-hub/evidence"
    MAX_EVIDENCE_SIZE: int = 10 * 1024 * 1024  # 10MB per file
    MAX_EVIDENCE_FILES: int = 10
    EVIDENCE_RETENTION_HOURS: int = 48

    # Tracking IDs
    TRACKING_ID_MAX_ATTEMPTS: int = 5

    # Email (admin notifications)
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_TLS: bool = False
    SMTP_STARTTLS: bool = True
    SMTP_FROM_EMAIL: str = "onboarding@survivorhub.org"
    SMTP_FROM_NAME: str = "Survivor Hub"
    ADMIN_NOTIFICATION_EMAIL: str | None = None
    ADMIN_DASHBOARD_URL: str = "http://localhost:8080/admin"

    # Support chat (OpenAI-compatible completion API)
    CHAT_API_KEY: str | None = None
    CHAT_API_BASE_URL: str = "https://api.openai.com/v1"
    CHAT_MODEL: str = "gpt-4o-mini"
    CHAT_TEMPERATURE: float = 0.7
    CHAT_MAX_TOKENS: int = 1000
    CHAT_TIMEOUT_SECONDS: float = 60.0
    CHAT_HISTORY_LIMIT: int = 40  # most recent turns forwarded to the provider

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string"""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v


# Create global settings instance

load_dotenv()
settings = Settings()  # type: ignore[call-arg]


class ReportStatus(str, Enum):
    """Report lifecycle states"""

    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    RESOLVED = "resolved"
    REQUIRES_ACTION = "requires_action"


class AbuseType(str, Enum):
    """Closed set of abuse categories a report can be filed under"""

    ONLINE_HARASSMENT = "Online Harassment"
    CYBERSTALKING = "Cyberstalking"
    NON_CONSENSUAL_IMAGE_SHARING = "Non-consensual Image Sharing"
    DOXXING = "Doxxing"
    IDENTITY_THEFT = "Identity Theft"
    UNAUTHORIZED_ACCESS = "Hacking/Unauthorized Access"
    THREATS = "Threats"
    OTHER = "Other"


class Role(str, Enum):
    """Roles stored in user_roles"""

    ADMIN = "admin"
    USER = "user"


class Locale(str, Enum):
    """Supported interface languages"""

    EN = "en"
    SW = "sw"


class Theme(str, Enum):
    """Interface theme preference"""

    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"
