# planexpiry/config.py
"""
Centralized configuration with validation.

Uses pydantic-settings to load and validate all environment variables once at
the process boundary. The jobs themselves never read the environment; they
receive an ExpiryConfig built from Settings.
"""

from dataclasses import dataclass
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from planexpiry.constants import DEFAULT_SITE_URL, UPGRADE_PATH, EmailDefaults, PlanDefaults, TemplateNames


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Appwrite service credentials
    APPWRITE_ENDPOINT: str | None = Field(
        default=None,
        description="Appwrite API endpoint, e.g. https://cloud.appwrite.io/v1",
    )
    APPWRITE_PROJECT_ID: str | None = None
    APPWRITE_API_KEY: str | None = None

    # Collections
    APPWRITE_DATABASE_ID: str | None = Field(
        default=None,
        description="Primary database holding the user collection",
    )
    APPWRITE_USER_COLLECTION_ID: str | None = None
    SYSTEM_DB_ID: str | None = Field(
        default=None,
        description="Database holding the mail template collection",
    )
    MAIL_TEMPLATES_COLLECTION_ID: str | None = None
    APPWRITE_FUNCTION_LOGS_COLLECTION_ID: str | None = Field(
        default=None,
        description="Audit log collection. Audit logging is disabled when unset.",
    )

    # Email
    RESEND_API_KEY: str | None = Field(
        default=None,
        description="Resend API key for notification emails",
    )
    EMAIL_FROM: str = Field(
        default=EmailDefaults.FROM_ADDRESS,
        description="Verified sender identity",
    )
    NEXT_PUBLIC_SITE_URL: str = Field(
        default=DEFAULT_SITE_URL,
        description="Public site URL used to build the upgrade link",
    )

    # Plan policy
    FREE_PLAN_DURATION_DAYS: int = Field(default=PlanDefaults.FREE_PLAN_DURATION_DAYS, ge=1)
    WARNING_DAYS_BEFORE: int = Field(default=PlanDefaults.WARNING_DAYS_BEFORE, ge=0)
    MEDIA_GRACE_PERIOD_DAYS: int = Field(default=PlanDefaults.MEDIA_GRACE_PERIOD_DAYS, ge=1)
    BATCH_SIZE: int = Field(default=PlanDefaults.BATCH_SIZE, ge=1, le=5000)

    # Application
    STORE_PROVIDER: str = Field(
        default="appwrite",
        description="Backing store: appwrite, memory",
    )
    ADMIN_API_KEY: str | None = None
    LOG_FORMAT: str = Field(default="json", description="json or text")
    LOG_LEVEL: str = Field(default="INFO")

    @field_validator("NEXT_PUBLIC_SITE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Avoid double slashes when the upgrade path is appended."""
        return v.rstrip("/") or DEFAULT_SITE_URL

    @field_validator("STORE_PROVIDER")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        return v.lower().strip()

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL; got {v!r}")
        return level

    @model_validator(mode="after")
    def check_warning_window(self) -> "Settings":
        if self.WARNING_DAYS_BEFORE >= self.FREE_PLAN_DURATION_DAYS:
            raise ValueError(
                f"WARNING_DAYS_BEFORE ({self.WARNING_DAYS_BEFORE}) must be smaller than "
                f"FREE_PLAN_DURATION_DAYS ({self.FREE_PLAN_DURATION_DAYS})"
            )
        return self

    def missing_appwrite_settings(self) -> list[str]:
        """Names of required Appwrite variables that are not set."""
        required = [
            "APPWRITE_ENDPOINT",
            "APPWRITE_PROJECT_ID",
            "APPWRITE_API_KEY",
            "APPWRITE_DATABASE_ID",
            "APPWRITE_USER_COLLECTION_ID",
            "SYSTEM_DB_ID",
            "MAIL_TEMPLATES_COLLECTION_ID",
        ]
        return [name for name in required if not getattr(self, name)]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings. Call at startup to validate config."""
    return Settings()


@dataclass(frozen=True)
class ExpiryConfig:
    """
    Policy parameters for one run, constructed once at the boundary.

    warning_cutoff_days is derived: an account becomes eligible for the
    warning this many days after its plan started.
    """

    plan_duration_days: int = PlanDefaults.FREE_PLAN_DURATION_DAYS
    warning_days_before: int = PlanDefaults.WARNING_DAYS_BEFORE
    media_grace_days: int = PlanDefaults.MEDIA_GRACE_PERIOD_DAYS
    batch_size: int = PlanDefaults.BATCH_SIZE
    site_url: str = DEFAULT_SITE_URL
    language: str = TemplateNames.LANGUAGE

    @property
    def warning_cutoff_days(self) -> int:
        return self.plan_duration_days - self.warning_days_before

    @property
    def upgrade_url(self) -> str:
        return f"{self.site_url}{UPGRADE_PATH}"

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExpiryConfig":
        return cls(
            plan_duration_days=settings.FREE_PLAN_DURATION_DAYS,
            warning_days_before=settings.WARNING_DAYS_BEFORE,
            media_grace_days=settings.MEDIA_GRACE_PERIOD_DAYS,
            batch_size=settings.BATCH_SIZE,
            site_url=settings.NEXT_PUBLIC_SITE_URL,
        )
