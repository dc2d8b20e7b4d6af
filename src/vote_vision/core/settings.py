"""Application settings and configuration.

This module defines all configuration options for the VoteVision Stage application.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CATEGORIES = [
    "Entertainment",
    "Educational",
    "Music",
    "Gaming",
    "Technology",
    "Art & Design",
    "Comedy",
    "Documentary",
]

DEFAULT_ASPECT_RATIOS = ["16:9", "9:16", "1:1", "4:3", "3:4"]

DEFAULT_AUTH_MESSAGE = (
    "Welcome to VoteVision! Sign this message to authenticate and participate "
    "in video creation voting."
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    This class defines all configuration options for the VoteVision Stage application.
    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="VoteVision Stage", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    admin_api_key: str | None = Field(default=None, alias="ADMIN_API_KEY")

    # Database configuration
    database_url: str = Field(default="sqlite:///./votevision.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Wallet identity
    auth_message_prefix: str = Field(default=DEFAULT_AUTH_MESSAGE, alias="AUTH_MESSAGE_PREFIX")
    auth_max_age_seconds: int = Field(default=24 * 60 * 60, alias="AUTH_MAX_AGE_SECONDS")
    auth_max_clock_skew_seconds: int = Field(default=300, alias="AUTH_MAX_CLOCK_SKEW_SECONDS")
    signature_scheme: Literal["ethereum", "ed25519"] = Field(
        default="ethereum",
        alias="SIGNATURE_SCHEME",
    )
    identity_cache_size: int = Field(default=1024, alias="IDENTITY_CACHE_SIZE")
    default_vote_balance: int = Field(default=10, alias="DEFAULT_VOTE_BALANCE")
    signature_verify_timeout_seconds: float = Field(
        default=5.0,
        alias="SIGNATURE_VERIFY_TIMEOUT_SECONDS",
    )

    # Ballot weight per tier
    vote_weight_basic: int = Field(default=1, ge=1, alias="VOTE_WEIGHT_BASIC")
    vote_weight_premium: int = Field(default=2, ge=1, alias="VOTE_WEIGHT_PREMIUM")
    vote_weight_vip: int = Field(default=5, ge=1, alias="VOTE_WEIGHT_VIP")

    # Prompt and voting rules
    max_prompt_length: int = Field(default=500, alias="MAX_PROMPT_LENGTH")
    max_prompt_tags: int = Field(default=10, alias="MAX_PROMPT_TAGS")
    max_active_prompts_per_user: int = Field(default=5, alias="MAX_ACTIVE_PROMPTS_PER_USER")
    prompt_categories: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CATEGORIES),
        alias="PROMPT_CATEGORIES",
    )
    min_votes_to_generate: int = Field(default=10, ge=1, alias="MIN_VOTES_TO_GENERATE")
    min_approval_ratio: float = Field(default=0.0, ge=0.0, le=1.0, alias="MIN_APPROVAL_RATIO")

    # Video generation provider
    ai_service_type: str = Field(default="runway", alias="AI_SERVICE_TYPE")
    ai_service_api_key: str | None = Field(default=None, alias="AI_SERVICE_API_KEY")
    ai_service_base_url: str = Field(
        default="https://api.runwayml.com/v1",
        alias="AI_SERVICE_BASE_URL",
    )
    ai_service_model: str = Field(default="gen-3-alpha-turbo", alias="AI_SERVICE_MODEL")
    pika_base_url: str = Field(default="https://api.pika.art/v1", alias="PIKA_BASE_URL")
    provider_http_timeout_seconds: float = Field(
        default=30.0,
        alias="PROVIDER_HTTP_TIMEOUT_SECONDS",
    )

    # Generation request defaults and limits
    generation_default_duration: int = Field(default=5, alias="GENERATION_DEFAULT_DURATION")
    generation_default_aspect_ratio: str = Field(
        default="16:9",
        alias="GENERATION_DEFAULT_ASPECT_RATIO",
    )
    generation_aspect_ratios: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ASPECT_RATIOS),
        alias="GENERATION_ASPECT_RATIOS",
    )
    generation_min_prompt_length: int = Field(default=10, alias="GENERATION_MIN_PROMPT_LENGTH")
    generation_min_duration: int = Field(default=1, alias="GENERATION_MIN_DURATION")
    generation_max_duration: int = Field(default=10, alias="GENERATION_MAX_DURATION")

    # Polling budget for in-flight generation jobs
    generation_poller_enabled: bool = Field(default=True, alias="GENERATION_POLLER_ENABLED")
    generation_poll_interval_seconds: float = Field(
        default=5.0,
        alias="GENERATION_POLL_INTERVAL_SECONDS",
    )
    generation_max_poll_attempts: int = Field(
        default=60,
        ge=1,
        alias="GENERATION_MAX_POLL_ATTEMPTS",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def vote_weights(self) -> dict[str, int]:
        """Return the ballot weight configured for each tier."""
        return {
            "basic": self.vote_weight_basic,
            "premium": self.vote_weight_premium,
            "vip": self.vote_weight_vip,
        }


settings = Settings()  # type: ignore[call-arg]
