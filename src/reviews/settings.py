"""Application settings for the Reviews domain.

Infrastructure (databases, brokers, event store) lives in `domain.toml`;
the knobs here are product policy and collaborator endpoints, read from
`REVIEWS_*` environment variables.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ModerationMode(str, Enum):
    MANUAL = "manual"  # every review waits for a moderator
    IMMEDIATE = "immediate"  # approved as part of submission
    DELAYED = "delayed"  # approved by the sweep after auto_approve_after_hours


class ReviewSettings(BaseSettings):
    """Review policy settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_prefix="REVIEWS_", env_file=".env", extra="ignore")

    # Moderation
    moderation_mode: ModerationMode = ModerationMode.MANUAL
    auto_approve_after_hours: float = Field(default=24.0, ge=0)
    exclude_disputed_from_rating: bool = True

    # Content limits
    max_comment_length: int = 500
    max_photos: int = 5
    max_response_length: int = 1000
    review_window_days: int = 90

    # Booking service
    booking_service_url: str | None = None
    booking_timeout_seconds: float = 5.0
    booking_lookup_retries: int = Field(default=3, ge=1)
    booking_retry_backoff_seconds: float = 0.2

    # Rating aggregate
    rating_update_retries: int = Field(default=5, ge=1)
    default_rating: float = 5.0

    # Listing
    page_size: int = 20
    max_page_size: int = 100

    @model_validator(mode="after")
    def _validate_page_sizes(self) -> "ReviewSettings":
        if self.page_size > self.max_page_size:
            raise ValueError("page_size cannot exceed max_page_size")
        return self


@lru_cache
def get_settings() -> ReviewSettings:
    """Return cached settings instance."""
    return ReviewSettings()
