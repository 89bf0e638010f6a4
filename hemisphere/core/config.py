"""
Memory core configuration settings
"""
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Scheduler, queue and zombie-detection settings with environment variable support"""

    # App
    APP_NAME: str = "Hemisphere Memory Core"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development, staging, production

    # Monitoring
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_SERIALIZE: bool = False  # JSON lines in the production file sink

    # Scheduling
    TARGET_RETENTION: float = 0.9
    MAXIMUM_INTERVAL_DAYS: int = 36500  # 100 years
    RELEARNING_MAX_INTERVAL_DAYS: int = 1

    # Review queue
    QUEUE_DEFAULT_LIMIT: int = 20
    QUEUE_MAX_LIMIT: int = 50

    # Zombie detection
    ZOMBIE_THRESHOLD: float = 0.5
    ZOMBIE_MIN_REVIEWS: int = 8

    # Per-learner weight optimisation
    OPTIMIZER_MIN_REVIEWS: int = 50

    model_config = SettingsConfigDict(
        env_prefix="HEMISPHERE_",
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("TARGET_RETENTION")
    @classmethod
    def _check_retention(cls, value: float) -> float:
        if not 0 < value <= 1:
            raise ValueError("TARGET_RETENTION must be in (0, 1]")
        return value

    @field_validator("ZOMBIE_THRESHOLD")
    @classmethod
    def _check_threshold(cls, value: float) -> float:
        if not 0 <= value <= 1:
            raise ValueError("ZOMBIE_THRESHOLD must be in [0, 1]")
        return value

    @field_validator(
        "MAXIMUM_INTERVAL_DAYS",
        "RELEARNING_MAX_INTERVAL_DAYS",
        "QUEUE_DEFAULT_LIMIT",
        "QUEUE_MAX_LIMIT",
        "ZOMBIE_MIN_REVIEWS",
        "OPTIMIZER_MIN_REVIEWS",
    )
    @classmethod
    def _check_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @model_validator(mode="after")
    def _check_queue_limits(self) -> "Settings":
        if self.QUEUE_DEFAULT_LIMIT > self.QUEUE_MAX_LIMIT:
            raise ValueError("QUEUE_DEFAULT_LIMIT cannot exceed QUEUE_MAX_LIMIT")
        if self.RELEARNING_MAX_INTERVAL_DAYS > self.MAXIMUM_INTERVAL_DAYS:
            raise ValueError("RELEARNING_MAX_INTERVAL_DAYS cannot exceed MAXIMUM_INTERVAL_DAYS")
        return self


settings = Settings()
