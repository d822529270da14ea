# membership_service/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Values come from the environment (Docker Compose passes the root .env).
    model_config = SettingsConfigDict(extra="ignore")

    # The environment mode: 'local' or 'prod'
    ENV: str = "local"

    # --- Database URLs ---
    DATABASE_URL_PROD: str = "postgresql://postgres:postgres@db:5432/membership_db"
    DATABASE_URL_LOCAL: str = "sqlite:///./membership_db.sqlite3"

    # Secrets
    JWT_SECRET: str = "change-me"
    INTERNAL_API_KEY: str = "change-me-internal"

    # --- Membership engine ---
    CARD_NUMBER_PREFIX: str = "HRCI"
    DEFAULT_CURRENCY: str = "INR"
    DEFAULT_VALIDITY_DAYS: int = 365

    # How many times a unit of work is replayed after a lost race
    # (unique violation or stale version) before giving up.
    TRANSACTION_MAX_ATTEMPTS: int = 3
    CARD_NUMBER_MAX_ATTEMPTS: int = 5

    # --- Background jobs ---
    SCHEDULER_ENABLED: bool = True
    EXPIRY_SWEEP_INTERVAL_MINUTES: int = 15
    EXPIRY_SWEEP_BATCH_SIZE: int = 500

    # --- Rate limiting ---
    RATE_LIMIT_ENABLED: bool = True
    JOIN_RATE_LIMIT: str = "10/minute"

    @property
    def DATABASE_URL(self) -> str:
        return (
            self.DATABASE_URL_LOCAL if self.ENV == "local" else self.DATABASE_URL_PROD
        )


# Create a single instance of the settings
settings = Settings()
