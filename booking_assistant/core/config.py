from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL_EXTRACT: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE_EXTRACT: float = 0.2
    EXTRACTION_TIMEOUT_SECONDS: float = 15.0

    BUSINESS_TIMEZONE: str = "America/Los_Angeles"
    BUSINESS_DIRECTORY_PATH: str | None = None

    STORE_PROVIDER: str = "memory"  # memory | json
    STORE_DATA_DIR: str = "./data/chat_rooms"
    HISTORY_LIMIT: int = 50

    DUPLICATE_WINDOW_MINUTES: int = 5
    UPDATE_VERIFY_ATTEMPTS: int = 3
    UPDATE_RETRY_BACKOFF_SECONDS: float = 0.05

    SLOT_INTERVAL_MINUTES: int = 30
    MAX_DISPLAYED_SLOTS: int = 8

    NOTIFICATIONS_WEBHOOK_URL: str | None = None
    EVENT_WORKERS: int = 4
    APP_BASE_URL: str = "http://localhost:3000"


settings = Settings()
