from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    STORE_PROVIDER: str = "memory"  # "memory" | "json"
    DATA_DIR: str = "./data/appointments"
    DIRECTORY_SEED_PATH: str | None = None

    ASSIGNMENT_POLICY: str = "first_available"  # "first_available" | "least_loaded"
    NOTIFICATION_WORKERS: int = 4

    RESEND_API_KEY: str | None = None
    RESEND_BASE_URL: str = "https://api.resend.com"
    EMAIL_FROM: str = "Bookings <noreply@example.com>"

    DEFAULT_TIMEZONE: str = "America/Mexico_City"


settings = Settings()
