from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "postgresql+asyncpg://soot:soot_dev@db:5432/soot"

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"

    # Security
    SECRET_KEY: str = "dev-secret-key-not-for-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30
    MAGIC_LINK_EXPIRE_MINUTES: int = 24 * 60
    ALLOWED_ORIGINS: str = "*"

    # SendGrid
    SENDGRID_API_KEY: str = "mock_sendgrid_key"
    FROM_EMAIL: str = "no-reply@soot.local"

    # Image provider (OpenAI-compatible)
    AI_API_KEY: str = "mock_ai_key"
    AI_BASE_URL: str = "https://api.openai.com/v1"
    AI_IMAGE_MODEL: str = "gpt-image-1"
    IMAGE_JOB_TTL_MINUTES: int = 15
    MEDIA_ROOT: str = "media"

    # Quiet hours, email schedules and reminder days use the server's local
    # clock (naive datetime.now()); Celery beat fires in Europe/Paris.

    # Calendar & recurrence
    RECURRENCE_HORIZON_DAYS: int = 90
    CALENDAR_YEARS_BEFORE: int = 2
    CALENDAR_YEARS_AFTER: int = 4

    # App
    APP_ENV: str = "development"
    APP_URL: str = "http://localhost:3005"
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
