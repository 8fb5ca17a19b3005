from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # ── App ──
    APP_NAME: str = "GigConnect Tickets API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]
    FRONTEND_URL: str = "http://localhost:5173"

    # ── Database ──
    POSTGRES_USER: str = "app_user"
    POSTGRES_PASSWORD: str = "app_secret"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "gigconnect"

    @property
    def DATABASE_URL(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def DATABASE_URL_SYNC(self) -> str:
        """URL síncrona para Alembic."""
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # ── JWT ──
    JWT_SECRET_KEY: str = "CHANGE-ME-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # ── Uploads (anexos de mensagens) ──
    UPLOAD_DIR: str = "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_FILE_SIZE_MB: int = 5
    ALLOWED_CONTENT_TYPES: list[str] = [
        "image/jpeg",
        "image/png",
        "application/pdf",
    ]

    @property
    def MAX_FILE_SIZE_BYTES(self) -> int:
        return self.MAX_FILE_SIZE_MB * 1024 * 1024

    # ── Mensagens / rate limits ──
    MESSAGE_MAX_LENGTH: int = 1000
    MESSAGE_RATE_LIMIT: int = 5
    MESSAGE_RATE_WINDOW_SECONDS: int = 60
    ATTACHMENT_RATE_LIMIT: int = 5
    ATTACHMENT_RATE_WINDOW_SECONDS: int = 15 * 60

    # ── Gemini ──
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-1.5-pro"
    GEMINI_TIMEOUT_SECONDS: float = 30.0
    AI_SENDER_ID: str = "AI"
    AI_SENDER_NAME: str = "Gig Connect AI"

    # ── E-mail (SMTP) ──
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_TIMEOUT_SECONDS: float = 30.0
    EMAIL_FROM: str = "GigConnect <no-reply@gigconnect.local>"
    NOTIFICATION_MAX_ATTEMPTS: int = 3
    NOTIFICATION_RETRY_BACKOFF_SECONDS: float = 2.0
    NOTIFICATION_QUEUE_SIZE: int = 1000


@lru_cache
def get_settings() -> Settings:
    return Settings()
