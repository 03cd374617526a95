from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # Database
    DATABASE_URL: Optional[str] = None
    PGHOST: str = "localhost"
    PGDATABASE: str = "busify"
    PGUSER: str = "busify"
    PGPASSWORD: str = ""
    PGSSLMODE: str = "require"

    # Security
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Application
    PROJECT_NAME: str = "Busify Backend"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Mail (no MAIL_SERVER -> log-only mode)
    MAIL_SERVER: Optional[str] = None
    MAIL_PORT: int = 587
    MAIL_USE_TLS: bool = True
    MAIL_USERNAME: Optional[str] = None
    MAIL_PASSWORD: Optional[str] = None
    MAIL_FROM: str = "Busify <no-reply@busify.com>"
    MAIL_TIMEOUT: int = 30
    FRONTEND_URL: str = "http://localhost:3000"
    EMAIL_WORKERS: int = 4

    # Ticket rendering
    DISPLAY_TIMEZONE: str = "Asia/Ho_Chi_Minh"
    PDF_FONT_PATH: Optional[str] = "fonts/DejaVuSans.ttf"

    # Object storage
    STORAGE_ROOT: str = "static/uploads"
    STORAGE_BASE_URL: str = "/static/uploads"

    # Logging
    LOG_LEVEL: Optional[str] = None
    LOG_FORMAT: str = "readable"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.PGUSER}:{self.PGPASSWORD}@{self.PGHOST}/{self.PGDATABASE}?sslmode={self.PGSSLMODE}"

    @property
    def mail_configured(self) -> bool:
        return bool(self.MAIL_SERVER)

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
