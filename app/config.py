from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"

    # Database: DATABASE_URL wins, then the POSTGRES_* parts, then local SQLite
    DATABASE_URL: Optional[str] = None
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_HOST: Optional[str] = None
    POSTGRES_PORT: str = "5432"
    POSTGRES_DB: Optional[str] = None

    @property
    def SQLALCHEMY_DATABASE_URL(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.POSTGRES_HOST and self.POSTGRES_DB:
            return f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        return "sqlite:///./gita.db"

    # Session
    SECRET_KEY: str = "change_this_secret"
    ALGORITHM: str = "HS256"
    SESSION_EXPIRE_DAYS: int = 7
    SESSION_COOKIE_NAME: str = "session"

    # OTP
    OTP_LENGTH: int = 6
    OTP_TTL_MINUTES: int = 10
    OTP_ATTEMPTS: int = 5
    DEV_SHOW_OTP: Optional[bool] = None

    # Email configuration
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: Optional[int] = None
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    EMAILS_FROM: Optional[str] = None
    EMAILS_FROM_NAME: str = "Gita App"
    SMTP_TLS: bool = False
    SMTP_SSL: bool = True  # Gmail app passwords go over 465/SSL
    EMAIL_SEND_TIMEOUT_SECONDS: float = 10.0
    ADMIN_EMAIL: Optional[str] = None

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Static verse catalog; built-in verse counts are used when unset
    VERSE_CATALOG_PATH: Optional[str] = None

    # Upstream Gita content API
    GITA_API_BASE_URL: str = "https://bhagavad-gita3.p.rapidapi.com/v2"
    RAPID_API_KEY: Optional[str] = None
    RAPID_API_HOST: str = "bhagavad-gita3.p.rapidapi.com"
    GITA_CACHE_SECONDS: int = 24 * 60 * 60
    GITA_API_TIMEOUT_SECONDS: float = 15.0

    LOG_FILE: Optional[str] = "logs/app.log"

    @field_validator("SMTP_PORT", mode="before")
    @classmethod
    def cast_smtp_port(cls, v):
        if v is None or v == "":
            return 465
        # Remove comments and whitespace
        if isinstance(v, str):
            v = v.split('#')[0].strip()
        return int(v)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def show_dev_otp(self) -> bool:
        if self.DEV_SHOW_OTP is not None:
            return self.DEV_SHOW_OTP
        return not self.is_production

    @property
    def session_max_age_seconds(self) -> int:
        return self.SESSION_EXPIRE_DAYS * 24 * 60 * 60

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
