"""
Application Configuration - Loaded from .env file
"""
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings
import json


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "ScopeGrid"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = "development"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database (SQL Server by default; DB_URL overrides the assembled URL)
    DB_URL: str = ""
    DB_SERVER: str = "localhost"
    DB_NAME: str = "ScopeGrid"
    DB_USERNAME: str = "sa"
    DB_PASSWORD: str = "change-me"
    DB_DRIVER: str = "ODBC Driver 18 for SQL Server"
    DB_TRUST_CERT: str = "yes"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 30
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800
    DB_ECHO: bool = False
    DB_AUTO_CREATE: bool = False

    # JWT
    JWT_SECRET_KEY: str = "your-super-secret-key-change-in-production-min-32-chars"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 720

    # Security
    CORS_ORIGINS: str = '["http://localhost:3000","http://localhost:8000"]'
    PASSWORD_MIN_LENGTH: int = 8

    # Query engine
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 1000

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    # Bootstrap
    SEED_ON_STARTUP: bool = True
    SEED_SAMPLE_DATA: bool = False
    ADMIN_NAME: str = "Administrator"
    ADMIN_EMAIL: str = "admin@scopegrid.local"
    ADMIN_PASSWORD: str = "Admin@12345"

    @property
    def DATABASE_URL(self) -> str:
        """Build SQLAlchemy connection string, honouring DB_URL when set."""
        if self.DB_URL:
            return self.DB_URL
        from urllib.parse import quote_plus
        password = quote_plus(self.DB_PASSWORD)
        driver = quote_plus(self.DB_DRIVER)
        return (
            f"mssql+pyodbc://{self.DB_USERNAME}:{password}@{self.DB_SERVER}/"
            f"{self.DB_NAME}?driver={driver}&TrustServerCertificate={self.DB_TRUST_CERT}"
        )

    @property
    def cors_origins_list(self) -> List[str]:
        try:
            return json.loads(self.CORS_ORIGINS)
        except (json.JSONDecodeError, TypeError):
            return ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
