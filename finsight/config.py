"""
Configuration settings for the FinSight dashboard
"""

from typing import Optional
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Settings(BaseSettings):
    """Application settings"""

    # App Info
    APP_NAME: str = "FinSight Dashboard"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = "Tax and finance optimization dashboard"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False

    # Analysis backend
    ANALYSIS_API_URL: str = "http://localhost:5000/api"
    REQUEST_TIMEOUT: float = 60.0  # seconds

    # File Upload
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB
    ALLOWED_UPLOAD_EXTENSIONS: list = [".pdf"]

    # CORS
    CORS_ORIGINS: list = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # Environment
    ENVIRONMENT: str = "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Create settings instance
settings = Settings()


def validate_settings(config: Settings = settings):
    """Validate that critical settings are configured"""
    errors = []

    if config.REQUEST_TIMEOUT <= 0:
        errors.append("REQUEST_TIMEOUT must be positive")

    if config.ENVIRONMENT == "production":
        if not config.ANALYSIS_API_URL.startswith("https://"):
            errors.append("ANALYSIS_API_URL must use https in production")

        if config.DEBUG:
            errors.append("DEBUG must be disabled in production")

    if errors:
        raise ValueError(f"Configuration errors: {', '.join(errors)}")


# Run validation
if settings.ENVIRONMENT == "production":
    validate_settings()
