from pydantic_settings import BaseSettings
from typing import List, Optional
import os

class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "TeachAssist.ai"
    APP_VERSION: str = "1.0.0"

    # Database
    DATABASE_URL: Optional[str] = None

    # Application Settings
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5000"

    # Generation service (OpenRouter speaks the OpenAI chat completions protocol)
    OPENROUTER_API_KEY: Optional[str] = None
    OPENROUTER_API_BASE: str = "https://openrouter.ai/api/v1"
    AI_MODEL: str = "anthropic/claude-3.5-haiku"
    AI_REQUEST_TIMEOUT: float = 60.0  # seconds
    AI_MAX_TOKENS: int = 4096
    AI_INPUT_COST_PER_MTOK: float = 0.80  # USD per million input tokens
    AI_OUTPUT_COST_PER_MTOK: float = 4.00  # USD per million output tokens

    # Writing assessment uploads
    ASSESSMENT_MAX_IMAGE_BYTES: int = 3 * 1024 * 1024  # 3MB
    ASSESSMENT_IMAGE_TYPES: List[str] = ["image/jpeg", "image/png", "image/webp", "image/gif"]

    # Visitor tracking
    TRACKING_ENABLED: bool = True
    GEOLOCATION_ENABLED: bool = True
    GEOLOCATION_URL: str = "https://ipapi.co/{ip}/json/"
    SESSION_COOKIE_NAME: str = "ta_session_id"
    SESSION_COOKIE_MAX_AGE: int = 30 * 24 * 60 * 60  # 30 days

    # Admin API
    ADMIN_API_KEY: Optional[str] = None

    # Draft workspace
    RECORD_REFINEMENT_HISTORY: bool = True

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)

        # Set default DATABASE_URL if not provided
        if not self.DATABASE_URL:
            self.DATABASE_URL = os.getenv("DATABASE_URL")

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

# Create settings instance
settings = Settings()
