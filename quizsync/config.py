"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database (unset = in-memory quiz store)
    DATABASE_URL: Optional[str] = None

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"
    CACHE_ENABLED: bool = True
    LIST_CACHE_TTL: int = 300  # 5 minutes

    # Application
    APP_NAME: str = "Quiz Sync Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5000"]

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 120
    RATE_LIMIT_PER_HOUR: int = 2000

    # Authorization hook for destructive operations
    MASTER_PASSWORD: Optional[str] = None

    # Chunked persistence
    CHUNK_THRESHOLD: int = 2_000_000  # characters
    CHUNK_SIZE: int = 1_000_000  # characters per slice
    LIBRARY_STORAGE_KEY: str = "quizzes"

    # Quiz Settings
    DEFAULT_QUIZ_TIMER: int = 300  # seconds
    MIN_MERGED_TIMER: int = 60
    SEARCH_SIMILARITY_THRESHOLD: float = 0.3
    MAX_IMPORT_BYTES: int = 50_000_000

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
