from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import List, Literal, Optional

INSECURE_JWT_SECRET = "fallback_secret"


class Settings(BaseSettings):
    # Database settings
    DATABASE_URL: str = "sqlite:///./formbuilder.db"

    # JWT settings
    JWT_SECRET: str = INSECURE_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_IN: str = "1d"

    # Password hashing
    BCRYPT_ROUNDS: int = 10

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # API settings
    API_PREFIX: str = ""
    PROJECT_NAME: str = "Form Builder API"
    ENVIRONMENT: Literal["development", "test", "production"] = "production"
    CORS_ORIGINS: List[str] = ["*"]

    # Rate limiting
    REDIS_URL: Optional[str] = None
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_MAX: int = 100
    RATE_LIMIT_WINDOW_SECONDS: int = 900  # 15 minutes

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def uses_insecure_secret(self) -> bool:
        return self.JWT_SECRET == INSECURE_JWT_SECRET


@lru_cache()
def get_settings() -> Settings:
    """
    Get settings instance with caching
    Returns:
        Settings instance
    """
    return Settings()
