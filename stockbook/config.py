from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./stockbook.db"

    # Application
    APP_NAME: str = "Stockbook"
    DEBUG: bool = False
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    # Server
    # Default to 0.0.0.0 for development, use env var HOST in production
    HOST: str = "0.0.0.0"  # nosec: B104
    PORT: int = 8000

    # Document numbering
    SEQUENCE_PAD_WIDTH: int = 4  # Digits in INV-2025-0001
    SEQUENCE_STORE_TIMEOUT: float = 5.0  # Seconds before a counter update gives up

    LOW_MEMORY_MODE: bool = True  # Enable reduced pool sizes

    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )


settings = Settings()
