from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List

class Settings(BaseSettings):
    # API Settings
    APP_NAME: str = "Amazon Keyword Explorer"
    API_V1_STR: str = "/api/v1"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # BlueCitrus Provider
    BC_CLIENT_ID: str = ""
    BC_CLIENT_SECRET: str = ""
    BC_API_BASE_URL: str = "https://api.bluecitrus.co"
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    # Auth token cache (empty file path keeps the token in memory only)
    TOKEN_TTL_SECONDS: int = 3600
    TOKEN_CACHE_FILE: str = ""

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

    def has_credentials(self) -> bool:
        return bool(self.BC_CLIENT_ID and self.BC_CLIENT_SECRET)

@lru_cache()
def get_settings():
    return Settings()
