"""
Application settings
Read from environment variables or a local .env file
"""
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "GuestDesk"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Datastore
    DATABASE_URL: str = "sqlite:///./guestdesk.db"

    # JWT (tokens are issued by the hotel auth service)
    SECRET_KEY: str = "guestdesk-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # Staff workload
    MAX_CONCURRENT_REQUESTS: int = 5

    # Bulk operation history paging
    BULK_HISTORY_DEFAULT_LIMIT: int = 10
    BULK_HISTORY_MAX_LIMIT: int = 100

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


settings = Settings()
