# taskhub/config.py
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    SECRET_KEY: str = Field("change-me-in-production")
    ALGORITHM: str = Field("HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60 * 24 * 7)

    DATABASE_URL: str = Field("sqlite+aiosqlite:///./taskhub.db")
    SQL_ECHO: bool = Field(False)

    # bcrypt cost factor; tests drop this to the passlib minimum of 4
    BCRYPT_ROUNDS: int = Field(12)

    FRONTEND_URL: str = Field("http://localhost:3000")
    ENVIRONMENT: str = Field("development")
    LOG_LEVEL: str = Field("INFO")

    DEFAULT_PAGE_LIMIT: int = Field(10)
    MAX_PAGE_LIMIT: int = Field(100)

    model_config = {
        "env_file": ".env",
        "extra": "allow",
    }

    @property
    def effective_database_url(self) -> str:
        url = self.DATABASE_URL
        # Ensure asyncpg is used
        if url.startswith("postgresql://") and "+asyncpg" not in url:
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


settings = Settings()
