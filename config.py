from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ===== DATABASE =====
    database_url: str = "mysql+pymysql://root@localhost/expense_tracker"

    # ===== JWT SETTINGS =====
    jwt_secret: str = "CHANGE_THIS_TO_A_LONG_RANDOM_SECRET"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # ===== SERVER =====
    environment: str = "development"
    client_url: Optional[str] = None
    cors_origin_regex: Optional[str] = r"https://.*\.vercel\.app"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def allowed_origins(self) -> List[str]:
        origins = ["http://localhost:3000", "http://localhost:5173"]
        if self.client_url:
            origins.append(self.client_url)
        return origins


@lru_cache
def get_settings() -> Settings:
    return Settings()
