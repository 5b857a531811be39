from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "local"
    APP_NAME: str = "paged-records"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str
    SQL_ECHO: bool = False

    ACTOR_JWT_SECRET: str = "change_me_actor"
    ACTOR_JWT_ALGORITHM: str = "HS256"

    CORS_ORIGINS: str = "http://localhost:3000"

    PAGE_DEFAULT_LIMIT: int = 20
    PAGE_MAX_LIMIT: int = 100

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()
