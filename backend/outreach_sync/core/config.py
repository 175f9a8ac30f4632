from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # core
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # backend REST API
    API_BASE_URL: str = "https://elitehoster-backend-production.up.railway.app/api"
    API_TIMEOUT_SECONDS: int = 30
    # Static bearer token; normally supplied at runtime by the auth layer
    API_AUTH_TOKEN: str | None = None
    COMPANIES_PATH: str = "/companies"
    # Developers read from their own endpoint; ownership is enforced server-side there
    DEVELOPER_COMPANIES_PATH: str = "/developer/companies"
    MAILS_PATH: str = "/mails"
    # Connection-level retries for idempotent reads only (never for writes)
    READ_RETRY_ATTEMPTS: int = 3

    # redis (optional) – only used for slow-changing reference data
    REDIS_URL: str | None = None
    CATEGORIES_CACHE_TTL_SECONDS: int = 60 * 60

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    return Settings()
