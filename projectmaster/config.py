from pydantic_settings import BaseSettings

from projectmaster.common.enums import Role


class Settings(BaseSettings):
    # Backing store
    SYNC_BACKEND: str = "memory"
    DATABASE_URL: str = "sqlite+aiosqlite:///./projectmaster.db"
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_SERVICE_KEY: str = ""
    SUBCATEGORY_COLLECTION: str = "subcategories"
    SYNC_POLL_INTERVAL_SECONDS: float = 2.0

    # Auth
    AUTH_BACKEND: str = "local"
    SECRET_KEY: str = "dev-secret-key-not-for-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DEFAULT_PROFILE_ROLE: Role = Role.CONTRACTOR
    ALLOWED_ORIGINS: str = "*"

    # Local persistence
    STATE_STORAGE_PATH: str = ".projectmaster"
    STATE_STORAGE_KEY: str = "project_master_v3"

    # AI Provider (OpenAI-compatible)
    AI_API_KEY: str = "mock_ai_key"
    AI_BASE_URL: str = "https://api.openai.com/v1"
    AI_MODEL: str = "gpt-4o-mini"

    # App
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
