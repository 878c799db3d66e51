from typing import List, Optional
from pydantic import validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from app.services.prompts import SYSTEM_PROMPTS


class Settings(BaseSettings):
    """
    Application configuration settings (Pydantic v2 style)
    """

    # Application settings
    APP_NAME: str = "Financial Plan Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Language model (OpenAI-compatible endpoint)
    OPENROUTER_API_KEY: Optional[str] = None
    LLM_BASE_URL: str = "https://openrouter.ai/api/v1"
    LLM_MODEL: str = "meta-llama/llama-3-70b-instruct"
    LLM_MAX_TOKENS: int = 700
    LLM_TEMPERATURE: float = 0.6

    # Planning behaviour
    PLAN_PROMPT_VERSION: str = "summary_json"
    FALLBACK_INCOME: int = 100000
    FALLBACK_EXPENSES: int = 50000
    FALLBACK_ON_MODEL_ERROR: bool = True

    # HTTP
    CORS_ORIGINS: List[str] = ["*"]
    STATIC_DIR: str = "public"

    # ✅ Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    @validator('LOG_LEVEL')
    def validate_log_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'LOG_LEVEL must be one of: {valid_levels}')
        return v.upper()

    @validator('PLAN_PROMPT_VERSION')
    def validate_prompt_version(cls, v):
        valid_versions = sorted(SYSTEM_PROMPTS)
        if v not in valid_versions:
            raise ValueError(f'PLAN_PROMPT_VERSION must be one of: {valid_versions}')
        return v


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
