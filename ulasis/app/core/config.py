"""Application configuration and LLM client initialization.

Defines `Settings` with environment variables and creates an `OPENAI_CLIENT`
used by the optional LLM sentiment classifier.
"""
# app/core/config.py
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from openai import AsyncOpenAI

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    OPENAI_BASE_URL: str = "https://openrouter.ai/api/v1"
    OPENAI_API_KEY: str = 'your_api_key'
    MODEL_NAME: str = 'openai/gpt-4o-mini'

    APP_NAME: str = "Ulasis"
    BASE_URL: str = "http://127.0.0.1:8000"
    API_PREFIX: str = "/api/v1"
    DEBUG: bool = True
    LOG_PATH: str = "logging"
    SECRET_KEY: str = "change-me-in-env"
    DATABASE_URL: str = "sqlite:///./ulasis.db"

    TOKEN_TTL: int = 60 * 60 * 24  # 24h
    UPLOAD_DIR: str = "uploads/qr-codes"
    SCAN_DEDUP_WINDOW: int = 5 * 60  # 5 min
    CLEANUP_INTERVAL: int = 60 * 60  # 1h, 0 disables the loop
    SENTIMENT_BACKEND: str = "keyword"  # keyword | llm
    JINJA2_TEMPLATES: str = str(Path(__file__).resolve().parents[1] / "templates")


settings = Settings()
OPENAI_CLIENT = AsyncOpenAI(base_url=settings.OPENAI_BASE_URL, api_key=settings.OPENAI_API_KEY)
