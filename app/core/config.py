from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional
from dotenv import load_dotenv


class Settings(BaseSettings):
    PROJECT_NAME: str = "Survey Builder Agent"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ROOT_PATH: str = "/"

    # Environment
    DEBUG: bool = False
    IS_PROD: bool = False

    # LLM API Keys
    OPENAI_API_KEY: str = ""
    GOOGLE_API_KEY: str = ""

    # Langsmith Tracing
    LANGCHAIN_TRACING_V2: bool = False
    LANGCHAIN_ENDPOINT: str = "https://api.smith.langchain.com"
    LANGCHAIN_API_KEY: str = ""
    LANGCHAIN_PROJECT: str = "survey-builder-agent"

    # LLM MODEL
    OPENAI_MODEL: str = "gpt-4.1"
    GEMINI_MODEL: str = "gemini-2.5-pro"
    LLM_TEMPERATURE: float = 0.0
    LLM_MAX_RETRIES: int = 3

    # Voxco platform
    VOXCO_API_BASE_URL: str = ""
    VOXCO_USERNAME: Optional[str] = None
    VOXCO_PASSWORD: Optional[str] = None
    VOXCO_TIMEOUT_SECONDS: float = 30.0

    # Sessions
    SESSION_TTL_SECONDS: int = 3600
    SESSION_SWEEP_INTERVAL_SECONDS: int = 900
    MAX_SESSIONS: int = 1000

    # Export
    EXPORT_DIR: str = "output"

    class Config:
        env_file = ".env"


@lru_cache
def get_settings():
    load_dotenv(override=True)
    return Settings()


settings = get_settings()
