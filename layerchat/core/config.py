from typing import List, Union
from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # API
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "LayerChat"
    PROJECT_DESCRIPTION: str = "Governed chat orchestration with tool augmentation and streaming"
    VERSION: str = "0.1.0"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False
    WORKERS: int = 1
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = ["http://localhost:3000", "http://localhost:8000"]

    # Admin settings
    ADMIN_API_KEY: str = "layerchat-admin-key"  # Change this in production!

    # Generation backends (OpenAI-compatible endpoints)
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    MISTRAL_API_KEY: str = ""
    MISTRAL_BASE_URL: str = "https://api.mistral.ai/v1"
    DEFAULT_MODEL: str = "gpt-4o-mini"
    DEFAULT_TEMPERATURE: float = 0.7
    DEFAULT_MAX_TOKENS: int = 4000

    # Tools
    SERPER_API_KEY: str = ""
    SERPER_URL: str = "https://google.serper.dev/search"
    YOUTUBE_API_KEY: str = ""
    YOUTUBE_URL: str = "https://www.googleapis.com/youtube/v3"
    WEATHER_URL: str = "https://wttr.in"
    TIME_API_URL: str = "http://worldtimeapi.org/api"
    SEARCH_TIMEOUT: float = 10.0
    WEATHER_TIMEOUT: float = 8.0
    TIME_TIMEOUT: float = 8.0
    YOUTUBE_TIMEOUT: float = 10.0

    # Governance
    GOVERNANCE_DEFAULT_MODE: str = "smart"
    GOVERNANCE_ENABLED: bool = True
    ENABLE_AUTO_TOOLS: bool = True

    # Streaming: characters accumulated between two display re-normalization passes
    RENORMALIZE_DELTA: int = Field(default=140, ge=80, le=140)

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    @field_validator("GOVERNANCE_DEFAULT_MODE")
    @classmethod
    def check_governance_mode(cls, v: str) -> str:
        if v not in ("smart", "internal", "internet"):
            raise ValueError(f"Unknown governance mode: {v}")
        return v

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=True)


settings = Settings()
