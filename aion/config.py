"""
Configuration settings for the AION workflow engine.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Application
    APP_NAME: str = "AION"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Workflow Engine
    BRANCH_ROUTING: bool = False  # Honour edge labels against a node's "branch" output
    PASS_PROCESS_ENV: bool = True  # Expose os.environ to runs started by chat triggers

    # Integrations
    HTTP_TIMEOUT: float = 30.0  # Seconds, per outbound request
    MAX_DELAY_SECONDS: int = 60
    OPENAI_MODEL: str = "gpt-4o"
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GROQ_MODEL: str = "llama-3.3-70b-versatile"
    OPENROUTER_MODEL: str = "openai/gpt-4o"

    # Credentials
    GOOGLE_ACCESS_TOKEN: Optional[str] = None

    # Logging
    LOG_LEVEL: str = "INFO"


# Global settings instance
settings = Settings()
