"""
Configuration management using Pydantic Settings
"""
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from project root
# config.py is at: backend/rigidity/core/config.py
_current_file = Path(__file__).resolve()
_backend_dir = _current_file.parent.parent.parent
_project_root = _backend_dir.parent
ENV_FILE = _project_root / ".env"
# Fallback: try in backend/ directory if not found in project root
if not ENV_FILE.exists():
    ENV_FILE = _backend_dir / ".env"
if ENV_FILE.exists():
    load_dotenv(ENV_FILE, override=False)


class DeformationMode(str, Enum):
    """Shape of the reply requested from the model"""
    SINGLE = "single"  # one flat frame of deltas
    FRAMES = "frames"  # list of frames of deltas
    POSITIONS = "positions"  # list of frames of absolute positions

    @property
    def is_multi_frame(self) -> bool:
        return self is not DeformationMode.SINGLE


class OpenAIConfig(BaseModel):
    """Explicit configuration for the chat-completion client"""
    api_key: Optional[str] = Field(default=None, description="Provider API key")
    base_url: str = Field(default="https://api.openai.com/v1", description="Provider base URL")
    model: str = Field(default="gpt-4.1", description="Chat model name")
    timeout_seconds: Optional[float] = Field(
        default=None,
        description="Request timeout in seconds (None waits indefinitely)"
    )


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "descriptive-rigidity"
    app_env: str = Field(default="development", description="Application environment")
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("port", "api_port"),
        description="API port"
    )
    allowed_origins: str = Field(
        default="*",
        description="Allowed CORS origins (comma-separated)"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_uvicorn_access: bool = Field(default=False, description="Enable Uvicorn access logging")
    log_format: str = Field(
        default="json",
        description="Log format: 'json' for structured logging, 'text' for plain text"
    )
    log_file_enabled: bool = Field(default=False, description="Enable file logging")
    log_file_path: str = Field(
        default="logs/rigidity.log",
        description="Path to log file (relative to project root)"
    )
    log_file_retention: int = Field(
        default=7,
        ge=1,
        description="Number of days to keep log files"
    )
    log_sensitive_data: bool = Field(
        default=False,
        description="Enable logging of sensitive data (API keys, tokens) - NOT RECOMMENDED"
    )

    # Completion provider
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI-compatible API base URL"
    )
    openai_model: str = Field(default="gpt-4.1", description="Chat model used for deformations")

    # Deformations
    deformation_mode: DeformationMode = Field(
        default=DeformationMode.POSITIONS,
        description="Reply variant: 'single', 'frames' or 'positions'"
    )

    @field_validator("deformation_mode", mode="before")
    @classmethod
    def parse_deformation_mode(cls, v):
        """Accept mode names case-insensitively"""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    def openai_config(self) -> OpenAIConfig:
        """Build the completion client configuration"""
        return OpenAIConfig(
            api_key=self.openai_api_key or None,
            base_url=self.openai_base_url,
            model=self.openai_model,
        )

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
