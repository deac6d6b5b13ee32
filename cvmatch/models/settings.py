"""
Match Settings - process-wide configuration for the scoring oracle and input limits
"""
import os
from functools import lru_cache
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError

from cvmatch.utils.exceptions import ConfigurationError

DEFAULT_BASE_URL = "https://ai.gateway.lovable.dev/v1"
DEFAULT_MODEL = "google/gemini-3-flash-preview"


class MatchSettings(BaseModel):
    """Oracle and normalization configuration, read-only once built"""
    model_config = ConfigDict(frozen=True)

    api_key: SecretStr = Field(default=SecretStr(""), description="Bearer token for the chat-completions gateway")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="OpenAI-compatible API base URL")
    model_name: str = Field(default=DEFAULT_MODEL, description="Oracle model name")
    temperature: Optional[float] = Field(default=0.2, ge=0.0, le=2.0, description="Generation temperature")
    request_timeout: float = Field(default=60.0, gt=0, le=600, description="Oracle request timeout in seconds")
    max_job_description_chars: int = Field(default=50_000, ge=1, description="Character ceiling for job descriptions")
    oversize_policy: Literal["reject", "truncate"] = Field(
        default="reject", description="What to do with job descriptions above the ceiling"
    )
    score_tolerance: int = Field(default=1, ge=0, le=100, description="Allowed oracle overall-score drift before it is logged")

    @property
    def completions_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"

    @classmethod
    def from_env(cls) -> "MatchSettings":
        """Build settings from environment variables (and .env)"""
        load_dotenv()
        values = {
            "api_key": os.getenv("ORACLE_API_KEY") or os.getenv("LOVABLE_API_KEY", ""),
            "base_url": os.getenv("ORACLE_BASE_URL", DEFAULT_BASE_URL),
            "model_name": os.getenv("ORACLE_MODEL", DEFAULT_MODEL),
            "temperature": os.getenv("ORACLE_TEMPERATURE", "0.2") or None,
            "request_timeout": os.getenv("ORACLE_REQUEST_TIMEOUT", "60"),
            "max_job_description_chars": os.getenv("MAX_JOB_DESCRIPTION_CHARS", "50000"),
            "oversize_policy": os.getenv("JOB_DESCRIPTION_OVERSIZE_POLICY", "reject").lower(),
            "score_tolerance": os.getenv("SCORE_TOLERANCE", "1"),
        }
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid match settings: {e}", cause=e) from e


@lru_cache
def get_settings() -> MatchSettings:
    """Get the process-wide settings instance"""
    return MatchSettings.from_env()
