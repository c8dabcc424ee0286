"""
Concierge Service Configuration
Loads settings from environment variables
"""

import os
from dataclasses import dataclass, replace
from typing import List, Optional
from dotenv import load_dotenv


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Service settings. Built once at bootstrap and passed to the components."""

    # LLM provider keys (system-wide defaults)
    OPENAI_API_KEY: str = ""
    GEMINI_API_KEY: str = ""

    # Models
    DEFAULT_MODEL: str = "gemini-2.5-flash"
    FALLBACK_OPENAI_MODEL: str = "gpt-4.1-nano"
    FALLBACK_GEMINI_MODEL: str = "gemini-2.5-flash"
    FALLBACK_PROFILE_ID: str = "default"

    # Provider endpoints
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    PROVIDER_TIMEOUT: float = 60.0

    # Redis Configuration (user AI settings)
    REDIS_ENABLED: bool = True
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    # API Configuration
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # CORS Configuration
    CORS_ORIGINS: str = "*"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """
        Build settings from the process environment.

        Args:
            env_file: Optional .env path (defaults to python-dotenv lookup)

        Returns:
            Settings instance
        """
        load_dotenv(env_file)

        return cls(
            OPENAI_API_KEY=os.getenv("OPENAI_API_KEY", ""),
            GEMINI_API_KEY=os.getenv("GEMINI_API_KEY", ""),
            DEFAULT_MODEL=os.getenv("DEFAULT_MODEL", cls.DEFAULT_MODEL),
            FALLBACK_OPENAI_MODEL=os.getenv("FALLBACK_OPENAI_MODEL", cls.FALLBACK_OPENAI_MODEL),
            FALLBACK_GEMINI_MODEL=os.getenv("FALLBACK_GEMINI_MODEL", cls.FALLBACK_GEMINI_MODEL),
            FALLBACK_PROFILE_ID=os.getenv("FALLBACK_PROFILE_ID", cls.FALLBACK_PROFILE_ID),
            OPENAI_BASE_URL=os.getenv("OPENAI_BASE_URL", cls.OPENAI_BASE_URL),
            GEMINI_BASE_URL=os.getenv("GEMINI_BASE_URL", cls.GEMINI_BASE_URL),
            PROVIDER_TIMEOUT=float(os.getenv("PROVIDER_TIMEOUT", "60")),
            REDIS_ENABLED=_env_bool("REDIS_ENABLED", "true"),
            REDIS_HOST=os.getenv("REDIS_HOST", cls.REDIS_HOST),
            REDIS_PORT=int(os.getenv("REDIS_PORT", "6379")),
            REDIS_DB=int(os.getenv("REDIS_DB", "0")),
            API_HOST=os.getenv("API_HOST", cls.API_HOST),
            API_PORT=int(os.getenv("API_PORT", "8000")),
            API_ENV=os.getenv("API_ENV", cls.API_ENV),
            LOG_LEVEL=os.getenv("LOG_LEVEL", cls.LOG_LEVEL).upper(),
            CORS_ORIGINS=os.getenv("CORS_ORIGINS", cls.CORS_ORIGINS),
        )

    def with_overrides(self, **overrides) -> "Settings":
        """Copy of these settings with some values replaced"""
        return replace(self, **overrides)

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]
