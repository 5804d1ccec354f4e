"""
Environment configuration module.

Centralizes all environment variable access with sensible defaults.
Load values from .env file or system environment variables.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


def get_env(key: str, default: str = "") -> str:
    """Get environment variable with default fallback."""
    return os.getenv(key, default)


def get_env_int(key: str, default: int = 0) -> int:
    """Get environment variable as integer with default fallback."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get environment variable as boolean with default fallback."""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def get_secret(key: str) -> str:
    """Get an API key, stripping quotes and whitespace hosting panels add."""
    return get_env(key).strip().strip("\"'")


@dataclass
class ServerEnv:
    """Server configuration."""

    host: str = field(default_factory=lambda: get_env("NIRA_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: get_env_int("NIRA_PORT", 5000))
    admin_api_key: str = field(default_factory=lambda: get_secret("NIRA_ADMIN_KEY"))
    allow_dev_tokens: bool = field(
        default_factory=lambda: get_env_bool("NIRA_ALLOW_DEV_TOKENS", False)
    )

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"


@dataclass
class LLMEnv:
    """LLM service URLs and keys."""

    groq_base_url: str = field(
        default_factory=lambda: get_env(
            "LLM_GROQ_BASE_URL", "https://api.groq.com/openai/v1"
        )
    )
    groq_api_key: str = field(default_factory=lambda: get_secret("GROQ_API_KEY"))
    gemini_base_url: str = field(
        default_factory=lambda: get_env(
            "LLM_GEMINI_BASE_URL",
            "https://generativelanguage.googleapis.com/v1beta/openai/",
        )
    )
    gemini_api_key: str = field(default_factory=lambda: get_secret("GEMINI_API_KEY"))


@dataclass
class SearchEnv:
    """Web search service configuration."""

    tavily_url: str = field(
        default_factory=lambda: get_env("SEARCH_TAVILY_URL", "https://api.tavily.com/search")
    )
    tavily_api_key: str = field(default_factory=lambda: get_secret("TAVILY_API_KEY"))


@dataclass
class TTSEnv:
    """TTS service configuration."""

    sarvam_url: str = field(
        default_factory=lambda: get_env(
            "TTS_SARVAM_URL", "https://api.sarvam.ai/text-to-speech"
        )
    )
    sarvam_api_key: str = field(default_factory=lambda: get_secret("SARVAM_API_KEY"))


@dataclass
class EnvConfig:
    """Aggregated environment configuration."""

    server: ServerEnv = field(default_factory=ServerEnv)
    llm: LLMEnv = field(default_factory=LLMEnv)
    search: SearchEnv = field(default_factory=SearchEnv)
    tts: TTSEnv = field(default_factory=TTSEnv)


_env_config: EnvConfig | None = None


def get_env_config() -> EnvConfig:
    """Get the global environment configuration instance."""
    global _env_config
    if _env_config is None:
        _env_config = EnvConfig()
    return _env_config


def reload_env_config() -> EnvConfig:
    """Reload environment configuration (useful for testing)."""
    global _env_config
    load_dotenv(override=True)
    _env_config = EnvConfig()
    return _env_config
