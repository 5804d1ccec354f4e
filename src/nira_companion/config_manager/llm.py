# config_manager/llm.py
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from .env_config import get_env_config

DEFAULT_SEARCH_KEYWORDS = [
    "weather", "mausam", "news", "khabar", "taza", "latest", "today", "aaj",
    "score", "match", "price", "bhaav", "rate", "who is", "kon hai", "what is",
    "kya hai", "youtube", "yt", "video", "link", "sunao", "play",
]


class ProviderConfig(BaseModel):
    """One language-model backend in the fallback chain."""

    name: str
    type: Literal["openai_compatible"] = "openai_compatible"
    base_url: str
    api_key: str = ""
    model: str
    timeout_seconds: float = Field(20.0, gt=0)
    max_tokens: int = Field(150, gt=0)
    temperature: float = Field(0.85, ge=0, le=2)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


def _default_providers() -> list[ProviderConfig]:
    env = get_env_config().llm
    return [
        ProviderConfig(
            name="groq",
            base_url=env.groq_base_url,
            api_key=env.groq_api_key,
            model="llama-3.3-70b-versatile",
        ),
        ProviderConfig(
            name="gemini",
            base_url=env.gemini_base_url,
            api_key=env.gemini_api_key,
            model="gemini-2.0-flash-lite",
        ),
    ]


class LLMConfig(BaseModel):
    """Ordered provider list and prompt windowing."""

    providers: list[ProviderConfig] = Field(default_factory=_default_providers)
    history_window: int = Field(8, ge=0)
    vision_provider: str = "gemini"
    vision_model: str = "gemini-1.5-flash-latest"
    vision_min_payload_chars: int = Field(100, ge=1)
    extraction_max_tokens: int = Field(400, gt=0)

    @field_validator("providers")
    @classmethod
    def check_unique_names(cls, v):
        names = [p.name for p in v]
        if len(names) != len(set(names)):
            raise ValueError(f"Provider names must be unique: {names}")
        return v


class SearchConfig(BaseModel):
    """Web search configuration."""

    enabled: bool = True
    base_url: str = Field(default_factory=lambda: get_env_config().search.tavily_url)
    api_key: str = Field(default_factory=lambda: get_env_config().search.tavily_api_key)
    max_results: int = Field(3, ge=1)
    search_depth: str = "basic"
    timeout_seconds: float = Field(10.0, gt=0)
    trigger_keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SEARCH_KEYWORDS)
    )
    min_message_length: int = Field(5, ge=0)
