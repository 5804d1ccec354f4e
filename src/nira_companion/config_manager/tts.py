# config_manager/tts.py
from typing import Literal

from pydantic import BaseModel, Field

from .env_config import get_env_config


class TTSConfig(BaseModel):
    """Text-to-speech configuration."""

    provider: Literal["sarvam"] = "sarvam"
    base_url: str = Field(default_factory=lambda: get_env_config().tts.sarvam_url)
    api_key: str = Field(default_factory=lambda: get_env_config().tts.sarvam_api_key)
    model: str = "bulbul:v2"
    default_language: str = "hi-IN"
    default_speaker: str = "priya"
    pace: float = Field(1.1, gt=0)
    sample_rate: int = Field(16000, gt=0)
    timeout_seconds: float = Field(10.0, gt=0)
    max_chunk_chars: int = Field(450, ge=20)
