# config_manager/main.py
from pydantic import BaseModel, Field

from ..memory.config import MemoryConfig
from .llm import LLMConfig, SearchConfig
from .persona import PersonaConfig
from .policy import PolicyConfig
from .system import SystemConfig
from .tts import TTSConfig


class Config(BaseModel):
    """Main configuration for the companion server."""

    system_config: SystemConfig = Field(default_factory=SystemConfig, alias="system_config")
    llm_config: LLMConfig = Field(default_factory=LLMConfig, alias="llm_config")
    search_config: SearchConfig = Field(default_factory=SearchConfig, alias="search_config")
    persona_config: PersonaConfig = Field(default_factory=PersonaConfig, alias="persona_config")
    policy_config: PolicyConfig = Field(default_factory=PolicyConfig, alias="policy_config")
    memory_config: MemoryConfig = Field(default_factory=MemoryConfig, alias="memory_config")
    tts_config: TTSConfig = Field(default_factory=TTSConfig, alias="tts_config")
