# config_manager/__init__.py
from .env_config import EnvConfig, get_env_config, reload_env_config
from .llm import DEFAULT_SEARCH_KEYWORDS, LLMConfig, ProviderConfig, SearchConfig
from .main import Config
from .persona import PersonaConfig
from .policy import PolicyConfig
from .system import SystemConfig
from .tts import TTSConfig
from .utils import load_config, read_yaml, validate_config

__all__ = [
    "Config",
    "SystemConfig",
    "LLMConfig",
    "ProviderConfig",
    "SearchConfig",
    "PersonaConfig",
    "PolicyConfig",
    "TTSConfig",
    "DEFAULT_SEARCH_KEYWORDS",
    "EnvConfig",
    "get_env_config",
    "reload_env_config",
    "read_yaml",
    "validate_config",
    "load_config",
]
