"""
Provider factory with registry pattern.

Each provider type is registered with a factory function. Add new backends
by registering them in PROVIDER_FACTORIES.
"""

from typing import Callable

from ..config_manager.llm import ProviderConfig
from .provider_interface import LLMProvider


def _create_openai_compatible(config: ProviderConfig, **kwargs) -> LLMProvider:
    from .openai_compatible import OpenAICompatibleProvider

    return OpenAICompatibleProvider(config, client=kwargs.get("client"))


PROVIDER_FACTORIES: dict[str, Callable[..., LLMProvider]] = {
    "openai_compatible": _create_openai_compatible,
}


def create_provider(config: ProviderConfig, **kwargs) -> LLMProvider:
    """
    Create a language-model provider from its configuration.

    Raises:
        ValueError: If the provider type is not registered.
    """
    factory = PROVIDER_FACTORIES.get(config.type)
    if factory is None:
        available = ", ".join(sorted(PROVIDER_FACTORIES.keys()))
        raise ValueError(
            f"Unknown provider type: {config.type}. Available types: {available}"
        )
    return factory(config, **kwargs)


def list_provider_types() -> list[str]:
    return sorted(PROVIDER_FACTORIES.keys())
