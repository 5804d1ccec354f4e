"""
TTS engine factory with registry pattern.

Each engine type is registered with a factory function that handles import
and instantiation. Add new engines by registering them in TTS_FACTORIES.
"""

from typing import Callable

from ..config_manager.tts import TTSConfig
from .tts_interface import TTSInterface


def _create_sarvam_tts(config: TTSConfig, **kwargs) -> TTSInterface:
    from .sarvam_tts import SarvamTTS

    return SarvamTTS(config, client=kwargs.get("client"))


TTS_FACTORIES: dict[str, Callable[..., TTSInterface]] = {
    "sarvam": _create_sarvam_tts,
}


class TTSFactory:
    """Factory class for creating TTS engine instances."""

    @staticmethod
    def get_tts_engine(config: TTSConfig, **kwargs) -> TTSInterface:
        """
        Get a TTS engine instance for the configured provider.

        Raises:
            ValueError: If the provider is not registered.
        """
        factory = TTS_FACTORIES.get(config.provider)
        if factory is None:
            available = ", ".join(sorted(TTS_FACTORIES.keys()))
            raise ValueError(
                f"Unknown TTS engine type: {config.provider}. "
                f"Available engines: {available}"
            )
        return factory(config, **kwargs)

    @staticmethod
    def list_available_engines() -> list[str]:
        return sorted(TTS_FACTORIES.keys())


def create_tts_engine(config: TTSConfig, **kwargs) -> TTSInterface:
    return TTSFactory.get_tts_engine(config, **kwargs)
