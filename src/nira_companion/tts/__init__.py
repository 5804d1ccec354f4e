from .sarvam_tts import SarvamTTS, map_speaker
from .text_prep import chunk_text, clean_text_for_tts
from .tts_factory import TTS_FACTORIES, TTSFactory, create_tts_engine
from .tts_interface import TTSInterface
from .tts_service import TTSService

__all__ = [
    "SarvamTTS",
    "TTSFactory",
    "TTSInterface",
    "TTSService",
    "TTS_FACTORIES",
    "chunk_text",
    "clean_text_for_tts",
    "create_tts_engine",
    "map_speaker",
]
