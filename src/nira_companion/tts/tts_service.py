"""Speech synthesis for companion replies: clean, chunk, synthesize in order."""

from __future__ import annotations

from loguru import logger

from ..config_manager.tts import TTSConfig
from ..memory.exceptions import MalformedInputError
from .text_prep import chunk_text, clean_text_for_tts
from .tts_interface import TTSInterface


class TTSService:
    def __init__(self, engine: TTSInterface, config: TTSConfig | None = None):
        self._engine = engine
        self._config = config or TTSConfig()

    @property
    def engine_name(self) -> str:
        return self._engine.name

    def describe(self) -> dict:
        return {
            "status": "TTS Service is Active",
            "provider": self._engine.name,
            "model": self._config.model,
            "maxChunkChars": self._config.max_chunk_chars,
        }

    async def synthesize(
        self,
        text: str,
        language_code: str | None = None,
        speaker: str | None = None,
    ) -> list[str]:
        """Return base64 audio clips, one per chunk, in playback order.

        Raises:
            MalformedInputError: Nothing speakable is left after cleaning.
            ProviderFailure: The engine failed on any chunk.
        """
        cleaned = clean_text_for_tts(text)
        chunks = chunk_text(cleaned, self._config.max_chunk_chars)
        if not chunks:
            raise MalformedInputError("text", "nothing to synthesize")

        language_code = language_code or self._config.default_language
        speaker = speaker or self._config.default_speaker
        logger.info(
            f"[TTS] Synthesizing {len(chunks)} chunk(s) "
            f"({language_code}, speaker={speaker})"
        )

        audios = []
        for chunk in chunks:
            audios.append(await self._engine.synthesize(chunk, language_code, speaker))
        return audios
