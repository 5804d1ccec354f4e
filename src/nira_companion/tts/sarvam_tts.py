"""Sarvam AI text-to-speech adapter."""

from __future__ import annotations

import httpx
from loguru import logger

from ..config_manager.tts import TTSConfig
from ..memory.exceptions import ProviderFailure

DEFAULT_V2_SPEAKER = "anushka"

# bulbul:v2 only knows the legacy voices, clients send the newer names
V2_SPEAKER_MAPPING = {
    "priya": "anushka",
    "ritu": "anushka",
    "kavya": "anushka",
    "pooja": "manisha",
    "neha": "vidya",
    "simran": "arya",
    "rohan": "abhilash",
    "aditya": "abhilash",
    "rahul": "karun",
    "dev": "karun",
    "amit": "hitesh",
    "varun": "hitesh",
}


def map_speaker(speaker: str | None) -> str:
    if not speaker:
        return DEFAULT_V2_SPEAKER
    return V2_SPEAKER_MAPPING.get(speaker.strip().lower(), DEFAULT_V2_SPEAKER)


class SarvamTTS:
    name = "sarvam"

    def __init__(self, config: TTSConfig, client: httpx.AsyncClient | None = None):
        self._config = config
        self._client = client
        self._api_key = config.api_key.strip().strip("\"'")

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    async def _post(self, payload: dict) -> httpx.Response:
        headers = {
            "api-subscription-key": self._api_key,
            "Content-Type": "application/json",
        }
        if self._client is not None:
            return await self._client.post(
                self._config.base_url,
                json=payload,
                headers=headers,
                timeout=self._config.timeout_seconds,
            )
        async with httpx.AsyncClient() as client:
            return await client.post(
                self._config.base_url,
                json=payload,
                headers=headers,
                timeout=self._config.timeout_seconds,
            )

    async def synthesize(self, text: str, language_code: str, speaker: str) -> str:
        if not self.enabled:
            raise ProviderFailure(self.name, "SARVAM_API_KEY is not configured")

        voice = map_speaker(speaker)
        payload = {
            "inputs": [text],
            "target_language_code": language_code,
            "speaker": voice,
            "model": self._config.model,
            "pace": self._config.pace,
            "speech_sample_rate": self._config.sample_rate,
        }
        logger.debug(
            f"[TTS] Sarvam request: model={self._config.model}, "
            f"speaker={voice} (from {speaker}), {len(text)} chars"
        )

        try:
            response = await self._post(payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ProviderFailure(
                self.name, f"HTTP {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderFailure(self.name, str(e) or type(e).__name__) from e

        audios = data.get("audios") if isinstance(data, dict) else None
        if not audios or not audios[0]:
            raise ProviderFailure(self.name, "response contained no audio")
        return audios[0]
