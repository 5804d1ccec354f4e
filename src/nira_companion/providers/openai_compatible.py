"""OpenAI compatible chat completion provider.

Groq and Gemini both expose an OpenAI compatible endpoint, so one adapter
over ``openai.AsyncOpenAI`` serves every configured backend.
"""

from __future__ import annotations

import asyncio

from loguru import logger
from openai import AsyncOpenAI, OpenAIError

from ..config_manager.llm import ProviderConfig
from ..memory.exceptions import ProviderFailure


class OpenAICompatibleProvider:
    """Chat completion adapter for one configured backend."""

    def __init__(self, config: ProviderConfig, client: AsyncOpenAI | None = None):
        self.name = config.name
        self._config = config
        self._client = client or AsyncOpenAI(
            base_url=config.base_url,
            api_key=config.api_key or "missing",
            timeout=config.timeout_seconds,
            max_retries=0,
        )
        logger.debug(
            f"OpenAI compatible provider '{self.name}' ready "
            f"(base_url: {config.base_url}, model: {config.model})"
        )

    @property
    def model(self) -> str:
        return self._config.model

    def _build_messages(
        self, system_prompt: str, messages: list[dict], image: str | None
    ) -> list[dict]:
        built: list[dict] = []
        if system_prompt:
            built.append({"role": "system", "content": system_prompt})
        built.extend({"role": m["role"], "content": m["content"]} for m in messages)

        if image:
            # attach the image to the newest user message
            for message in reversed(built):
                if message["role"] == "user":
                    message["content"] = [
                        {"type": "text", "text": message["content"]},
                        {"type": "image_url", "image_url": {"url": image}},
                    ]
                    break
            else:
                built.append(
                    {
                        "role": "user",
                        "content": [{"type": "image_url", "image_url": {"url": image}}],
                    }
                )
        return built

    async def complete(
        self,
        system_prompt: str,
        messages: list[dict],
        image: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        if not self._config.enabled:
            raise ProviderFailure(self.name, "no API key configured")

        try:
            response = await self._client.chat.completions.create(
                model=self._config.model,
                messages=self._build_messages(system_prompt, messages, image),
                max_tokens=max_tokens or self._config.max_tokens,
                temperature=(
                    self._config.temperature if temperature is None else temperature
                ),
            )
        except (OpenAIError, asyncio.TimeoutError) as e:
            raise ProviderFailure(self.name, f"{type(e).__name__}: {e}") from e

        if not response.choices:
            raise ProviderFailure(self.name, "response contained no choices")
        text = (response.choices[0].message.content or "").strip()
        if not text:
            raise ProviderFailure(self.name, "empty completion")
        return text
