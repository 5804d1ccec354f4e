"""Provider Gateway.

Single entry point for every outbound model call. Replies walk the ordered
provider list and fall back to a fixed pool of lines when every provider
fails, so ``generate_reply`` always returns text. Fact extraction, history
summarization and search degrade to empty results. Only ``describe_image``
lets a failure escape, because its caller needs to know.
"""

from __future__ import annotations

import random
import re
from typing import Awaitable, Callable, Iterable

from loguru import logger

from ..config_manager.llm import LLMConfig, SearchConfig
from ..memory.exceptions import MalformedInputError, ProviderFailure
from ..memory.models import ConversationTurn, TurnRole
from .fact_parser import parse_fact_list
from .provider_factory import create_provider
from .provider_interface import LLMProvider, SearchProvider
from .search import TavilySearchProvider, should_search

StatusRecorder = Callable[[str, bool, str | None], Awaitable[None]]

FACT_EXTRACTION_PROMPT = """\
Extract key personal facts about the user from this conversation \
(name, age, hobbies, preferences, relationships, important life events).
Write each fact as one short sentence in the third person.
Return ONLY a JSON array of strings, e.g. ["User loves cricket"].
If there is nothing worth remembering, return: []
"""

HISTORY_SUMMARY_PROMPT = """\
You maintain a rolling summary of a friendship conversation.
Merge the previous summary with the new messages into a single summary of \
at most {max_words} words. Keep names, feelings, plans and open topics. \
Return only the summary text.
"""

DEFAULT_VISION_PROMPT = "Describe this image in 2-3 specific sentences."

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[^,]*)?,", re.DOTALL)
_WHITESPACE_RE = re.compile(r"\s+")


def parse_data_uri(image: str) -> tuple[str, str]:
    """Split an image payload into ``(mime_type, base64_data)``.

    Accepts a data URI or bare base64; the mime type defaults to image/jpeg.
    """
    mime_type = "image/jpeg"
    payload = image or ""
    match = _DATA_URI_RE.match(payload)
    if match:
        mime_type = match.group("mime") or mime_type
        payload = payload[match.end():]
    return mime_type, _WHITESPACE_RE.sub("", payload)


def window_history(
    history: Iterable[ConversationTurn], window: int
) -> list[dict]:
    """Build the message list sent with a new user message.

    Keeps the newest ``window`` turns, collapses runs of the same role to
    the newest turn and drops trailing user turns so that roles alternate
    once the new user message is appended.
    """
    if window <= 0:
        return []
    turns = [t for t in history if t.content and t.content.strip()][-window:]

    collapsed: list[ConversationTurn] = []
    for turn in turns:
        if collapsed and collapsed[-1].role == turn.role:
            collapsed[-1] = turn
        else:
            collapsed.append(turn)

    while collapsed and collapsed[-1].role == TurnRole.USER:
        collapsed.pop()
    return [turn.to_message() for turn in collapsed]


def format_transcript(turns: Iterable[ConversationTurn], assistant_name: str = "NIRA") -> str:
    lines = []
    for turn in turns:
        speaker = "User" if turn.role == TurnRole.USER else assistant_name
        lines.append(f"{speaker}: {turn.content}")
    return "\n".join(lines)


class ProviderGateway:
    """Routes model calls through the ordered provider list."""

    def __init__(
        self,
        providers: list[LLMProvider],
        fallback_responses: list[str],
        llm_config: LLMConfig | None = None,
        search_provider: SearchProvider | None = None,
        search_config: SearchConfig | None = None,
        vision_provider: LLMProvider | None = None,
        vision_prompt: str = DEFAULT_VISION_PROMPT,
        status_recorder: StatusRecorder | None = None,
        rng: random.Random | None = None,
    ):
        if not fallback_responses:
            raise ValueError("fallback_responses must not be empty")
        self._providers = list(providers)
        self._fallbacks = list(fallback_responses)
        self._llm_config = llm_config or LLMConfig(providers=[])
        self._search = search_provider
        self._search_config = search_config
        self._vision = vision_provider
        self._vision_prompt = vision_prompt
        self._status_recorder = status_recorder
        self._rng = rng or random.Random()

    @classmethod
    def from_config(
        cls,
        llm_config: LLMConfig,
        search_config: SearchConfig,
        fallback_responses: list[str],
        vision_prompt: str = DEFAULT_VISION_PROMPT,
        status_recorder: StatusRecorder | None = None,
    ) -> "ProviderGateway":
        providers = [create_provider(p) for p in llm_config.providers]
        for p in llm_config.providers:
            if not p.enabled:
                logger.warning(f"Provider '{p.name}' has no API key and will be skipped")

        vision_provider = None
        for p in llm_config.providers:
            if p.name == llm_config.vision_provider:
                vision_provider = create_provider(
                    p.model_copy(update={"model": llm_config.vision_model})
                )
                break
        if vision_provider is None:
            logger.warning(
                f"Vision provider '{llm_config.vision_provider}' is not configured"
            )

        return cls(
            providers=providers,
            fallback_responses=fallback_responses,
            llm_config=llm_config,
            search_provider=TavilySearchProvider(search_config),
            search_config=search_config,
            vision_provider=vision_provider,
            vision_prompt=vision_prompt,
            status_recorder=status_recorder,
        )

    @property
    def provider_names(self) -> list[str]:
        return [p.name for p in self._providers]

    async def _record(self, name: str, ok: bool, error: str | None = None) -> None:
        if self._status_recorder is None:
            return
        try:
            await self._status_recorder(name, ok, error)
        except Exception as e:
            logger.warning(f"Failed to record status for provider '{name}': {e}")

    async def _first_success(
        self,
        purpose: str,
        system_prompt: str,
        messages: list[dict],
        image: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str | None:
        for provider in self._providers:
            try:
                text = await provider.complete(
                    system_prompt,
                    messages,
                    image=image,
                    max_tokens=max_tokens,
                    temperature=temperature,
                )
            except ProviderFailure as e:
                logger.warning(f"[{purpose}] provider '{provider.name}' failed: {e.reason}")
                await self._record(provider.name, False, e.reason)
                continue
            except Exception as e:
                reason = f"{type(e).__name__}: {e}"
                logger.exception(
                    f"[{purpose}] provider '{provider.name}' raised unexpectedly: {reason}"
                )
                await self._record(provider.name, False, reason)
                continue
            await self._record(provider.name, True)
            logger.debug(f"[{purpose}] answered by '{provider.name}'")
            return text
        return None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def generate_reply(
        self,
        system_prompt: str,
        history: list[ConversationTurn],
        message: str,
        image: str | None = None,
    ) -> str:
        """Generate the companion's reply. Never raises, never returns empty."""
        messages = window_history(history, self._llm_config.history_window)
        messages.append({"role": "user", "content": message})

        text = await self._first_success("reply", system_prompt, messages, image=image)
        if text:
            return text

        logger.warning("All providers failed, answering from the fallback pool")
        return self._rng.choice(self._fallbacks)

    async def summarize_facts(self, turns: list[ConversationTurn]) -> list[str]:
        """Extract durable facts about the user. Empty list on any failure."""
        if not turns:
            return []
        transcript = format_transcript(turns)
        text = await self._first_success(
            "facts",
            FACT_EXTRACTION_PROMPT,
            [{"role": "user", "content": transcript}],
            max_tokens=self._llm_config.extraction_max_tokens,
            temperature=0.2,
        )
        return parse_fact_list(text)

    async def summarize_history(
        self,
        existing_summary: str | None,
        turns: list[ConversationTurn],
        max_words: int = 100,
    ) -> str | None:
        """Fold new turns into the rolling summary. None when nothing answered."""
        if not turns:
            return None
        parts = []
        if existing_summary:
            parts.append(f"Previous summary:\n{existing_summary}")
        parts.append(f"New messages:\n{format_transcript(turns)}")
        text = await self._first_success(
            "summary",
            HISTORY_SUMMARY_PROMPT.format(max_words=max_words),
            [{"role": "user", "content": "\n\n".join(parts)}],
            max_tokens=self._llm_config.extraction_max_tokens,
            temperature=0.3,
        )
        return text.strip() if text else None

    def should_search(self, message: str) -> bool:
        if self._search is None or self._search_config is None:
            return False
        if not self._search_config.enabled:
            return False
        return should_search(
            message,
            self._search_config.trigger_keywords,
            self._search_config.min_message_length,
        )

    async def search(self, query: str) -> str | None:
        """Formatted web results, or None when search is off or failed."""
        if self._search is None:
            return None
        try:
            results = await self._search.search(query)
        except ProviderFailure as e:
            logger.warning(f"[search] '{self._search.name}' failed: {e.reason}")
            await self._record(self._search.name, False, e.reason)
            return None
        except Exception as e:
            reason = f"{type(e).__name__}: {e}"
            logger.exception(f"[search] '{self._search.name}' raised unexpectedly: {reason}")
            await self._record(self._search.name, False, reason)
            return None
        await self._record(self._search.name, True)
        return results

    async def describe_image(self, image: str) -> str:
        """Describe an image payload.

        Raises:
            MalformedInputError: If the payload is too small to be an image.
            ProviderFailure: If the vision provider fails.
        """
        mime_type, payload = parse_data_uri(image)
        if len(payload) < self._llm_config.vision_min_payload_chars:
            raise MalformedInputError("image", "image data is too small or empty")
        if self._vision is None:
            raise ProviderFailure("vision", "no vision provider configured")

        data_uri = f"data:{mime_type};base64,{payload}"
        try:
            text = await self._vision.complete(
                self._vision_prompt,
                [{"role": "user", "content": "What do you see?"}],
                image=data_uri,
                max_tokens=300,
                temperature=0.4,
            )
        except ProviderFailure as e:
            logger.error(f"[vision] '{self._vision.name}' failed: {e.reason}")
            await self._record(self._vision.name, False, e.reason)
            raise
        await self._record(self._vision.name, True)
        return text
