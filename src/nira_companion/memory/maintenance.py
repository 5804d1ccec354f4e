"""Background memory maintenance.

Jobs that run after a reply has been returned: long-term fact extraction,
mid-term summarization and the emotional state heuristic. Each job reads
what it needs, calls the provider gateway and writes its own documents.
Failures propagate to the background runner, which logs them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from .config import MemoryConfig
from .models import ConversationTurn, EmotionalState
from .memory_service import MemoryService

if TYPE_CHECKING:
    from ..providers.gateway import ProviderGateway

STRESS_KEYWORD = "stress"
REFLECTIVE_MIN_LENGTH = 50


def classify_mood(message: str) -> EmotionalState:
    """Heuristic mood tag for the latest user message."""
    if len(message) > REFLECTIVE_MIN_LENGTH:
        mood = "reflective"
    elif STRESS_KEYWORD in message.lower():
        mood = "stressed"
    else:
        mood = "engaged"
    return EmotionalState(mood=mood, energy="high")


class MemoryMaintenance:
    """Runs the fire-and-forget memory jobs for one user at a time."""

    def __init__(
        self,
        memory: MemoryService,
        gateway: ProviderGateway,
        config: MemoryConfig | None = None,
    ):
        self._memory = memory
        self._gateway = gateway
        self._config = config or MemoryConfig()

    async def extract_facts(self, uid: str, turns: list[ConversationTurn]) -> int:
        """Extract facts from ``turns`` and append them as long-term records.

        Returns:
            Number of facts written.
        """
        cfg = self._config.extraction
        if not cfg.enabled:
            return 0
        if len(turns) < cfg.min_turns:
            logger.debug(f"Fact extraction skipped for {uid}: {len(turns)} turn(s)")
            return 0

        facts = await self._gateway.summarize_facts(turns)
        if not facts:
            logger.debug(f"No facts extracted for {uid}")
            return 0

        written = await self._memory.append_facts(uid, facts)
        logger.info(f"Stored {written} long-term fact(s) for {uid}")
        return written

    async def summarize_history(
        self,
        uid: str,
        turns: list[ConversationTurn],
        existing_summary: str | None = None,
    ) -> bool:
        """Fold ``turns`` into the rolling mid-term summary.

        The previous summary is kept untouched when every provider fails.
        """
        cfg = self._config.summarization
        if not cfg.enabled or len(turns) < cfg.min_turns:
            return False

        if existing_summary is None:
            existing_summary = (await self._memory.get_mid_term_summary(uid)).summary

        summary = await self._gateway.summarize_history(
            existing_summary, turns, max_words=cfg.max_words
        )
        if not summary:
            logger.warning(f"Summarization produced nothing for {uid}, keeping old summary")
            return False

        words = summary.split()
        if len(words) > cfg.max_words:
            summary = " ".join(words[: cfg.max_words])

        await self._memory.set_mid_term_summary(uid, summary, turn_count=len(turns))
        logger.info(f"Mid-term summary updated for {uid} ({len(turns)} turns)")
        return True

    async def update_emotional_state(self, uid: str, message: str) -> EmotionalState:
        state = classify_mood(message)
        await self._memory.set_emotional_state(uid, state)
        logger.debug(f"Emotional state for {uid}: {state.mood}/{state.energy}")
        return state
