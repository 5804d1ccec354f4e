"""Orchestrator.

Runs one chat turn end to end:

1. concurrent read of settings, profile, emotional state, facts, summary
   and recent turns
2. onboarding short-circuit, then the access gate
3. optional web search
4. system prompt composition
5. reply generation through the provider gateway
6. atomic persistence of both turns and the usage counters
7. return
8. detached memory maintenance
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, TypeVar

from loguru import logger

from ..config_manager.persona import PersonaConfig
from ..memory.config import MemoryConfig
from ..memory.exceptions import MalformedInputError, PolicyRejection, StoreFailure
from ..memory.maintenance import MemoryMaintenance
from ..memory.memory_service import MemoryService
from ..memory.models import (
    ConversationTurn,
    EmotionalState,
    FriendshipStats,
    MemorySnapshot,
    MidTermSummary,
    OnboardingState,
    TurnRole,
    UserProfile,
)
from ..policy.policy_engine import PolicyEngine
from ..providers.gateway import ProviderGateway
from .background import BackgroundTaskRunner
from .prompt_builder import build_system_prompt

T = TypeVar("T")


@dataclass
class ChatResult:
    """Outcome of ``handle_message``.

    ``persisted`` is False when the reply was produced but the exchange
    could not be written; ``persist_error`` then holds the reason.
    """

    response: str
    kind: str = "reply"
    persisted: bool = True
    persist_error: str | None = None
    searched: bool = False


class Orchestrator:
    def __init__(
        self,
        memory: MemoryService,
        gateway: ProviderGateway,
        policy: PolicyEngine,
        persona: PersonaConfig | None = None,
        memory_config: MemoryConfig | None = None,
        background: BackgroundTaskRunner | None = None,
        maintenance: MemoryMaintenance | None = None,
    ):
        self._memory = memory
        self._gateway = gateway
        self._policy = policy
        self._persona = persona or PersonaConfig()
        self._config = memory_config or MemoryConfig()
        self._background = background or BackgroundTaskRunner()
        self._maintenance = maintenance or MemoryMaintenance(
            memory, gateway, self._config
        )

    @property
    def background(self) -> BackgroundTaskRunner:
        return self._background

    async def _degrade(self, job: Awaitable[T], default: T, label: str) -> T:
        try:
            return await job
        except StoreFailure as e:
            logger.warning(f"Could not load {label}, continuing without it: {e}")
            return default

    async def _load_snapshot(self, uid: str) -> MemorySnapshot:
        """Read phase. Settings and profile failures propagate."""
        (
            settings,
            profile,
            emotional_state,
            facts,
            summary,
            turns,
        ) = await asyncio.gather(
            self._memory.get_global_settings(),
            self._memory.get_profile(uid),
            self._degrade(
                self._memory.get_emotional_state(uid), EmotionalState(), "emotional state"
            ),
            self._degrade(
                self._memory.get_long_term_facts(uid, self._config.long_term_limit),
                [],
                "long-term facts",
            ),
            self._degrade(
                self._memory.get_mid_term_summary(uid), MidTermSummary(), "summary"
            ),
            self._degrade(
                self._memory.get_recent_turns(uid, self._config.recent_turns_limit),
                [],
                "recent turns",
            ),
        )
        return MemorySnapshot(
            settings=settings,
            profile=profile or UserProfile(),
            profile_exists=profile is not None,
            emotional_state=emotional_state,
            long_term=facts,
            summary=summary,
            recent_turns=turns,
            stats=FriendshipStats.from_profile(profile, now=self._memory.now()),
        )

    async def handle_message(
        self, user_id: str, message: str, image: str | None = None
    ) -> ChatResult:
        """Handle one user message and return the companion's reply.

        Raises:
            MalformedInputError: Missing user id or message.
            PolicyRejection: Maintenance mode or trial ended.
            StoreFailure: Settings or profile could not be read.
        """
        if not user_id:
            raise MalformedInputError("user_id", "is required")
        if not isinstance(message, str) or not message.strip():
            raise MalformedInputError("message", "is required")

        snapshot = await self._load_snapshot(user_id)
        profile = snapshot.profile if snapshot.profile_exists else None

        decision = self._policy.evaluate_onboarding(profile, message)
        if decision.short_circuits:
            await self._memory.set_onboarding_state(
                user_id, decision.next_state, name=decision.name
            )
            return ChatResult(response=decision.reply, kind="onboarding")

        self._policy.check_access(profile, snapshot.settings)

        search_results = None
        if image is None and self._gateway.should_search(message):
            search_results = await self._gateway.search(message)

        system_prompt = build_system_prompt(
            self._persona.persona_prompt,
            profile=snapshot.profile,
            emotional_state=snapshot.emotional_state,
            facts=snapshot.long_term,
            summary=snapshot.summary,
            stats=snapshot.stats,
            global_prompt=snapshot.settings.global_prompt,
            search_results=search_results,
        )

        reply = await self._gateway.generate_reply(
            system_prompt, snapshot.recent_turns, message, image=image
        )

        user_turn = ConversationTurn(role=TurnRole.USER, content=message, image=image)
        assistant_turn = ConversationTurn(role=TurnRole.ASSISTANT, content=reply)
        last_turn_at = (
            snapshot.recent_turns[-1].timestamp if snapshot.recent_turns else None
        )
        increment = self._policy.compute_usage_increment(last_turn_at, self._memory.now())
        is_first_write = profile is None or profile.created_at is None

        result = ChatResult(response=reply, searched=search_results is not None)
        try:
            await self._persist(
                user_id, user_turn, assistant_turn, increment, is_first_write
            )
        except StoreFailure as e:
            logger.error(f"Exchange for {user_id} was not persisted: {e}")
            result.persisted = False
            result.persist_error = str(e)
            return result

        await self._schedule_maintenance(
            user_id, message, snapshot, [user_turn, assistant_turn]
        )
        return result

    async def _persist(
        self,
        user_id: str,
        user_turn: ConversationTurn,
        assistant_turn: ConversationTurn,
        increment: float,
        is_first_write: bool,
    ) -> None:
        attempts = self._config.persist_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                await self._memory.commit_exchange(
                    user_id, user_turn, assistant_turn, increment, is_first_write
                )
                return
            except StoreFailure as e:
                if attempt == attempts:
                    raise
                logger.warning(
                    f"Persisting exchange for {user_id} failed "
                    f"(attempt {attempt}/{attempts}): {e}"
                )

    async def _schedule_maintenance(
        self,
        user_id: str,
        message: str,
        snapshot: MemorySnapshot,
        new_turns: list[ConversationTurn],
    ) -> None:
        await self._background.spawn(
            "emotional_state",
            self._maintenance.update_emotional_state(user_id, message),
        )

        prior_count = len(snapshot.recent_turns)
        window = snapshot.recent_turns + new_turns

        extraction = self._config.extraction
        if extraction.enabled and (
            prior_count % extraction.every_n_turns == 0
            or len(message) > extraction.min_message_length
        ):
            await self._background.spawn(
                "fact_extraction", self._maintenance.extract_facts(user_id, window)
            )

        summarization = self._config.summarization
        interactions = snapshot.profile.total_interactions + 1
        if summarization.enabled and interactions % summarization.every_n_interactions == 0:
            await self._background.spawn(
                "summarization",
                self._maintenance.summarize_history(
                    user_id, window, snapshot.summary.summary
                ),
            )

    async def schedule_summarization(self, user_id: str) -> None:
        """Queue a summary refresh over the recent turns."""
        await self._background.spawn(
            "summarization", self._summarize_recent(user_id)
        )

    async def _summarize_recent(self, user_id: str) -> None:
        turns = await self._memory.get_recent_turns(
            user_id, self._config.recent_turns_limit
        )
        await self._maintenance.summarize_history(user_id, turns)

    async def handle_proactive_greeting(self, user_id: str) -> str:
        """Greeting for a user who just opened the app.

        Empty when onboarding is not finished or the user may not chat.
        """
        if not user_id:
            raise MalformedInputError("user_id", "is required")

        snapshot = await self._load_snapshot(user_id)
        profile = snapshot.profile
        if (
            not snapshot.profile_exists
            or not profile.name
            or profile.setup_step == OnboardingState.AWAITING_NAME
        ):
            return ""

        try:
            self._policy.check_access(profile, snapshot.settings)
        except PolicyRejection as e:
            logger.debug(f"No greeting for {user_id}: {e.error_code}")
            return ""

        system_prompt = build_system_prompt(
            self._persona.persona_prompt,
            profile=profile,
            emotional_state=snapshot.emotional_state,
            facts=snapshot.long_term,
            summary=snapshot.summary,
            stats=snapshot.stats,
            global_prompt=snapshot.settings.global_prompt,
        )
        return await self._gateway.generate_reply(
            system_prompt, [], self._persona.greeting_instruction
        )
