"""Memory Service - Facade for per-user companion memory.

This module provides the MemoryService class the orchestrator, routes and
background jobs use. It maps typed models onto documents in the
SQLiteDocumentStore:

    system/settings                         GlobalSettings
    system/api_status                       provider health
    users/<uid>                             UserProfile
    users/<uid>/conversations/*             ConversationTurn (append-only)
    users/<uid>/longTermMemory/*            LongTermFact (append-only)
    users/<uid>/emotionalState/current      EmotionalState (overwritten)
    users/<uid>/midTermMemory/current       MidTermSummary (overwritten)
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from loguru import logger
from pydantic import ValidationError

from .exceptions import MalformedInputError
from .models import (
    ConversationTurn,
    EmotionalState,
    FriendshipStats,
    GlobalSettings,
    MidTermSummary,
    OnboardingState,
    ProviderStatus,
    UserProfile,
)
from .storage.sqlite_store import SERVER_TIMESTAMP, IfMissing, Increment, SQLiteDocumentStore

USERS = "users"
SYSTEM = "system"
SETTINGS_DOC = "settings"
API_STATUS_DOC = "api_status"
CURRENT_DOC = "current"

# Only administrative actions and the exchange batch may touch these.
PROTECTED_PROFILE_FIELDS = frozenset(
    {"isPro", "usageMinutes", "totalInteractions", "createdAt", "setupStep"}
)


def _conversations(uid: str) -> str:
    return f"{USERS}/{uid}/conversations"


def _long_term(uid: str) -> str:
    return f"{USERS}/{uid}/longTermMemory"


def _emotional(uid: str) -> str:
    return f"{USERS}/{uid}/emotionalState"


def _mid_term(uid: str) -> str:
    return f"{USERS}/{uid}/midTermMemory"


class MemoryService:
    """Main memory service facade.

    Provides:
    - Global settings snapshot reads and administrative writes
    - Profile, onboarding and paid-flag updates
    - Emotional state, long-term facts and mid-term summary
    - Conversation log reads and the atomic exchange batch
    - Provider health bookkeeping
    """

    def __init__(self, store: SQLiteDocumentStore):
        self._store = store

    @property
    def store(self) -> SQLiteDocumentStore:
        return self._store

    def now(self) -> datetime:
        return self._store.now()

    # ------------------------------------------------------------------
    # Global settings
    # ------------------------------------------------------------------

    async def get_global_settings(self) -> GlobalSettings:
        """Return the settings snapshot, defaults when the document is absent."""
        data = await self._store.get(SYSTEM, SETTINGS_DOC)
        if not data:
            return GlobalSettings()
        try:
            return GlobalSettings.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Invalid settings document, using defaults: {e}")
            return GlobalSettings()

    async def update_global_settings(self, patch: dict[str, Any]) -> GlobalSettings:
        """Merge ``patch`` (camelCase keys) into the settings document."""
        current = await self.get_global_settings()
        try:
            merged = GlobalSettings.model_validate(
                {**current.to_document(), **patch}
            )
        except ValidationError as e:
            raise MalformedInputError("settings", str(e)) from e

        document = merged.to_document()
        document["updatedAt"] = SERVER_TIMESTAMP
        await self._store.set(SYSTEM, SETTINGS_DOC, document, merge=True)
        logger.info(f"Global settings updated: {sorted(patch)}")
        return await self.get_global_settings()

    async def ensure_global_settings(self, defaults: GlobalSettings) -> bool:
        """Create the settings document if missing. Returns True if created."""
        if await self._store.get(SYSTEM, SETTINGS_DOC) is not None:
            return False
        document = defaults.to_document()
        document["updatedAt"] = SERVER_TIMESTAMP
        await self._store.set(SYSTEM, SETTINGS_DOC, document)
        return True

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    async def get_profile(self, uid: str) -> UserProfile | None:
        data = await self._store.get(USERS, uid)
        if data is None:
            return None
        return UserProfile.model_validate(data)

    async def profile_exists(self, uid: str) -> bool:
        return await self._store.get(USERS, uid) is not None

    async def get_profile_document(self, uid: str) -> dict:
        return await self._store.get(USERS, uid) or {}

    async def merge_profile(self, uid: str, data: dict[str, Any]) -> None:
        await self._store.set(USERS, uid, data, merge=True)

    async def update_identity(self, uid: str, data: dict[str, Any]) -> list[str]:
        """Merge user supplied identity fields, dropping protected ones.

        Returns:
            The field names that were ignored.
        """
        ignored = sorted(k for k in data if k in PROTECTED_PROFILE_FIELDS)
        allowed = {k: v for k, v in data.items() if k not in PROTECTED_PROFILE_FIELDS}
        if ignored:
            logger.warning(f"Identity update for {uid} ignored protected fields {ignored}")
        if allowed:
            await self.merge_profile(uid, allowed)
        return ignored

    async def set_onboarding_state(
        self, uid: str, state: OnboardingState, name: str | None = None
    ) -> None:
        update: dict[str, Any] = {"setupStep": state.value}
        if name is not None:
            update["name"] = name
        await self.merge_profile(uid, update)
        logger.info(f"Onboarding state for {uid} -> {state.value}")

    async def set_pro(self, uid: str, is_pro: bool) -> None:
        """Administrative paid-flag toggle."""
        await self.merge_profile(uid, {"isPro": bool(is_pro)})
        logger.info(f"User {uid} isPro set to {bool(is_pro)}")

    async def list_profiles(self, limit: int = 100) -> list[dict]:
        rows = await self._store.query(USERS, order_by="lastActive", limit=limit)
        return [{"uid": doc_id, **data} for doc_id, data in rows]

    async def get_friendship_stats(
        self, uid: str, profile: UserProfile | None = None
    ) -> FriendshipStats:
        if profile is None:
            profile = await self.get_profile(uid)
        return FriendshipStats.from_profile(profile, now=self.now())

    # ------------------------------------------------------------------
    # Emotional state, facts, summary
    # ------------------------------------------------------------------

    async def get_emotional_state(self, uid: str) -> EmotionalState:
        data = await self._store.get(_emotional(uid), CURRENT_DOC)
        return EmotionalState.model_validate(data or {})

    async def set_emotional_state(self, uid: str, state: EmotionalState) -> None:
        document = state.to_document()
        document["lastUpdated"] = SERVER_TIMESTAMP
        await self._store.set(_emotional(uid), CURRENT_DOC, document, merge=True)

    async def get_long_term_facts(self, uid: str, limit: int) -> list[str]:
        """Most recent ``limit`` fact summaries, newest first."""
        if limit <= 0:
            return []
        rows = await self._store.query(_long_term(uid), order_by="timestamp", limit=limit)
        return [data["summary"] for _, data in rows if data.get("summary")]

    async def append_facts(
        self, uid: str, facts: Iterable[str], fact_type: str = "fact"
    ) -> int:
        """Append each fact as a new record in one batch. No deduplication."""
        batch = self._store.batch()
        for fact in facts:
            batch.add(
                _long_term(uid),
                {"summary": fact, "timestamp": SERVER_TIMESTAMP, "type": fact_type},
            )
        if len(batch) == 0:
            return 0
        await batch.commit()
        return len(batch)

    async def get_mid_term_summary(self, uid: str) -> MidTermSummary:
        data = await self._store.get(_mid_term(uid), CURRENT_DOC)
        return MidTermSummary.model_validate(data or {})

    async def set_mid_term_summary(self, uid: str, summary: str, turn_count: int) -> None:
        await self._store.set(
            _mid_term(uid),
            CURRENT_DOC,
            {"summary": summary, "turnCount": turn_count, "updatedAt": SERVER_TIMESTAMP},
        )

    # ------------------------------------------------------------------
    # Conversation log
    # ------------------------------------------------------------------

    async def get_recent_turns(self, uid: str, limit: int) -> list[ConversationTurn]:
        """Most recent ``limit`` turns in chronological order."""
        rows = await self._store.query(_conversations(uid), order_by="timestamp", limit=limit)
        turns = [ConversationTurn.model_validate(data) for _, data in rows]
        turns.reverse()
        return turns

    async def get_recent_turn_documents(self, uid: str, limit: int) -> list[dict]:
        rows = await self._store.query(_conversations(uid), order_by="timestamp", limit=limit)
        documents = [{"id": doc_id, **data} for doc_id, data in rows]
        documents.reverse()
        return documents

    async def commit_exchange(
        self,
        uid: str,
        user_turn: ConversationTurn,
        assistant_turn: ConversationTurn,
        usage_increment: float,
        is_first_write: bool,
    ) -> None:
        """Persist both turns and the profile counters in one atomic batch."""
        batch = self._store.batch()

        user_doc = user_turn.model_dump(mode="json", exclude={"timestamp"}, exclude_none=True)
        user_doc["timestamp"] = SERVER_TIMESTAMP
        batch.add(_conversations(uid), user_doc)

        assistant_doc = assistant_turn.model_dump(
            mode="json", exclude={"timestamp", "image"}
        )
        assistant_doc["timestamp"] = SERVER_TIMESTAMP
        batch.add(_conversations(uid), assistant_doc)

        profile_update: dict[str, Any] = {
            "totalInteractions": Increment(1),
            "usageMinutes": Increment(max(0.0, usage_increment)),
            "lastActive": SERVER_TIMESTAMP,
        }
        if is_first_write:
            profile_update["createdAt"] = SERVER_TIMESTAMP
            profile_update["isPro"] = IfMissing(False)
        batch.set(USERS, uid, profile_update, merge=True)

        await batch.commit()
        logger.debug(
            f"Exchange committed for {uid} (+{usage_increment:.2f} min, "
            f"first_write={is_first_write})"
        )

    # ------------------------------------------------------------------
    # Provider health
    # ------------------------------------------------------------------

    async def record_provider_status(
        self, name: str, ok: bool, error: str | None = None
    ) -> None:
        status = ProviderStatus(
            status="SUCCESS" if ok else "ERROR",
            last_used=self.now(),
            last_error=error[:500] if error else None,
        )
        await self._store.set(
            SYSTEM, API_STATUS_DOC, {name: status.model_dump(by_alias=True, mode="json")},
            merge=True,
        )

    async def get_provider_statuses(self) -> dict[str, ProviderStatus]:
        data = await self._store.get(SYSTEM, API_STATUS_DOC) or {}
        return {name: ProviderStatus.model_validate(value) for name, value in data.items()}
