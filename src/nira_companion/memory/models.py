"""Companion memory data models."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OnboardingState(str, Enum):
    NEW = "NEW"
    AWAITING_NAME = "AWAITING_NAME"
    COMPLETE = "COMPLETE"


class TurnRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class _DocumentModel(BaseModel):
    """Base for models persisted as camelCase documents."""

    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class UserProfile(_DocumentModel):
    """Identity, trial and usage counters for one user."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str | None = None
    contact_channel_id: str | None = Field(None, alias="contactChannelId")
    is_pro: bool = Field(False, alias="isPro")
    usage_minutes: float = Field(0.0, alias="usageMinutes")
    total_interactions: int = Field(0, alias="totalInteractions")
    created_at: datetime | None = Field(None, alias="createdAt")
    last_active: datetime | None = Field(None, alias="lastActive")
    setup_step: OnboardingState = Field(OnboardingState.NEW, alias="setupStep")

    @field_validator("setup_step", mode="before")
    @classmethod
    def _unknown_step_is_new(cls, value):
        if value in (None, ""):
            return OnboardingState.NEW
        return value


class ConversationTurn(_DocumentModel):
    """A single stored message. Never mutated after write."""

    role: TurnRole
    content: str
    image: str | None = None
    timestamp: datetime | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value):
        # older documents used the Gemini role name
        if value == "model":
            return TurnRole.ASSISTANT
        return value

    def to_message(self) -> dict:
        return {"role": self.role.value, "content": self.content}


class EmotionalState(_DocumentModel):
    mood: str | None = None
    energy: str | None = None
    last_updated: datetime | None = Field(None, alias="lastUpdated")

    @property
    def is_empty(self) -> bool:
        return not self.mood and not self.energy


class LongTermFact(_DocumentModel):
    summary: str
    timestamp: datetime | None = None
    type: str = "fact"


class MidTermSummary(_DocumentModel):
    summary: str = ""
    updated_at: datetime | None = Field(None, alias="updatedAt")
    turn_count: int = Field(0, alias="turnCount")


class GlobalSettings(_DocumentModel):
    """Process-wide settings document, read fresh on every request."""

    trial_limit_minutes: float = Field(5, alias="trialLimitMinutes")
    maintenance_mode: bool = Field(False, alias="maintenanceMode")
    global_prompt: str = Field("", alias="globalPrompt")
    updated_at: datetime | None = Field(None, alias="updatedAt")


class FriendshipStats(BaseModel):
    """Derived from the profile on read, never stored."""

    days: int = 1
    interactions: int = 0

    @classmethod
    def from_profile(
        cls, profile: UserProfile | None, now: datetime | None = None
    ) -> "FriendshipStats":
        if profile is None:
            return cls()
        now = now or _utcnow()
        first_seen = profile.created_at or now
        if first_seen.tzinfo is None:
            first_seen = first_seen.replace(tzinfo=timezone.utc)
        elapsed_days = abs((now - first_seen).total_seconds()) / 86400
        return cls(
            days=max(1, math.ceil(elapsed_days)),
            interactions=profile.total_interactions,
        )


class ProviderStatus(_DocumentModel):
    status: str
    last_used: datetime | None = Field(None, alias="lastUsed")
    last_error: str | None = Field(None, alias="lastError")


class MemorySnapshot(BaseModel):
    """Everything the read phase of a chat turn gathers for one user."""

    settings: GlobalSettings
    profile: UserProfile
    profile_exists: bool = False
    emotional_state: EmotionalState = Field(default_factory=EmotionalState)
    long_term: list[str] = Field(default_factory=list)
    summary: MidTermSummary = Field(default_factory=MidTermSummary)
    recent_turns: list[ConversationTurn] = Field(default_factory=list)
    stats: FriendshipStats = Field(default_factory=FriendshipStats)
