"""Per-user companion memory: document store, typed facade and maintenance jobs."""

from .config import MemoryConfig
from .exceptions import (
    AuthenticationError,
    BackgroundJobFailure,
    CompanionError,
    MaintenanceModeError,
    MalformedInputError,
    PolicyRejection,
    ProviderFailure,
    StoreFailure,
    TrialEndedError,
)
from .maintenance import MemoryMaintenance, classify_mood
from .memory_service import MemoryService
from .models import (
    ConversationTurn,
    EmotionalState,
    FriendshipStats,
    GlobalSettings,
    LongTermFact,
    MemorySnapshot,
    MidTermSummary,
    OnboardingState,
    ProviderStatus,
    TurnRole,
    UserProfile,
)
from .storage import SERVER_TIMESTAMP, Increment, SQLiteDocumentStore

__all__ = [
    "AuthenticationError",
    "BackgroundJobFailure",
    "CompanionError",
    "ConversationTurn",
    "EmotionalState",
    "FriendshipStats",
    "GlobalSettings",
    "Increment",
    "LongTermFact",
    "MaintenanceModeError",
    "MalformedInputError",
    "MemoryConfig",
    "MemoryMaintenance",
    "MemoryService",
    "MemorySnapshot",
    "MidTermSummary",
    "OnboardingState",
    "PolicyRejection",
    "ProviderFailure",
    "ProviderStatus",
    "SERVER_TIMESTAMP",
    "SQLiteDocumentStore",
    "StoreFailure",
    "TrialEndedError",
    "TurnRole",
    "UserProfile",
    "classify_mood",
]
