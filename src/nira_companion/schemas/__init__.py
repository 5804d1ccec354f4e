from .api import (
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    MemoryResponse,
    ProToggleRequest,
    SettingsUpdate,
    SuccessResponse,
    TTSRequest,
    TTSResponse,
    VisionRequest,
    VisionResponse,
)

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "ErrorResponse",
    "MemoryResponse",
    "ProToggleRequest",
    "SettingsUpdate",
    "SuccessResponse",
    "TTSRequest",
    "TTSResponse",
    "VisionRequest",
    "VisionResponse",
]
