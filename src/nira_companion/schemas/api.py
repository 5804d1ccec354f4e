"""
API request and response schemas.

Pydantic models used by the FastAPI routes and the OpenAPI docs.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Common
# =============================================================================


class ErrorResponse(BaseModel):
    """API error response."""

    error: str = Field(..., description="Error code or message")
    message: Optional[str] = Field(None, description="User facing message")
    link: Optional[str] = Field(None, description="Call-to-action link")

    model_config = {
        "json_schema_extra": {
            "example": {
                "error": "TRIAL_ENDED",
                "message": "Yaar, hamara free trial khatam ho gaya!",
                "link": "https://mdarsalan.vercel.app/",
            }
        }
    }


class SuccessResponse(BaseModel):
    success: bool = Field(..., description="Whether the operation succeeded")


# =============================================================================
# Chat
# =============================================================================


class ChatRequest(BaseModel):
    """Inbound chat message. ``message`` is validated by the orchestrator."""

    message: Optional[str] = Field(None, description="User message text")
    image: Optional[str] = Field(None, description="Optional image data URI")


class ChatResponse(BaseModel):
    response: str = Field(..., description="Companion reply")


# =============================================================================
# Memory
# =============================================================================


class FriendshipStatsResponse(BaseModel):
    days: int
    interactions: int


class MemoryResponse(BaseModel):
    profile: dict[str, Any] = Field(default_factory=dict)
    emotionalState: dict[str, Any] = Field(default_factory=dict)
    longTerm: list[str] = Field(default_factory=list)
    conversations: list[dict[str, Any]] = Field(default_factory=list)
    stats: FriendshipStatsResponse


# =============================================================================
# TTS / Vision
# =============================================================================


class TTSRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    language_code: Optional[str] = Field(None, alias="languageCode")
    speaker: Optional[str] = None


class TTSResponse(BaseModel):
    audios: list[str] = Field(..., description="Base64 audio clips in playback order")


class VisionRequest(BaseModel):
    image: Optional[str] = Field(None, description="Image data URI or base64")


class VisionResponse(BaseModel):
    description: str


# =============================================================================
# Admin
# =============================================================================


class SettingsUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    trial_limit_minutes: Optional[float] = Field(None, ge=0, alias="trialLimitMinutes")
    maintenance_mode: Optional[bool] = Field(None, alias="maintenanceMode")
    global_prompt: Optional[str] = Field(None, alias="globalPrompt")

    def to_patch(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ProToggleRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_pro: bool = Field(..., alias="isPro")
