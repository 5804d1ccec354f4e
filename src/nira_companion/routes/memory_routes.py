"""Memory API routes."""

from typing import Any, Awaitable, Callable

from fastapi import APIRouter, Body, Depends
from loguru import logger
from starlette.responses import JSONResponse

from ..memory.config import MemoryConfig
from ..memory.exceptions import StoreFailure
from ..memory.memory_service import MemoryService
from ..orchestrator.orchestrator import Orchestrator


def init_memory_routes(
    memory: MemoryService,
    orchestrator: Orchestrator,
    config: MemoryConfig,
    current_user: Callable[..., Awaitable[str]],
) -> APIRouter:
    """
    Create routes exposing a user's memory.

    Returns:
        APIRouter: Router with the memory endpoints.
    """
    router = APIRouter(tags=["memory"])

    @router.get("/api/memory")
    async def get_memory(uid: str = Depends(current_user)):
        """
        Profile, emotional state, long-term facts, recent conversation and
        friendship stats for the current user.
        """
        try:
            profile_doc = await memory.get_profile_document(uid)
            profile = await memory.get_profile(uid)
            emotional = await memory.get_emotional_state(uid)
            facts = await memory.get_long_term_facts(uid, config.long_term_limit)
            conversations = await memory.get_recent_turn_documents(
                uid, config.memory_view_turns
            )
            stats = await memory.get_friendship_stats(uid, profile)
        except StoreFailure as e:
            logger.error(f"Memory fetch error for {uid}: {e}")
            return JSONResponse({"error": "Internal Server Error"}, status_code=500)

        return JSONResponse(
            {
                "profile": profile_doc,
                "emotionalState": emotional.to_document(),
                "longTerm": facts,
                "conversations": conversations,
                "stats": stats.model_dump(),
            },
            status_code=200,
        )

    @router.post("/api/memory/update-identity")
    async def update_identity(
        data: Any = Body(...), uid: str = Depends(current_user)
    ):
        """Merge arbitrary identity fields into the profile."""
        if not isinstance(data, dict):
            return JSONResponse({"error": "Expected a JSON object"}, status_code=400)
        try:
            await memory.update_identity(uid, data)
        except StoreFailure as e:
            logger.error(f"Identity update error for {uid}: {e}")
            return JSONResponse({"error": "Internal Server Error"}, status_code=500)
        return JSONResponse({"success": True, "message": "Identity updated"}, status_code=200)

    @router.post("/api/memory/summarize")
    async def summarize(uid: str = Depends(current_user)):
        """Queue a refresh of the rolling conversation summary."""
        await orchestrator.schedule_summarization(uid)
        return JSONResponse(
            {"success": True, "message": "Summarization triggered"}, status_code=200
        )

    return router
