"""Chat API routes."""

from typing import Awaitable, Callable

from fastapi import APIRouter, Depends
from loguru import logger
from starlette.responses import JSONResponse

from ..memory.exceptions import MalformedInputError, PolicyRejection, StoreFailure
from ..orchestrator.orchestrator import Orchestrator
from ..schemas.api import ChatRequest

PERSISTED_HEADER = "X-Memory-Persisted"


def init_chat_routes(
    orchestrator: Orchestrator, current_user: Callable[..., Awaitable[str]]
) -> APIRouter:
    """
    Create the chat and proactive greeting routes.

    Args:
        orchestrator: Orchestrator handling each message.
        current_user: Dependency resolving the authenticated user id.

    Returns:
        APIRouter: Router with the chat endpoints.
    """
    router = APIRouter(tags=["chat"])

    @router.post("/api/chat")
    async def chat(body: ChatRequest, uid: str = Depends(current_user)):
        """
        Send a message and get the companion's reply.

        Returns:
            200 ``{response}``, 400 for a missing message, 403 ``TRIAL_ENDED``,
            503 ``MAINTENANCE``, 500 when memory could not be read.
        """
        try:
            result = await orchestrator.handle_message(uid, body.message, body.image)
        except MalformedInputError as e:
            return JSONResponse({"error": "Message is required", "detail": str(e)}, status_code=400)
        except PolicyRejection as e:
            return JSONResponse(e.to_payload(), status_code=e.status_code)
        except StoreFailure as e:
            logger.error(f"Chat failed for {uid}: {e}")
            return JSONResponse({"error": "Internal Server Error"}, status_code=500)

        headers = None
        if not result.persisted:
            headers = {PERSISTED_HEADER: "false"}
        return JSONResponse({"response": result.response}, status_code=200, headers=headers)

    @router.get("/api/chat/proactive")
    async def proactive_greeting(uid: str = Depends(current_user)):
        """Greeting when the app opens. Empty until onboarding is complete."""
        try:
            text = await orchestrator.handle_proactive_greeting(uid)
        except StoreFailure as e:
            logger.error(f"Proactive greeting failed for {uid}: {e}")
            return JSONResponse({"error": "Internal Server Error"}, status_code=500)
        return JSONResponse({"response": text}, status_code=200)

    return router
