"""Text-to-speech API routes."""

from typing import Awaitable, Callable

from fastapi import APIRouter, Depends
from loguru import logger
from starlette.responses import JSONResponse

from ..memory.exceptions import MalformedInputError, ProviderFailure
from ..schemas.api import TTSRequest
from ..tts.tts_service import TTSService


def init_tts_routes(
    tts_service: TTSService, current_user: Callable[..., Awaitable[str]]
) -> APIRouter:
    router = APIRouter(tags=["tts"])

    @router.post("/api/tts")
    async def synthesize(body: TTSRequest, uid: str = Depends(current_user)):
        """
        Synthesize speech for a reply.

        Returns:
            ``{audios: [...]}`` with one base64 clip per chunk, in order.
        """
        logger.info(
            f"[TTS REQUEST] speaker={body.speaker}, lang={body.language_code}, "
            f"text={(body.text or '')[:20]!r}"
        )
        try:
            audios = await tts_service.synthesize(
                body.text or "", body.language_code, body.speaker
            )
        except MalformedInputError as e:
            return JSONResponse({"error": str(e)}, status_code=400)
        except ProviderFailure as e:
            logger.error(f"[TTS ERROR] {e}")
            return JSONResponse(
                {"error": "Failed to generate speech", "details": e.reason},
                status_code=502,
            )
        return JSONResponse({"audios": audios}, status_code=200)

    @router.get("/api/tts/status")
    async def tts_status():
        return JSONResponse(tts_service.describe(), status_code=200)

    return router
