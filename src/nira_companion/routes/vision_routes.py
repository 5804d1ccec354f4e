"""Image description route, used for diagnostics and direct vision calls."""

from typing import Awaitable, Callable

from fastapi import APIRouter, Depends
from loguru import logger
from starlette.responses import JSONResponse

from ..memory.exceptions import MalformedInputError, ProviderFailure
from ..providers.gateway import ProviderGateway
from ..schemas.api import VisionRequest


def init_vision_routes(
    gateway: ProviderGateway, current_user: Callable[..., Awaitable[str]]
) -> APIRouter:
    router = APIRouter(tags=["vision"])

    @router.post("/api/vision/describe")
    async def describe(body: VisionRequest, uid: str = Depends(current_user)):
        if not body.image:
            return JSONResponse({"error": "Image is required"}, status_code=400)
        try:
            description = await gateway.describe_image(body.image)
        except MalformedInputError as e:
            return JSONResponse({"error": str(e)}, status_code=400)
        except ProviderFailure as e:
            logger.error(f"[Vision] describe failed for {uid}: {e}")
            return JSONResponse(
                {"error": "Vision provider failed", "details": e.reason},
                status_code=502,
            )
        return JSONResponse({"description": description}, status_code=200)

    return router
