"""Administrative routes: global settings, paid flag, user listing, health."""

from typing import Awaitable, Callable

from fastapi import APIRouter, Depends, HTTPException
from starlette.responses import JSONResponse

from ..memory.exceptions import MalformedInputError
from ..memory.memory_service import MemoryService
from ..schemas.api import ProToggleRequest, SettingsUpdate


def init_admin_routes(
    memory: MemoryService, require_admin: Callable[..., Awaitable[None]]
) -> APIRouter:
    """
    Create the administrative routes. Every route requires the admin key.

    Returns:
        APIRouter: Router with the admin endpoints.
    """
    router = APIRouter(
        prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)]
    )

    @router.get("/settings")
    async def get_settings():
        settings = await memory.get_global_settings()
        return JSONResponse(settings.to_document(), status_code=200)

    @router.put("/settings")
    async def update_settings(body: SettingsUpdate):
        patch = body.to_patch()
        if not patch:
            return JSONResponse({"error": "No settings to update"}, status_code=400)
        try:
            settings = await memory.update_global_settings(patch)
        except MalformedInputError as e:
            return JSONResponse({"error": str(e)}, status_code=400)
        return JSONResponse(settings.to_document(), status_code=200)

    @router.post("/users/{uid}/pro")
    async def set_pro(uid: str, body: ProToggleRequest):
        await memory.set_pro(uid, body.is_pro)
        return JSONResponse(
            {"success": True, "uid": uid, "isPro": body.is_pro}, status_code=200
        )

    @router.get("/users")
    async def list_users(limit: int = 100):
        if limit < 1 or limit > 1000:
            raise HTTPException(status_code=400, detail="limit must be between 1 and 1000")
        users = await memory.list_profiles(limit)
        return JSONResponse({"users": users, "count": len(users)}, status_code=200)

    @router.get("/status")
    async def provider_status():
        statuses = await memory.get_provider_statuses()
        return JSONResponse(
            {name: status.to_document() for name, status in statuses.items()},
            status_code=200,
        )

    return router
