"""
FastAPI application factory for the NIRA companion server.

Creates the application with CORS, the route modules and the startup /
shutdown logic of the service context.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.responses import PlainTextResponse

from .auth import (
    DevTokenVerifier,
    RejectAllVerifier,
    TokenVerifier,
    make_admin_dependency,
    make_user_dependency,
)
from .config_manager import Config
from .routes import (
    init_admin_routes,
    init_chat_routes,
    init_memory_routes,
    init_tts_routes,
    init_vision_routes,
)
from .service_context import ServiceContext


def _select_verifier(config: Config, verifier: TokenVerifier | None) -> TokenVerifier:
    if verifier is not None:
        return verifier
    if config.system_config.allow_dev_tokens:
        logger.warning("Dev token verifier enabled: bearer tokens are used as user ids")
        return DevTokenVerifier()
    logger.warning("No token verifier configured, authenticated routes will reject requests")
    return RejectAllVerifier()


def create_app(
    config: Config | None = None,
    context: ServiceContext | None = None,
    token_verifier: TokenVerifier | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Server configuration, defaults are used when omitted.
        context: Pre-built services (tests inject fakes here).
        token_verifier: Verifies bearer tokens and returns user ids.
    """
    config = config or (context.config if context else Config())
    context = context or ServiceContext.build(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await context.start()
        logger.info("NIRA companion server started")
        try:
            yield
        finally:
            await context.close()
            logger.info("NIRA companion server stopped")

    app = FastAPI(title="NIRA Companion Server", lifespan=lifespan)
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.system_config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Memory-Persisted"],
    )

    current_user = make_user_dependency(_select_verifier(config, token_verifier))
    require_admin = make_admin_dependency(config.system_config.admin_api_key)

    app.include_router(init_chat_routes(context.orchestrator, current_user))
    app.include_router(
        init_memory_routes(
            context.memory, context.orchestrator, config.memory_config, current_user
        )
    )
    app.include_router(init_tts_routes(context.tts, current_user))
    app.include_router(init_vision_routes(context.gateway, current_user))
    app.include_router(init_admin_routes(context.memory, require_admin))

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "NIRA Backend is running. ✅"

    return app
