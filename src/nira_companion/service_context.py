"""Container for the long-lived services one server process uses."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from .config_manager import Config
from .memory.memory_service import MemoryService
from .memory.storage.sqlite_store import SQLiteDocumentStore
from .orchestrator.background import BackgroundTaskRunner
from .orchestrator.orchestrator import Orchestrator
from .policy.policy_engine import PolicyEngine
from .providers.gateway import ProviderGateway
from .tts.tts_factory import create_tts_engine
from .tts.tts_interface import TTSInterface
from .tts.tts_service import TTSService


@dataclass
class ServiceContext:
    config: Config
    store: SQLiteDocumentStore
    memory: MemoryService
    gateway: ProviderGateway
    policy: PolicyEngine
    background: BackgroundTaskRunner
    orchestrator: Orchestrator
    tts: TTSService

    @classmethod
    def build(
        cls,
        config: Config,
        store: SQLiteDocumentStore | None = None,
        gateway: ProviderGateway | None = None,
        tts_engine: TTSInterface | None = None,
        background: BackgroundTaskRunner | None = None,
    ) -> "ServiceContext":
        """Wire every service from ``config``; injected parts win."""
        store = store or SQLiteDocumentStore(config.memory_config.storage.sqlite_db_path)
        memory = MemoryService(store)

        if gateway is None:
            gateway = ProviderGateway.from_config(
                config.llm_config,
                config.search_config,
                config.persona_config.fallback_responses,
                vision_prompt=config.persona_config.vision_prompt,
                status_recorder=memory.record_provider_status,
            )

        policy = PolicyEngine(config.policy_config, config.persona_config)
        background = background or BackgroundTaskRunner()
        orchestrator = Orchestrator(
            memory,
            gateway,
            policy,
            persona=config.persona_config,
            memory_config=config.memory_config,
            background=background,
        )
        tts = TTSService(
            tts_engine or create_tts_engine(config.tts_config), config.tts_config
        )
        logger.info(
            f"Service context ready (providers: {', '.join(gateway.provider_names) or 'none'})"
        )
        return cls(
            config=config,
            store=store,
            memory=memory,
            gateway=gateway,
            policy=policy,
            background=background,
            orchestrator=orchestrator,
            tts=tts,
        )

    async def start(self) -> None:
        await self.store.initialize()

    async def close(self) -> None:
        await self.background.drain(timeout=5)
        await self.background.shutdown()
        await self.store.close()
