"""
NIRA companion test fixtures.

Deterministic fake providers, a manual clock and real aiosqlite stores in
temporary directories.
"""

from __future__ import annotations

import os
import random
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from nira_companion.config_manager.llm import LLMConfig
from nira_companion.config_manager.persona import PersonaConfig
from nira_companion.memory.config import MemoryConfig
from nira_companion.memory.exceptions import ProviderFailure
from nira_companion.memory.memory_service import MemoryService
from nira_companion.memory.storage.sqlite_store import SQLiteDocumentStore
from nira_companion.orchestrator.background import BackgroundTaskRunner
from nira_companion.orchestrator.orchestrator import Orchestrator
from nira_companion.policy.policy_engine import PolicyEngine
from nira_companion.providers.gateway import ProviderGateway

FALLBACKS = ["fallback one", "fallback two", "fallback three"]


class ManualClock:
    """Store clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, minutes: float = 0, days: float = 0) -> None:
        self.current += timedelta(minutes=minutes, days=days)


class FakeProvider:
    """LLMProvider double.

    ``handler(system_prompt, messages)`` computes the reply; ``fail`` makes
    every call raise ProviderFailure.
    """

    def __init__(
        self,
        name: str,
        reply: str = "fake reply",
        fail: bool = False,
        handler: Callable[[str, list[dict]], str] | None = None,
    ):
        self.name = name
        self.reply = reply
        self.fail = fail
        self.handler = handler
        self.calls: list[dict] = []

    async def complete(
        self,
        system_prompt,
        messages,
        image=None,
        max_tokens=None,
        temperature=None,
    ) -> str:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "messages": [dict(m) for m in messages],
                "image": image,
                "max_tokens": max_tokens,
                "temperature": temperature,
            }
        )
        if self.fail:
            raise ProviderFailure(self.name, "simulated outage")
        if self.handler is not None:
            return self.handler(system_prompt, messages)
        return self.reply


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture
async def store(clock):
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = os.path.join(tmpdir, "test.db")
        s = SQLiteDocumentStore(db_path=db_path, clock=clock)
        await s.initialize()
        yield s
        await s.close()


@pytest.fixture
def memory(store):
    return MemoryService(store)


@pytest.fixture
def primary():
    return FakeProvider("primary", reply="primary reply")


@pytest.fixture
def secondary():
    return FakeProvider("secondary", reply="secondary reply")


@pytest.fixture
def gateway(primary, secondary):
    return ProviderGateway(
        [primary, secondary],
        fallback_responses=FALLBACKS,
        llm_config=LLMConfig(providers=[]),
        rng=random.Random(0),
    )


@pytest.fixture
def persona():
    return PersonaConfig()


@pytest.fixture
def memory_config():
    return MemoryConfig()


@pytest.fixture
def background():
    return BackgroundTaskRunner(inline=True)


@pytest.fixture
def orchestrator(memory, gateway, persona, memory_config, background):
    return Orchestrator(
        memory,
        gateway,
        PolicyEngine(persona=persona),
        persona=persona,
        memory_config=memory_config,
        background=background,
    )


@pytest.fixture
async def named_user(memory):
    """A user who finished onboarding."""
    await memory.merge_profile("user-1", {"name": "Asha", "setupStep": "COMPLETE"})
    return "user-1"
