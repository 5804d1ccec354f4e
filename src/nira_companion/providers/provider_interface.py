"""Interfaces the provider gateway talks to."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class LLMProvider(Protocol):
    """One text-generation backend in the fallback chain.

    ``messages`` are ``{"role": "user" | "assistant", "content": str}`` dicts
    in chronological order; the system prompt is passed separately.
    Implementations raise ``ProviderFailure`` on timeout, transport error,
    non-success status or an empty completion.
    """

    name: str

    async def complete(
        self,
        system_prompt: str,
        messages: list[dict],
        image: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str: ...


@runtime_checkable
class SearchProvider(Protocol):
    """Web search backend. Returns formatted result text or None."""

    name: str

    async def search(self, query: str) -> str | None: ...
