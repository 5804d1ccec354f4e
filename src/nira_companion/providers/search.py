"""Web search provider and the search trigger heuristic."""

from __future__ import annotations

import httpx
from loguru import logger

from ..config_manager.llm import DEFAULT_SEARCH_KEYWORDS, SearchConfig
from ..memory.exceptions import ProviderFailure


def should_search(
    message: str,
    keywords: list[str] | None = None,
    min_length: int = 5,
) -> bool:
    """True when the message looks like it needs fresh information."""
    if not message or len(message) <= min_length:
        return False
    lowered = message.lower()
    return any(k.lower() in lowered for k in (keywords or DEFAULT_SEARCH_KEYWORDS))


def format_results(results: list[dict]) -> str | None:
    lines = []
    for item in results:
        if not isinstance(item, dict):
            continue
        title = item.get("title") or "Result"
        url = item.get("url") or ""
        content = str(item.get("content") or "").strip()
        lines.append(f"[{title}]({url}): {content}")
    return "\n".join(lines) if lines else None


class TavilySearchProvider:
    """Tavily search API client."""

    name = "tavily"

    def __init__(self, config: SearchConfig, client: httpx.AsyncClient | None = None):
        self._config = config
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._config.enabled and bool(self._config.api_key)

    async def search(self, query: str) -> str | None:
        if not self.enabled:
            return None

        payload = {
            "api_key": self._config.api_key,
            "query": query,
            "search_depth": self._config.search_depth,
            "max_results": self._config.max_results,
        }
        try:
            if self._client is not None:
                response = await self._client.post(
                    self._config.base_url,
                    json=payload,
                    timeout=self._config.timeout_seconds,
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(
                        self._config.base_url,
                        json=payload,
                        timeout=self._config.timeout_seconds,
                    )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ProviderFailure(
                self.name, f"HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderFailure(self.name, str(e) or type(e).__name__) from e

        if not isinstance(data, dict) or not isinstance(data.get("results") or [], list):
            raise ProviderFailure(self.name, "unexpected response shape")

        results = data.get("results") or []
        logger.debug(f"[Search] {len(results)} result(s) for {query[:40]!r}")
        return format_results(results)
