from .fact_parser import parse_fact_list
from .gateway import ProviderGateway, parse_data_uri, window_history
from .openai_compatible import OpenAICompatibleProvider
from .provider_factory import PROVIDER_FACTORIES, create_provider
from .provider_interface import LLMProvider, SearchProvider
from .search import TavilySearchProvider, should_search

__all__ = [
    "LLMProvider",
    "OpenAICompatibleProvider",
    "PROVIDER_FACTORIES",
    "ProviderGateway",
    "SearchProvider",
    "TavilySearchProvider",
    "create_provider",
    "parse_data_uri",
    "parse_fact_list",
    "should_search",
    "window_history",
]
