from ..memory.maintenance import classify_mood
from .background import BackgroundTaskRunner
from .orchestrator import ChatResult, Orchestrator
from .prompt_builder import build_system_prompt

__all__ = [
    "BackgroundTaskRunner",
    "ChatResult",
    "Orchestrator",
    "build_system_prompt",
    "classify_mood",
]
