"""
Route modules for the NIRA companion server.

- **chat_routes**: `/api/chat`, `/api/chat/proactive`
- **memory_routes**: `/api/memory`, `/api/memory/update-identity`,
  `/api/memory/summarize`
- **tts_routes**: `/api/tts`, `/api/tts/status`
- **vision_routes**: `/api/vision/describe`
- **admin_routes**: `/api/admin/settings`, `/api/admin/users`,
  `/api/admin/users/{uid}/pro`, `/api/admin/status`
"""

from .admin_routes import init_admin_routes
from .chat_routes import init_chat_routes
from .memory_routes import init_memory_routes
from .tts_routes import init_tts_routes
from .vision_routes import init_vision_routes

__all__ = [
    "init_admin_routes",
    "init_chat_routes",
    "init_memory_routes",
    "init_tts_routes",
    "init_vision_routes",
]
