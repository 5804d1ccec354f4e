"""Seed the global settings document.

Run once per deployment: ``nira-init-settings [--config conf.yaml] [--force]``.
Existing settings are left alone unless ``--force`` is given.
"""

import argparse
import asyncio

from loguru import logger

from .config_manager import Config, load_config
from .memory.memory_service import MemoryService
from .memory.models import GlobalSettings
from .memory.storage.sqlite_store import SQLiteDocumentStore

DEFAULT_GLOBAL_PROMPT = (
    "Respond with love and care. Use 'yaar' and 'bhai' often. "
    "Stay emotionally intelligent."
)


def default_settings(config: Config) -> GlobalSettings:
    return GlobalSettings(
        trial_limit_minutes=config.policy_config.default_trial_limit_minutes,
        maintenance_mode=False,
        global_prompt=DEFAULT_GLOBAL_PROMPT,
    )


async def init_settings(config: Config, force: bool = False) -> bool:
    """Create (or with ``force`` overwrite) the settings document.

    Returns:
        True if settings were written.
    """
    store = SQLiteDocumentStore(config.memory_config.storage.sqlite_db_path)
    await store.initialize()
    try:
        memory = MemoryService(store)
        defaults = default_settings(config)
        if force:
            await memory.update_global_settings(defaults.to_document())
            logger.info("Global settings overwritten with defaults")
            return True
        created = await memory.ensure_global_settings(defaults)
        if created:
            logger.info("Global settings initialized")
        else:
            logger.info("Global settings already exist")
        return created
    finally:
        await store.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Initialize NIRA global settings")
    parser.add_argument("--config", default="conf.yaml", help="Path to conf.yaml")
    parser.add_argument(
        "--force", action="store_true", help="Overwrite existing settings"
    )
    args = parser.parse_args()
    asyncio.run(init_settings(load_config(args.config), force=args.force))


if __name__ == "__main__":
    main()
