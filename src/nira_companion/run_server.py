import argparse
import sys

import uvicorn
from loguru import logger

from .config_manager import load_config
from .server import create_app


def init_logger(console_log_level: str = "INFO") -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=console_log_level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>",
        colorize=True,
    )
    logger.add(
        "logs/debug_{time:YYYY-MM-DD}.log",
        rotation="10 MB",
        retention="30 days",
        level="DEBUG",
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}",
        backtrace=True,
        diagnose=True,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="NIRA companion server")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--config", default="conf.yaml", help="Path to the YAML configuration file"
    )
    return parser.parse_args(argv)


def run(console_log_level: str, config_path: str) -> None:
    init_logger(console_log_level)
    logger.info("Starting NIRA companion server")

    config = load_config(config_path)
    app = create_app(config)

    server_config = config.system_config
    logger.info(f"Listening on {server_config.host}:{server_config.port}")
    uvicorn.run(
        app,
        host=server_config.host,
        port=server_config.port,
        log_level=console_log_level.lower(),
    )


def main() -> None:
    args = parse_args()
    console_log_level = "DEBUG" if args.verbose else "INFO"
    if args.verbose:
        logger.info("Running in verbose mode")
    run(console_log_level=console_log_level, config_path=args.config)


if __name__ == "__main__":
    main()
