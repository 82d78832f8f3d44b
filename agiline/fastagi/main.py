import argparse
import asyncio
import logging
import sys
from pathlib import Path

from agiline.fastagi.config import CONFIG_PATH, Settings, get_settings
from agiline.fastagi.server import FastAGIServer, load_handler

logger = logging.getLogger(__name__)


def load_settings(config_path: Path, create_default: bool = False) -> Settings:
    """Load settings, writing the defaults first when asked to and the file is missing."""
    if not config_path.exists():
        if not create_default:
            logger.error("Config file not found: %s", config_path)
            sys.exit(1)
        logger.info("Writing default config to %s", config_path)

    try:
        return get_settings(config_path)
    except Exception as e:
        logger.error("Failed to load config file %s: %s", config_path, e)
        sys.exit(1)


def main() -> None:
    parser = argparse.ArgumentParser(description="agiline FastAGI server")
    parser.add_argument(
        "--config",
        type=Path,
        default=CONFIG_PATH,
        help=f"Path to config file (default: {CONFIG_PATH})",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log AGI traffic and environment variables",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    settings = load_settings(args.config, create_default=args.config == CONFIG_PATH)
    logging.getLogger().setLevel(logging.DEBUG if args.debug else settings.log_level.upper())

    try:
        handler = load_handler(settings.server.handler)
    except (ImportError, AttributeError, ValueError) as e:
        logger.error("Failed to load handler %s: %s", settings.server.handler, e)
        sys.exit(1)

    server = FastAGIServer(settings, handler)
    try:
        asyncio.run(server.serve_forever())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
