"""
homestream CLI - entry point for the music server.

Loads configuration, sets up logging and runs the FastAPI backend under
uvicorn.
"""

import argparse
import sys
from typing import Optional

from loguru import logger

from homestream.core.config import get_config_path, load_config
from homestream.core.logging import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="homestream", description="Self-hosted music streaming server"
    )
    parser.add_argument("--host", help="Bind address (overrides [server].host)")
    parser.add_argument("--port", type=int, help="Port (overrides [server].port)")
    parser.add_argument("--music-dir", help="Music directory (overrides [library].music_dir)")
    parser.add_argument(
        "--show-config-path",
        action="store_true",
        help="Print the configuration file path and exit",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.show_config_path:
        print(get_config_path())
        return 0

    config = load_config()
    if args.host:
        config.server.host = args.host
    if args.port:
        config.server.port = args.port
    if args.music_dir:
        config.library.music_dir = args.music_dir

    log_file = setup_logging(config.logging)
    logger.info(f"Logging to {log_file}")

    try:
        config.streaming.validate()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    if not config.server.password:
        logger.warning("No password configured; uploads and deletes are disabled")

    import uvicorn

    from web.backend.main import create_app

    logger.info(
        f"Serving {config.library.music_dir} on http://{config.server.host}:{config.server.port}"
    )
    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
