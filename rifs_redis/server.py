#!/usr/bin/env python3
"""
RifsRedis Server Entry Point

This is the main entry point for starting a standalone RifsRedis server.

Usage:
    python -m rifs_redis.server                    # Default settings (127.0.0.1:7379)
    python -m rifs_redis.server --port 8080        # Custom port
    python -m rifs_redis.server --host 0.0.0.0     # Custom host
    python -m rifs_redis.server --debug            # Enable debug logging

Environment Variables:
    RIFS_REDIS_HOST       - Server bind address
    RIFS_REDIS_PORT       - Server port
    RIFS_REDIS_DEBUG      - Enable debug mode (true/false)
    RIFS_REDIS_LOG_LEVEL  - Log level when not in debug mode
"""

import argparse
import asyncio
import logging
import sys

from .config.settings import settings
from .network.tcp_server import StoreServer, run_server
from .store.store import KVStore


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="RifsRedis: In-Memory Key-Value Store Server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--host",
        type=str,
        default=settings.HOST,
        help="Host address to bind to",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help="Port number to listen on",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def main(argv=None) -> None:
    """Main entry point for the server."""
    args = parse_args(argv)

    setup_logging(debug=args.debug)
    logger = logging.getLogger(__name__)

    server = StoreServer(host=args.host, port=args.port, store=KVStore())

    logger.info("Starting RifsRedis server")
    logger.info(f"  Host: {args.host}")
    logger.info(f"  Port: {args.port}")
    logger.info(f"  Debug: {args.debug}")

    try:
        asyncio.run(run_server(server=server, handle_signals=True))
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    except Exception as e:
        logger.error(f"Server error: {e}")
        raise
    finally:
        logger.info("Server shutdown complete")


if __name__ == "__main__":
    main()
