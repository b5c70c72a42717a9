#!/usr/bin/env python3
"""
Interactive Client for RifsRedis

A small command-line shell for manually poking at a RifsRedis server.

Usage:
    rifs-redis-cli                  # Connect to 127.0.0.1:7379
    rifs-redis-cli --host 1.2.3.4   # Connect to specific host
    rifs-redis-cli --port 8080      # Connect to specific port

Commands:
    SET <key> <value>   - Store a value (the value may contain spaces)
    GET <key>           - Retrieve a value
    help                - Show this help
    status              - Show connection status
    exit                - Exit client
"""

import argparse
import asyncio
import sys
from typing import List, Tuple

from .config.settings import settings
from .errors import ConnectionClosedError, RequestTimeoutError
from .network.client import StoreClient

HELP = """
RifsRedis Commands:
-------------------
  SET <key> <value>   Store a value under a key
  GET <key>           Retrieve the value for a key

Client Commands:
----------------
  help                Show this help message
  status              Show connection status
  exit                Exit the client
"""


class CommandError(ValueError):
    """Raised for input lines that are not valid commands."""


def parse_line(line: str) -> Tuple[str, List[str]]:
    """
    Parse one line of input into a command and its arguments.

    Store commands are case-insensitive and returned upper-case; client
    commands are returned lower-case.

    Examples:
        >>> parse_line("set greeting hello world")
        ('SET', ['greeting', 'hello world'])
        >>> parse_line("GET greeting")
        ('GET', ['greeting'])

    Raises:
        CommandError: If the line is empty or malformed
    """
    parts = line.strip().split(None, 2)
    if not parts:
        raise CommandError("empty command")

    name = parts[0].upper()
    if name == "SET":
        if len(parts) < 3:
            raise CommandError("usage: SET <key> <value>")
        return name, parts[1:]
    if name == "GET":
        if len(parts) != 2:
            raise CommandError("usage: GET <key>")
        return name, parts[1:]

    name = name.lower()
    if name in ("help", "status", "exit", "quit") and len(parts) == 1:
        return name, []
    raise CommandError(f"unknown command: {parts[0]}")


async def run_shell(client: StoreClient) -> None:
    """Read commands from stdin until exit or EOF."""
    loop = asyncio.get_running_loop()

    while True:
        try:
            line = await loop.run_in_executor(None, input, ">>> ")
        except EOFError:
            print("\nGoodbye!")
            return

        if not line.strip():
            continue

        try:
            command, args = parse_line(line)
        except CommandError as exc:
            print(f"ERROR: {exc}")
            continue

        if command == "help":
            print(HELP)
        elif command == "status":
            status = "Connected" if client.is_connected() else "Disconnected"
            print(f"Status: {status}")
            print(f"Server: {client.host}:{client.port}")
        elif command in ("exit", "quit"):
            print("Goodbye!")
            return
        elif command == "SET":
            stored = await client.set(args[0], args[1], confirm=True)
            print("OK" if stored else "ERROR: not stored")
        elif command == "GET":
            try:
                response = await client.lookup(args[0])
            except (RequestTimeoutError, ConnectionClosedError) as exc:
                print(f"ERROR: {exc}")
                continue
            print(response.response if response.success else "(nil)")


async def run(host: str, port: int, timeout: float) -> int:
    client = StoreClient(port=port, host=host, retries=1, interval=timeout)
    try:
        await client.init()
    except ConnectionClosedError as exc:
        print(f"Failed to connect: {exc}")
        print(f"  Try: rifs-redis --port {port}")
        return 1

    print("Connected! Type 'help' for commands.\n")
    try:
        await run_shell(client)
    finally:
        await client.terminate()
    return 0


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(
        description="Interactive client for RifsRedis",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--host", type=str, default=settings.HOST, help="Server host")
    parser.add_argument("--port", type=int, default=settings.PORT, help="Server port")
    parser.add_argument(
        "--timeout",
        type=float,
        default=settings.response_timeout,
        help="Seconds to wait for each response",
    )
    args = parser.parse_args(argv)

    print("RifsRedis Client")
    print("================")
    print(f"Connecting to {args.host}:{args.port}...")

    try:
        sys.exit(asyncio.run(run(args.host, args.port, args.timeout)))
    except KeyboardInterrupt:
        print("\n\nInterrupted. Goodbye!")


if __name__ == "__main__":
    main()
