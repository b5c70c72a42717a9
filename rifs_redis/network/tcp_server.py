"""
Async TCP Server Module

This module implements the RifsRedis store server.

Each connection is handled by its own coroutine on a single event loop.
All connections share the server's KVStore, and since every store access
runs on that loop between suspension points, no locking is needed.

Malformed and oversized payloads are logged and dropped; the connection
stays open. Stopping the server closes the listening socket and every
open connection without draining them.
"""

import asyncio
import logging
import signal
import sys
from asyncio import StreamReader, StreamWriter
from typing import Optional, Set

from ..config.settings import settings
from ..errors import ProtocolError
from ..protocol.codec import MessageCodec, read_frame
from ..protocol.messages import Action, Request, Response
from ..store.store import KVStore

logger = logging.getLogger(__name__)

APP_NAME = "RIFS_REDIS"


class StoreServer:
    """
    Asynchronous TCP server exposing a KVStore.

    Features:
    - Non-blocking I/O with asyncio
    - Persistent connections (multiple requests per connection)
    - Exactly one response per decodable request
    - Shared KVStore across all connections

    Usage:
        server = StoreServer(host='127.0.0.1', port=7379)
        await server.start()  # Runs until stopped or cancelled

    Attributes:
        host: Server bind address
        port: Server port number (the real port once bound, if 0 was given)
        store: The KVStore instance shared by all connections
        codec: The MessageCodec used for every connection
    """

    def __init__(
            self,
            host: str = None,
            port: int = None,
            store: KVStore = None,
            name: str = APP_NAME,
    ):
        """
        Initialize the server.

        Args:
            host: Bind address (default from settings)
            port: Port number (default from settings)
            store: KVStore instance (creates new one if not provided)
            name: Service name used in log prefixes
        """
        self.host = host if host is not None else settings.HOST
        self.port = port if port is not None else settings.PORT
        self.store = store if store is not None else KVStore()
        self.codec = MessageCodec()
        self.name = name

        # Server state
        self._server: Optional[asyncio.Server] = None
        self._running = False
        self._started = asyncio.Event()
        self._stopped = asyncio.Event()
        self._writers: Set[StreamWriter] = set()
        self._connection_count = 0
        self._total_requests = 0
        self._malformed_messages = 0

    @property
    def context(self) -> str:
        return f"[{self.name}:{self.port}]:"

    async def handle_client(
            self,
            reader: StreamReader,
            writer: StreamWriter
    ) -> None:
        """
        Handle a single client connection.

        Reads newline-delimited requests until the client disconnects,
        answering each decodable request with exactly one response.

        Args:
            reader: StreamReader for reading from the client
            writer: StreamWriter for writing to the client
        """
        addr = writer.get_extra_info('peername')
        self._connection_count += 1
        self._writers.add(writer)
        logger.debug(f"{self.context} Client connected: {addr}")

        try:
            while True:
                try:
                    data = await read_frame(reader)
                    if not data:
                        logger.debug(f"{self.context} Client disconnected: {addr}")
                        break
                    request = self.codec.decode_request(data)
                except ProtocolError as exc:
                    self._malformed_messages += 1
                    logger.warning(f"{self.context} Dropped malformed message from {addr}: {exc}")
                    continue

                response = self.execute(request)
                writer.write(self.codec.encode_response(response))
                await writer.drain()

        except ConnectionResetError:
            logger.debug(f"{self.context} Connection reset by client: {addr}")
        except Exception as exc:  # Log unexpected errors but keep server alive
            logger.exception(f"{self.context} Error handling client {addr}: {exc}")
        finally:
            self._writers.discard(writer)
            try:
                writer.close()
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass

    def execute(self, request: Request) -> Response:
        """
        Execute a decoded request on the store.

        Args:
            request: The Request to execute

        Returns:
            Response carrying the request's correlation id
        """
        self._total_requests += 1
        logger.info(f"{self.context} {request.raw_action}:<{request.key}>")

        if request.action == Action.SET:
            self.store.set(request.key, request.value)
            response = Response.stored(request)
        elif request.action == Action.GET:
            response = Response.value_response(request, self.store.get(request.key))
        else:
            response = Response.unknown_action(request)

        outcome = "Success" if response.success else "Failed"
        logger.info(f"{self.context} {request.raw_action}:{outcome} => {response.response}")
        return response

    async def start(self) -> None:
        """
        Start the server and begin accepting connections.

        Runs until stop() is called or the task is cancelled; either way
        the server is fully stopped when this returns.

        Example:
            server = StoreServer(port=7379)
            asyncio.run(server.start())
        """
        if self._running:
            return

        self._server = await asyncio.start_server(
            self.handle_client,
            self.host,
            self.port,
            limit=settings.READ_BUFFER_SIZE,
        )
        self._running = True
        self._stopped.clear()

        sockets = self._server.sockets or []
        if sockets:
            self.port = sockets[0].getsockname()[1]
        self._started.set()

        addrs = ', '.join(str(sock.getsockname()) for sock in sockets)
        logger.info(f"{self.context} {self.name} started on {addrs}")

        try:
            await self._stopped.wait()
        except asyncio.CancelledError:
            # Expected during shutdown/fixture cleanup
            logger.debug(f"{self.context} Server start cancelled")
        finally:
            await self.stop()

    async def wait_started(self) -> None:
        """Wait until the listening socket is bound."""
        await self._started.wait()

    async def stop(self) -> None:
        """
        Stop the server.

        Closes the listening socket and every open connection; in-flight
        requests are not drained.
        """
        if self._server is None:
            return

        server, self._server = self._server, None
        self._running = False
        self._started.clear()

        server.close()
        # Server.wait_closed() waits for open connections on Python 3.12+
        for writer in list(self._writers):
            writer.close()
        try:
            await server.wait_closed()
        finally:
            self._stopped.set()
            logger.info(f"{self.context} {self.name} terminated!")

    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running

    def get_stats(self) -> dict:
        """
        Get server statistics.

        Returns:
            Dictionary with server stats including connection counts,
            request counts, and store statistics.
        """
        return {
            "running": self._running,
            "host": self.host,
            "port": self.port,
            "total_connections": self._connection_count,
            "total_requests": self._total_requests,
            "malformed_messages": self._malformed_messages,
            "store_stats": self.store.get_stats(),
        }


async def run_server(
        host: str = None,
        port: int = None,
        server: StoreServer = None,
        handle_signals: bool = False,
) -> None:
    """
    Convenience function to create and run the server.

    Args:
        host: Bind address (default from settings)
        port: Port number (default from settings)
        server: Run this server instead of creating one
        handle_signals: Stop the server on SIGTERM/SIGINT (Unix only)

    Usage:
        asyncio.run(run_server(port=7379))
    """
    if server is None:
        server = StoreServer(host=host, port=port)

    signals = ()
    if handle_signals and sys.platform != 'win32':
        loop = asyncio.get_running_loop()
        signals = (signal.SIGTERM, signal.SIGINT)

        async def shutdown(sig: signal.Signals) -> None:
            """Handle shutdown signal."""
            logger.info(f"Received signal {sig.name}, initiating shutdown...")
            await server.stop()

        for sig in signals:
            loop.add_signal_handler(
                sig,
                lambda s=sig: asyncio.create_task(shutdown(s))
            )

    try:
        await server.start()
    except asyncio.CancelledError:
        logger.info("Server shutdown requested")
    finally:
        await server.stop()
        for sig in signals:
            loop.remove_signal_handler(sig)
