"""
Async Store Client Module

This module implements the client side of RifsRedis: one persistent
connection, one background read task, and a ResponseDemultiplexer that
pairs every response with the call waiting for it.

Usage:
    client = await StoreClient(port=7379).init()
    await client.set("user", "alice")
    value = await client.get("user")      # "alice"
    await client.terminate()
"""

import asyncio
import logging
from asyncio import StreamReader, StreamWriter
from typing import Optional

from ..config.settings import settings
from ..errors import (
    ConnectionClosedError,
    ProtocolError,
    RequestTimeoutError,
    StoreClientError,
)
from ..protocol.codec import MessageCodec, read_frame
from ..protocol.messages import Request, Response
from .demux import ResponseDemultiplexer

logger = logging.getLogger(__name__)

APP_NAME = "RIFS_REDIS_CLIENT"
SERVER_NAME = "RIFS_REDIS"


class StoreClient:
    """
    Asyncio client for a StoreServer.

    Connection loss is terminal for an instance: once the read loop sees
    EOF or a transport error, every pending and future request fails
    until init() is called again.

    Attributes:
        host: Server address
        port: Server port
        timeout: Default seconds to wait for a response
    """

    def __init__(
            self,
            port: int = None,
            host: str = None,
            retries: int = None,
            interval: float = None,
    ):
        """
        Initialize the client. No connection is made until init().

        Args:
            port: Server port (default from settings)
            host: Server address (default from settings)
            retries: Wait budget in intervals (default GET_RETRIES_COUNT)
            interval: Length of one interval in seconds
                (default GET_RETRIES_INTERVAL)
        """
        self.port = port if port is not None else settings.PORT
        self.host = host if host is not None else settings.HOST
        retries = retries if retries is not None else settings.GET_RETRIES_COUNT
        interval = interval if interval is not None else settings.GET_RETRIES_INTERVAL
        self.timeout = retries * interval
        self.codec = MessageCodec()

        self._reader: Optional[StreamReader] = None
        self._writer: Optional[StreamWriter] = None
        self._read_task: Optional[asyncio.Task] = None
        self._demux = ResponseDemultiplexer()
        self._connected = False
        self.context = f"[{APP_NAME}]:"

    @property
    def address(self) -> str:
        return f"{SERVER_NAME}:{self.host}:{self.port}"

    def is_connected(self) -> bool:
        """Check if the connection is open."""
        return self._connected

    async def init(self) -> "StoreClient":
        """
        Open the connection and start the read loop.

        Returns:
            self, so calls can be chained

        Raises:
            ConnectionClosedError: If the server cannot be reached
        """
        if self._connected:
            return self

        try:
            self._reader, self._writer = await asyncio.open_connection(
                self.host,
                self.port,
                limit=settings.READ_BUFFER_SIZE,
            )
        except OSError as exc:
            logger.error(f"{self.context} Error: {exc}")
            raise ConnectionClosedError(f"cannot connect to {self.address}: {exc}") from exc

        self._demux = ResponseDemultiplexer()
        self._connected = True
        self._read_task = asyncio.create_task(self._read_loop())
        logger.info(f"{self.context} Connected to {self.address}")
        return self

    async def terminate(self) -> None:
        """Close the connection and fail every pending request."""
        if self._writer is None:
            return

        self._connected = False
        task, self._read_task = self._read_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        writer, self._writer = self._writer, None
        self._reader = None
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError):
            pass

        self._demux.fail_all(ConnectionClosedError("connection terminated"))
        logger.info(f"{self.context} Connection to {self.address} terminated!")

    async def set(
            self,
            key: str,
            value: str,
            confirm: bool = False,
            timeout: float = None,
    ) -> bool:
        """
        Store a value under a key.

        By default this is write-and-forget: the request is written and
        the call returns without waiting for the server's answer.

        Args:
            key: The key to store
            value: The value to store
            confirm: Wait for the server to acknowledge the write
            timeout: Seconds to wait when confirm is set

        Returns:
            Without confirm, True if the write was accepted by the
            transport. With confirm, True if the server reported success.
        """
        request = Request.set(key, value)

        if confirm:
            try:
                response = await self._request(request, timeout)
            except StoreClientError as exc:
                logger.error(f"{self.context} SET:<{key}> failed: {exc}")
                return False
            return response.success

        try:
            await self._send(request)
        except ConnectionClosedError as exc:
            logger.error(f"{self.context} SET:<{key}> failed: {exc}")
            return False
        return True

    async def get(self, key: str, timeout: float = None) -> Optional[str]:
        """
        Retrieve the value stored under a key.

        Args:
            key: The key to look up
            timeout: Seconds to wait for the answer (default self.timeout)

        Returns:
            The value, or None when the key is absent, the wait timed
            out, or the connection is closed. Use lookup() to tell
            these apart.
        """
        try:
            response = await self.lookup(key, timeout)
        except RequestTimeoutError as exc:
            logger.warning(f"{self.context} GET:<{key}> timed out: {exc}")
            return None
        except ConnectionClosedError as exc:
            logger.error(f"{self.context} GET:<{key}> failed: {exc}")
            return None
        return response.response

    async def lookup(self, key: str, timeout: float = None) -> Response:
        """
        Retrieve the full GET response for a key.

        Returns:
            The matching Response; success is False if the key is absent

        Raises:
            RequestTimeoutError: If no matching response arrives in time
            ConnectionClosedError: If the connection is closed or lost
        """
        return await self._request(Request.get(key), timeout)

    async def _request(self, request: Request, timeout: Optional[float]) -> Response:
        """Send a request and wait for the response matching it."""
        timeout = self.timeout if timeout is None else timeout
        future = self._demux.register(request)
        try:
            await self._send(request)
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            raise RequestTimeoutError(request.correlation_id, timeout) from None
        finally:
            self._demux.discard(request.correlation_id)

    async def _send(self, request: Request) -> None:
        if not self._connected or self._writer is None or self._writer.is_closing():
            raise ConnectionClosedError(f"not connected to {self.address}")

        try:
            self._writer.write(self.codec.encode_request(request))
            await self._writer.drain()
        except (ConnectionError, OSError) as exc:
            raise ConnectionClosedError(f"write to {self.address} failed: {exc}") from exc

    async def _read_loop(self) -> None:
        """Read responses until EOF and hand each to the demultiplexer."""
        try:
            while True:
                try:
                    data = await read_frame(self._reader)
                    if not data:
                        break
                    response = self.codec.decode_response(data)
                except ProtocolError as exc:
                    logger.warning(f"{self.context} Dropped malformed response: {exc}")
                    continue

                if not self._demux.dispatch(response):
                    logger.debug(
                        f"{self.context} Ignoring unmatched {response.action.value} "
                        f"response {response.correlation_id}"
                    )
        except (ConnectionError, OSError) as exc:
            logger.error(f"{self.context} Error: {exc}")

        # Reached on EOF or transport error; cancellation skips this
        self._connected = False
        self._demux.fail_all(ConnectionClosedError(f"connection to {self.address} closed"))
        if self._writer is not None:
            self._writer.close()
        logger.info(f"{self.context} Connection to {self.address} closed")

    async def __aenter__(self) -> "StoreClient":
        return await self.init()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.terminate()
