"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import asyncio
import json
import socket
from contextlib import asynccontextmanager, closing
from typing import AsyncGenerator, AsyncIterator, Callable

import pytest
import pytest_asyncio

from rifs_redis.network.client import StoreClient
from rifs_redis.network.tcp_server import StoreServer
from rifs_redis.protocol.codec import MessageCodec
from rifs_redis.protocol.messages import Response
from rifs_redis.store.store import KVStore


def find_free_port() -> int:
    """Find an available port for testing."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# ============================================================================
# Store / Protocol Fixtures
# ============================================================================

@pytest.fixture
def store() -> KVStore:
    """Create a fresh KVStore instance."""
    return KVStore()


@pytest.fixture
def codec() -> MessageCodec:
    """Create a MessageCodec instance."""
    return MessageCodec()


# ============================================================================
# Server Fixtures
# ============================================================================

@pytest.fixture
def server_port() -> int:
    """Get a free port for server testing."""
    return find_free_port()


@pytest_asyncio.fixture
async def server(server_port: int) -> AsyncGenerator[StoreServer, None]:
    """
    Create and start a server instance for testing.

    This fixture:
    1. Creates a StoreServer on a random free port
    2. Starts it in a background task
    3. Yields the server once it is listening
    4. Cleans up after the test
    """
    srv = StoreServer(host='127.0.0.1', port=server_port)

    server_task = asyncio.create_task(srv.start())
    await asyncio.wait_for(srv.wait_started(), timeout=5)

    yield srv

    await srv.stop()
    server_task.cancel()
    try:
        await server_task
    except asyncio.CancelledError:
        pass


@asynccontextmanager
async def _serve(handler) -> AsyncIterator[int]:
    srv = await asyncio.start_server(handler, '127.0.0.1', 0)
    port = srv.sockets[0].getsockname()[1]
    try:
        yield port
    finally:
        srv.close()
        await srv.wait_closed()


@pytest_asyncio.fixture
async def silent_server_port() -> AsyncGenerator[int, None]:
    """Port of a server that reads requests and never answers."""
    async def handler(reader, writer):
        while await reader.readline():
            pass
        writer.close()

    async with _serve(handler) as port:
        yield port


@pytest_asyncio.fixture
async def reversing_server_port(codec: MessageCodec) -> AsyncGenerator[int, None]:
    """
    Port of a server that answers GET requests in batches of two,
    in reverse order of arrival, with "value-of-<key>" as the value.
    """
    async def handler(reader, writer):
        batch = []
        while True:
            data = await reader.readline()
            if not data:
                break
            batch.append(codec.decode_request(data))
            if len(batch) == 2:
                for request in reversed(batch):
                    response = Response.value_response(request, f"value-of-{request.key}")
                    writer.write(codec.encode_response(response))
                await writer.drain()
                batch = []
        writer.close()

    async with _serve(handler) as port:
        yield port


# ============================================================================
# Client Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def client(server: StoreServer) -> AsyncGenerator[StoreClient, None]:
    """A StoreClient connected to the test server, 2s response window."""
    cli = StoreClient(port=server.port, host='127.0.0.1', retries=20, interval=0.1)
    await cli.init()

    yield cli

    await cli.terminate()


class RawConnection:
    """
    Helper for wire-level testing.

    Sends JSON lines as-is and reads decoded JSON lines back.

    Usage:
        async with RawConnection('127.0.0.1', port) as conn:
            reply = await conn.request({"action": "GET", ...})
    """

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port
        self.reader = None
        self.writer = None

    async def connect(self) -> None:
        self.reader, self.writer = await asyncio.open_connection(self.host, self.port)

    async def disconnect(self) -> None:
        if self.writer:
            self.writer.close()
            try:
                await self.writer.wait_closed()
            except (ConnectionError, OSError):
                pass

    async def send_raw(self, data: bytes) -> None:
        self.writer.write(data)
        await self.writer.drain()

    async def read_message(self, timeout: float = 2.0) -> dict:
        line = await asyncio.wait_for(self.reader.readline(), timeout=timeout)
        return json.loads(line)

    async def request(self, message: dict) -> dict:
        """Send one JSON message and return the decoded reply."""
        await self.send_raw(json.dumps(message).encode() + b"\n")
        return await self.read_message()

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()


@pytest.fixture
def raw_factory(server: StoreServer) -> Callable[[], RawConnection]:
    """
    Factory fixture to create raw wire connections to the test server.

    Usage:
        async def test_something(raw_factory):
            async with raw_factory() as conn:
                reply = await conn.request({...})
    """
    def factory() -> RawConnection:
        return RawConnection('127.0.0.1', server.port)
    return factory


def make_request(action: str, key: str, value: str = "", correlation_id: str = "cid") -> dict:
    return {"action": action, "key": key, "value": value, "correlationId": correlation_id}


@pytest.fixture
def request_factory() -> Callable[..., dict]:
    """Build wire-level request dicts."""
    return make_request


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
