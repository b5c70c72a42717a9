"""
Integration Tests

End-to-end tests that drive the server through both the wire protocol
and the StoreClient.

Run with: python -m pytest tests/test_integration.py -v
"""

import asyncio
import json

import pytest

from rifs_redis.network.client import StoreClient


@pytest.mark.asyncio
@pytest.mark.integration
class TestEndToEnd:
    """End-to-end integration tests."""

    async def test_set_get_exchange_on_the_wire(self, server, raw_factory, request_factory):
        """SET user alice, then GET user, with exact response shapes."""
        async with raw_factory() as conn:
            stored = await conn.request(request_factory("SET", "user", "alice", "X"))
            fetched = await conn.request(request_factory("GET", "user", correlation_id="Y"))

        assert stored == {
            "action": "SET",
            "response": "{\"user\":\"alice\"}",
            "success": True,
            "correlationId": "X",
        }
        assert fetched == {
            "action": "GET",
            "response": "alice",
            "success": True,
            "correlationId": "Y",
        }

    async def test_set_get_exchange_through_client(self, client):
        assert await client.set("user", "alice") is True
        assert await client.get("user") == "alice"

    async def test_complete_workflow(self, client, server):
        for i, name in enumerate(["alice", "bob", "charlie"], start=1):
            assert await client.set(f"user:{i}", name) is True

        assert await client.get("user:1") == "alice"
        assert await client.get("user:2") == "bob"
        assert await client.get("user:3") == "charlie"
        assert await client.get("user:99") is None

        await client.set("user:1", "alice_updated")
        assert await client.get("user:1") == "alice_updated"

        stats = server.get_stats()["store_stats"]
        assert stats["total_keys"] == 3

    async def test_clients_share_state(self, server):
        async with StoreClient(port=server.port, host="127.0.0.1") as first:
            async with StoreClient(port=server.port, host="127.0.0.1") as second:
                await first.set("shared:key", "from-first", confirm=True)
                assert await second.get("shared:key") == "from-first"

                await second.set("shared:key", "from-second", confirm=True)
                assert await first.get("shared:key") == "from-second"

    async def test_unknown_action_then_client_traffic(self, server, raw_factory, request_factory, client):
        async with raw_factory() as conn:
            reply = await conn.request(request_factory("FLUSHALL", "", correlation_id="F"))
            assert reply["success"] is False

        await client.set("still", "working")
        assert await client.get("still") == "working"

    async def test_json_values_round_trip(self, client):
        value = json.dumps({"nested": {"list": [1, 2, 3]}, "text": "a\nb"})
        await client.set("doc", value)
        assert json.loads(await client.get("doc")) == json.loads(value)


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.slow
class TestStress:
    """Stress tests for the system."""

    async def test_many_concurrent_gets_one_connection(self, client):
        for i in range(200):
            await client.set(f"key:{i}", f"value:{i}")

        results = await asyncio.gather(*(client.get(f"key:{i}") for i in range(200)))
        assert results == [f"value:{i}" for i in range(200)]

    async def test_many_clients(self, server):
        async def worker(n: int) -> bool:
            async with StoreClient(port=server.port, host="127.0.0.1") as cli:
                for i in range(20):
                    await cli.set(f"w{n}:{i}", str(i))
                values = await asyncio.gather(*(cli.get(f"w{n}:{i}") for i in range(20)))
                return values == [str(i) for i in range(20)]

        assert all(await asyncio.gather(*(worker(n) for n in range(10))))
