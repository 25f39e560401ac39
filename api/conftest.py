"""
Pytest fixtures for the node monitor. The node is faked in-process so no
TrinityChain node is needed.
"""
import asyncio

import pytest

from diagnostic_log import DiagnosticLog
from snapshot_store import SnapshotStore

BASE_TIMESTAMP_MS = 1_700_000_000_000


def build_blocks(count, spacing_seconds=10, difficulty=100, start_index=1):
    """Blocks as the node returns them: newest first, timestamps in ms."""
    blocks = []
    for i in range(count):
        index = start_index + i
        blocks.append({
            "index": index,
            "hash": f"{index:064x}",
            "previous_hash": f"{index - 1:064x}",
            "timestamp": BASE_TIMESTAMP_MS + i * spacing_seconds * 1000,
            "difficulty": difficulty,
            "nonce": index * 7,
            "reward": 50.0,
            "transactions": [{"hash": f"tx{index}-{n}", "amount": 1.0} for n in range(i % 3)],
        })
    return list(reversed(blocks))


class FakeNodeClient:
    """Stands in for NodeClient; each source returns its payload or raises it."""

    def __init__(self, node_url="http://node.test:3000"):
        self.node_url = node_url
        self.delay = 0
        self.calls = []
        self.closed = False
        self.responses = {
            "stats": {"height": 12, "difficulty": 100, "mempool_size": 3, "total_blocks": 12},
            "history": {"blocks": build_blocks(12)},
            "network_info": {"protocol_version": "1.0", "peer_count": 2},
            "peers": {"count": 2, "peers": ["10.0.0.1:3000", "10.0.0.2:3000"]},
            "api_stats": {"total_requests": 10, "successful_requests": 9, "uptime_seconds": 3600,
                          "blocks_mined": 4},
        }

    def set_node_url(self, node_url):
        self.node_url = node_url.rstrip("/")

    async def _respond(self, source):
        self.calls.append(source)
        if self.delay:
            await asyncio.sleep(self.delay)
        response = self.responses[source]
        if isinstance(response, Exception):
            raise response
        return response

    async def get_blockchain_stats(self):
        return await self._respond("stats")

    async def get_blocks(self, limit=50):
        return await self._respond("history")

    async def get_network_info(self):
        return await self._respond("network_info")

    async def get_network_peers(self):
        return await self._respond("peers")

    async def get_api_stats(self):
        return await self._respond("api_stats")

    async def close(self):
        self.closed = True


@pytest.fixture
def blocks():
    return build_blocks


@pytest.fixture
def fake_client():
    return FakeNodeClient()


@pytest.fixture
def store():
    return SnapshotStore(DiagnosticLog())
