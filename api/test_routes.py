"""
Tests for the HTTP surface. The FastAPI lifespan runs against a fake node.
"""
import pytest
from fastapi.testclient import TestClient

from main import create_app
from node_client import TransportError


@pytest.fixture
def api(fake_client):
    app = create_app(client=fake_client, auto_start=False)
    with TestClient(app) as client:
        yield client
    assert fake_client.closed


def test_root(api):
    assert api.get("/").json()["status"] == "running"


def test_health_before_first_cycle(api):
    body = api.get("/info/health").json()

    assert body["status"] == "STARTING"
    assert body["polling"]["state"] == "idle"
    assert body["log_counts"]["info"] == 1


def test_trigger_then_read_views(api):
    cycle = api.post("/polling/trigger").json()["cycle"]
    assert cycle["failed"] is False
    assert cycle["applied"] is True

    snapshot = api.get("/info/snapshot").json()
    chart = api.get("/info/chart").json()
    network = api.get("/info/network").json()
    peers = api.get("/info/peers").json()
    view = api.get("/info/view").json()

    assert snapshot["height"] == 12
    assert snapshot["stale"] is False
    assert len(chart["points"]) == 12
    assert len(network["points"]) == 9
    assert network["api_stats"]["success_rate"] == 90.0
    assert peers["peerCount"] == 2
    assert view["snapshot"]["height"] == 12
    assert view["cycle_id"] == cycle["cycle_id"]


def test_failed_trigger_marks_snapshot_stale(api, fake_client):
    api.post("/polling/trigger")
    fake_client.responses["history"] = TransportError("connection refused")

    cycle = api.post("/polling/trigger").json()["cycle"]
    snapshot = api.get("/info/snapshot").json()
    health = api.get("/info/health").json()

    assert cycle["failed"] is True
    assert cycle["sources"]["history"]["error_kind"] == "TransportError"
    assert snapshot["height"] == 12
    assert snapshot["stale"] is True
    assert health["status"] == "ERROR"


def test_logs_filter_and_clear(api, fake_client):
    fake_client.responses["peers"] = TransportError("refused")
    api.post("/polling/trigger")

    errors = api.get("/logs", params={"severity": "error"}).json()
    everything = api.get("/logs").json()

    assert errors["shown"] == 1
    assert "network peers" in errors["entries"][0]["message"]
    assert everything["total"] == everything["shown"] == 3
    assert everything["capacity"] == 100
    assert api.get("/logs", params={"severity": "loud"}).status_code == 400

    api.delete("/logs")

    assert api.get("/logs").json()["total"] == 0


def test_polling_lifecycle_endpoints(api):
    started = api.post("/polling/start").json()
    assert started["polling"]["state"] == "running"
    assert started["cycle"]["cycle_id"] == 1

    updated = api.put("/polling/interval", json={"interval_ms": 60000}).json()
    assert updated["polling"]["interval_ms"] == 60000

    stopped = api.post("/polling/stop").json()
    assert stopped["polling"]["state"] == "idle"


@pytest.mark.parametrize("body", [{"interval_ms": 0}, {"interval_ms": "fast"}, {"interval_ms": None}, {}])
def test_invalid_interval_is_rejected(api, body):
    response = api.put("/polling/interval", json=body)

    assert response.status_code == 400
    assert api.get("/info/health").json()["polling"]["interval_ms"] == 3000


def test_node_url_change(api, fake_client):
    assert api.put("/polling/node", json={"node_url": "ftp://nope"}).status_code == 400

    body = api.put("/polling/node", json={"node_url": "http://other:3000/"}).json()

    assert body["polling"]["node_url"] == "http://other:3000"


def test_blocks_listing_and_search(api):
    assert api.get("/info/blocks").json()["blocks"] == []

    api.post("/polling/trigger")
    listing = api.get("/info/blocks").json()
    by_index = api.get("/info/blocks", params={"q": "10"}).json()
    by_hash = api.get("/info/blocks", params={"q": f"{11:064x}".upper()}).json()
    view = api.get("/info/view").json()

    assert listing["total"] == listing["shown"] == 12
    assert listing["blocks"][0]["index"] == 12
    assert listing["blocks"][0]["time_display"].endswith("UTC")
    assert listing["blocks"][0]["transactions"][0]["hash"] == "tx12-0"
    assert [b["index"] for b in by_index["blocks"]] == [10]
    # index 11 as its own hash, and as the previous hash of block 12
    assert [b["index"] for b in by_hash["blocks"]] == [12, 11]
    assert [b["index"] for b in view["blocks"]] == [b["index"] for b in listing["blocks"]]
