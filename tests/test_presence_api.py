"""
Integration tests for the FastAPI surface: the /ws presence channel and the
read-only HTTP endpoints.
"""
import time
import pytest
from fastapi.testclient import TestClient

from presence.core.config import Cfg
from presence.main import create_app


def make_client(**overrides):
    overrides.setdefault("RESET_COUNTDOWN_S", 20)
    overrides.setdefault("COUNTDOWN_TICK_S", 1.0)
    return TestClient(create_app(Cfg(**overrides)))


@pytest.fixture
def client():
    with make_client() as c:
        yield c


def receive_frames(ws, n):
    return [ws.receive_json() for _ in range(n)]


def poll_presence(client, predicate, timeout=2.0):
    """Server-side disconnect handling runs asynchronously to the test thread."""
    deadline = time.monotonic() + timeout
    while True:
        snapshot = client.get("/api/presence").json()
        if predicate(snapshot):
            return snapshot
        if time.monotonic() > deadline:
            raise AssertionError(f"presence never matched, last snapshot: {snapshot}")
        time.sleep(0.02)


def test_connect_receives_count_roster_then_id(client):
    with client.websocket_connect("/ws") as ws:
        count, roster, user_id = receive_frames(ws, 3)

        assert count["type"] == "userCount" and count["data"] == 1
        assert roster["type"] == "userList"
        assert [entry["id"] for entry in roster["data"]] == [1]
        assert user_id["type"] == "userId" and user_id["data"] == 1


def test_roster_updates_reach_remaining_clients(client):
    with client.websocket_connect("/ws") as ws_a:
        receive_frames(ws_a, 3)

        with client.websocket_connect("/ws") as ws_b:
            count_b, roster_b, id_b = receive_frames(ws_b, 3)
            assert id_b["data"] == 2
            assert count_b["data"] == 2

            count_a, roster_a = receive_frames(ws_a, 2)
            assert count_a["data"] == 2
            assert [entry["id"] for entry in roster_a["data"]] == [1, 2]

        # B left; A is told about it
        count_a, roster_a = receive_frames(ws_a, 2)
        assert (count_a["type"], count_a["data"]) == ("userCount", 1)
        assert [entry["id"] for entry in roster_a["data"]] == [1]


def test_ping_gets_pong(client):
    with client.websocket_connect("/ws") as ws:
        receive_frames(ws, 3)
        ws.send_json({"type": "ping"})
        assert ws.receive_json()["type"] == "pong"


def test_last_disconnect_starts_countdown_and_reconnect_cancels(client):
    with client.websocket_connect("/ws") as ws:
        receive_frames(ws, 3)

    snapshot = poll_presence(client, lambda s: s["countdown"]["active"])
    assert snapshot["count"] == 0
    assert snapshot["countdown"]["remaining_seconds"] == 20

    with client.websocket_connect("/ws") as ws:
        cancel, count, roster, user_id = receive_frames(ws, 4)
        assert cancel["type"] == "countdownCancel"
        assert count["data"] == 1
        # Cancelled before expiry, so the sequence continues
        assert user_id["data"] == 2

        snapshot = client.get("/api/presence").json()
        assert snapshot["countdown"]["active"] is False
        assert snapshot["epoch"] == 0


def test_next_client_after_expiry_gets_id_one():
    with make_client(RESET_COUNTDOWN_S=1, COUNTDOWN_TICK_S=0.01) as client:
        with client.websocket_connect("/ws") as ws:
            receive_frames(ws, 3)

        poll_presence(client, lambda s: s["epoch"] == 1 and not s["countdown"]["active"])

        with client.websocket_connect("/ws") as ws:
            *_, user_id = receive_frames(ws, 3)
            assert user_id["data"] == 1


def test_presence_endpoints(client):
    with client.websocket_connect("/ws") as ws:
        receive_frames(ws, 3)

        snapshot = client.get("/api/presence").json()
        assert snapshot["count"] == 1
        assert snapshot["next_id"] == 2
        assert [entry["id"] for entry in snapshot["clients"]] == [1]

        clients = client.get("/api/presence/clients").json()
        assert len(clients) == 1
        assert set(clients[0]) == {"id", "connectionTime"}

        health = client.get("/health").json()
        assert health == {"status": "ok", "connections": 1}


def test_metrics_endpoint(client):
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "presence_active_clients" in response.text
    assert "presence_id_resets_total" in response.text


def test_index_serves_landing_page(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "/ws" in response.text


def test_index_without_static_dir(tmp_path):
    with make_client(STATIC_DIR=str(tmp_path / "missing")) as client:
        response = client.get("/")
        assert response.status_code == 200
        assert "message" in response.json()
