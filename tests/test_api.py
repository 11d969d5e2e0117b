"""Tests for the HTTP and WebSocket transport."""

import anyio
import pytest
from fastapi.testclient import TestClient

import api
from api import app
from core.connections import ConnectionManager
from core.universe import Universe


class SlowWebSocket:
    """Fake socket whose sends yield to the event loop."""

    def __init__(self):
        self.sent: list[dict] = []

    async def send_json(self, data):
        await anyio.sleep(0)
        self.sent.append(data)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def join(ws):
    """Read the three frames every new connection receives."""
    init = ws.receive_json()
    update = ws.receive_json()
    notification = ws.receive_json()

    assert init["type"] == "universe_init"
    assert update["type"] == "cluster_update"
    assert notification["type"] == "cluster_notification"
    assert notification["data"]["type"] == "join"
    return init["data"], update["data"]


class TestRestEndpoints:
    def test_api_info(self, client):
        response = client.get("/api")

        assert response.status_code == 200
        assert response.json()["name"] == "GravityChat"

    def test_status_empty(self, client):
        status = client.get("/status").json()

        assert status["user_count"] == 0
        assert status["cluster_count"] == 0
        assert status["connection_count"] == 0
        assert status["group_count"] == 0
        assert status["visibility_radius"] == 150

    def test_unknown_cluster_and_user(self, client):
        assert client.get("/clusters/nope").status_code == 404
        assert client.get("/users/nope").status_code == 404
        assert client.get("/clusters").json() == []


class TestWebSocketLifecycle:
    def test_first_connection_founds_cluster(self, client):
        with client.websocket_connect("/ws") as ws:
            me, members = join(ws)

            assert members == [me]
            assert me["cluster_id"]

            user = client.get(f"/users/{me['id']}").json()
            assert user == me

            cluster = client.get(f"/clusters/{me['cluster_id']}").json()
            assert cluster["center_x"] == me["x"]
            assert cluster["center_y"] == me["y"]
            assert [m["id"] for m in cluster["members"]] == [me["id"]]

            assert client.get("/status").json()["user_count"] == 1

    def test_second_connection_joins_and_leaves(self, client):
        with client.websocket_connect("/ws") as first:
            alice, _ = join(first)

            with client.websocket_connect("/ws") as second:
                bob, members = join(second)

                assert bob["cluster_id"] == alice["cluster_id"]
                assert {m["id"] for m in members} == {alice["id"], bob["id"]}

                update = first.receive_json()
                assert update["type"] == "cluster_update"
                assert len(update["data"]) == 2
                joined = first.receive_json()
                assert joined["data"] == {"type": "join", "id": bob["id"], "name": bob["name"]}

            left = first.receive_json()
            assert left["type"] == "cluster_notification"
            assert left["data"] == {"type": "leave", "id": bob["id"], "name": bob["name"]}

            update = first.receive_json()
            assert update["type"] == "cluster_update"
            assert [m["id"] for m in update["data"]] == [alice["id"]]

            status = client.get("/status").json()
            assert status["user_count"] == 1
            assert status["largest_cluster"] == 1
            assert client.get(f"/users/{bob['id']}").status_code == 404


class TestMessaging:
    def test_cluster_and_private_messages(self, client):
        with client.websocket_connect("/ws") as first:
            alice, _ = join(first)

            with client.websocket_connect("/ws") as second:
                bob, _ = join(second)
                # Alice also sees Bob arrive
                first.receive_json()
                first.receive_json()

                second.send_json(
                    {"type": "cluster_message", "data": {"cluster_id": bob["cluster_id"], "message": "hello"}}
                )
                for ws in (first, second):
                    frame = ws.receive_json()
                    assert frame == {
                        "type": "receive_cluster_message",
                        "data": {"sender_id": bob["id"], "sender_name": bob["name"], "message": "hello"},
                    }

                first.send_json({"type": "private_message", "data": {"target_id": bob["id"], "message": "psst"}})

                received = second.receive_json()
                assert received["type"] == "receive_private_message"
                assert received["data"]["sender_id"] == alice["id"]
                assert received["data"]["message"] == "psst"

                echo = first.receive_json()
                assert echo["type"] == "receive_private_message"
                assert echo["data"]["recipient_id"] == bob["id"]
                assert echo["data"]["echo"] is True

                notification = second.receive_json()
                assert notification["type"] == "private_notification"
                assert notification["data"]["preview"] == "psst"

    def test_invalid_frames_answered_with_errors(self, client):
        with client.websocket_connect("/ws") as ws:
            join(ws)

            ws.send_text("not json")
            assert ws.receive_json() == {"type": "error", "data": {"detail": "Frame is not valid JSON"}}

            ws.send_json({"type": "universe_init", "data": {}})
            error = ws.receive_json()
            assert error["type"] == "error"
            assert "cannot be sent by clients" in error["data"]["detail"]

            ws.send_json({"type": "cluster_message", "data": {"cluster_id": "x"}})
            error = ws.receive_json()
            assert "missing required field: message" in error["data"]["detail"]

            # Connection stays usable after errors
            ws.send_json({"type": "private_message", "data": {"target_id": "nobody", "message": "hi"}})
            echo = ws.receive_json()
            assert echo["data"]["echo"] is True

    def test_cluster_message_to_foreign_cluster_rejected(self, client):
        with client.websocket_connect("/ws") as ws:
            me, _ = join(ws)

            outsider = SlowWebSocket()
            api.manager.connect("outsider", outsider)
            api.manager.add_to_group("outsider", "other-cluster")

            ws.send_json({"type": "cluster_message", "data": {"cluster_id": "other-cluster", "message": "hi"}})
            error = ws.receive_json()

            assert error["type"] == "error"
            assert "not a member of cluster other-cluster" in error["data"]["detail"]
            assert outsider.sent == []

            # Own cluster still works
            ws.send_json({"type": "cluster_message", "data": {"cluster_id": me["cluster_id"], "message": "hi"}})
            assert ws.receive_json()["type"] == "receive_cluster_message"


@pytest.fixture
def hub(monkeypatch):
    """Install a fresh universe and registry without starting the app."""
    monkeypatch.setattr(api, "universe", Universe())
    monkeypatch.setattr(api, "manager", ConnectionManager())
    return api.universe, api.manager


class TestDisconnect:
    @pytest.mark.asyncio
    async def test_remaining_members_notified_while_cancelled(self, hub):
        universe, manager = hub
        stay = universe.add_user("a", "A")
        universe.add_user("b", "B")
        socket_a = SlowWebSocket()
        for connection_id, socket in (("a", socket_a), ("b", SlowWebSocket())):
            manager.connect(connection_id, socket)
            manager.add_to_group(connection_id, stay.cluster_id)

        with anyio.CancelScope() as scope:
            scope.cancel()
            await api.handle_disconnect("b")

        assert [frame["type"] for frame in socket_a.sent] == ["cluster_notification", "cluster_update"]
        assert socket_a.sent[0]["data"] == {"type": "leave", "id": "b", "name": "B"}
        assert [member["id"] for member in socket_a.sent[1]["data"]] == ["a"]
        assert universe.get_user("b") is None
        assert manager.connection_count() == 1

    @pytest.mark.asyncio
    async def test_disconnect_after_shutdown_is_noop(self, monkeypatch):
        monkeypatch.setattr(api, "universe", None)
        monkeypatch.setattr(api, "manager", None)

        await api.handle_disconnect("gone")
