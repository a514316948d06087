import pytest

from deduction import web
from deduction.room import RoomRegistry


@pytest.fixture()
def client(config):
    web.configure(RoomRegistry(config, seed=9))
    web.app.config["TESTING"] = True
    with web.app.test_client() as client:
        yield client
    web.configure(None)


def _join(client, room_id="lobby"):
    response = client.post(f"/rooms/{room_id}/connections")
    assert response.status_code == 201
    return response.get_json()["connection_id"]


def _post(client, conn, event, room_id="lobby"):
    return client.post(
        f"/rooms/{room_id}/connections/{conn}/events",
        json={"kind": "GameEvent", "event": event},
    )


def test_index_and_skins(client):
    assert "endpoints" in client.get("/").get_json()
    skins = client.get("/skins").get_json()
    assert skins["default"] == "tiny"
    assert [s["name"] for s in skins["skins"]] == ["tiny"]


def test_join_play_and_poll(client):
    a, b = _join(client), _join(client)
    for conn, role in ((a, "A"), (b, "B")):
        _post(client, conn, {"kind": "SetRole", "card": {"kind": "Role", "name": role}})
        _post(client, conn, {"kind": "SetReady", "ready": True})

    response = _post(client, a, {"kind": "Start"})
    assert response.status_code == 200
    body = response.get_json()
    assert sorted(body["refreshed"]) == sorted([a, b])
    assert body["state"]["game"]["status"] == "InProgress"
    assert body["state"]["game"]["seat"] == "A"

    state = client.get(f"/rooms/lobby/connections/{b}/state").get_json()
    assert state["game"]["seat"] == "B"
    assert "solution" not in state["game"]

    rooms = client.get("/rooms").get_json()["rooms"]
    assert rooms == [{"room_id": "lobby", "num_connections": 2, "status": "InProgress"}]


def test_invalid_crime_is_400(client):
    conn = _join(client)
    response = _post(client, conn, {"kind": "Suggest", "crime": {"role": {"name": "A"}}})
    assert response.status_code == 400
    assert "error" in response.get_json()


def test_missing_room_or_connection_is_404(client):
    assert client.get("/rooms/nowhere/connections/1/state").status_code == 404
    conn = _join(client)
    assert client.get(f"/rooms/lobby/connections/{conn + 5}/state").status_code == 404
    assert _post(client, conn + 5, {"kind": "Start"}).status_code == 404
    assert client.delete(f"/rooms/lobby/connections/{conn + 5}").status_code == 404


def test_leave_room(client):
    a, b = _join(client), _join(client)
    response = client.delete(f"/rooms/lobby/connections/{a}")
    assert response.get_json()["num_connections"] == 1
    assert client.get(f"/rooms/lobby/connections/{a}/state").status_code == 404
    assert client.get(f"/rooms/lobby/connections/{b}/state").get_json()["revision"] == 2
