"""Tests for the sync server routes."""

import httpx
import pytest

from liftlog.db import init_db
from liftlog.web.app import create_app

DEVICE = {"X-Device-Id": "device-test"}


@pytest.fixture
async def client(temp_db_path):
    # ASGITransport does not run the lifespan, so create the schema here
    await init_db(temp_db_path)
    app = create_app(temp_db_path)
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        yield client


def program_doc(program_id, name="Plan", updated_at="2026-03-01T12:00:00+00:00"):
    return {"id": program_id, "name": name, "createdAt": updated_at, "updatedAt": updated_at}


async def save_program(client, doc):
    response = await client.post("/api/sync/programs", json={"program": doc}, headers=DEVICE)
    assert response.status_code == 200


class TestHealth:
    """Tests for the health route."""

    async def test_database_ok(self, client):
        response = await client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["services"]["database"] is True

    async def test_degraded_without_schema(self, temp_db_path):
        app = create_app(temp_db_path)
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://testserver"
        ) as client:
            response = await client.get("/api/health")
        assert response.json()["services"]["database"] is False


class TestDeviceIdentity:
    """Tests for the X-Device-Id requirement."""

    async def test_missing_device_id(self, client):
        response = await client.get("/api/sync/all")
        assert response.status_code == 401
        assert response.json()["detail"] == "Device ID required"

    async def test_user_is_stable_per_device(self, client):
        first = (await client.get("/api/sync/user", headers=DEVICE)).json()
        second = (await client.get("/api/sync/user", headers=DEVICE)).json()
        other = (await client.get("/api/sync/user", headers={"X-Device-Id": "other"})).json()

        assert first == second
        assert other["user"]["id"] != first["user"]["id"]

    async def test_devices_are_isolated(self, client):
        await save_program(client, program_doc("p1"))

        response = await client.get("/api/sync/programs", headers={"X-Device-Id": "other"})
        assert response.json() == {"programs": []}


class TestPrograms:
    """Tests for program routes."""

    async def test_upsert_replaces_document(self, client):
        await save_program(client, program_doc("p1"))
        await save_program(client, program_doc("p1", name="Renamed"))

        programs = (await client.get("/api/sync/programs", headers=DEVICE)).json()["programs"]
        assert [p["name"] for p in programs] == ["Renamed"]
        assert programs[0]["isActive"] is False

    async def test_newest_first(self, client):
        await save_program(client, program_doc("old", updated_at="2026-01-01T00:00:00Z"))
        await save_program(client, program_doc("new", updated_at="2026-02-01T00:00:00Z"))

        programs = (await client.get("/api/sync/programs", headers=DEVICE)).json()["programs"]
        assert [p["id"] for p in programs] == ["new", "old"]

    @pytest.mark.parametrize("body", [{}, {"program": {"id": "p1"}}, {"program": "p1"}])
    async def test_invalid_program(self, client, body):
        response = await client.post("/api/sync/programs", json=body, headers=DEVICE)
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid program data"

    async def test_body_must_be_json(self, client):
        response = await client.post(
            "/api/sync/programs",
            content=b"not json",
            headers={**DEVICE, "Content-Type": "application/json"},
        )
        assert response.status_code == 400

    async def test_set_active(self, client):
        for program_id in ("p1", "p2"):
            await save_program(client, program_doc(program_id))
        await client.post("/api/sync/programs/active", json={"programId": "p1"}, headers=DEVICE)
        await client.post("/api/sync/programs/active", json={"programId": "p2"}, headers=DEVICE)

        data = (await client.get("/api/sync/all", headers=DEVICE)).json()
        assert data["activeProgram"]["id"] == "p2"
        assert sum(p["isActive"] for p in data["programs"]) == 1

    async def test_delete(self, client):
        await save_program(client, program_doc("p1"))

        assert (await client.delete("/api/sync/programs/p1", headers=DEVICE)).status_code == 200
        response = await client.delete("/api/sync/programs/p1", headers=DEVICE)
        assert response.status_code == 404


class TestWorkouts:
    """Tests for workout routes."""

    async def test_save_list_delete(self, client):
        workout = {"id": "w1", "date": "2026-03-01T17:00:00Z", "sets": [], "completed": True}
        response = await client.post(
            "/api/sync/workouts", json={"workout": workout}, headers=DEVICE
        )
        assert response.json() == {"success": True}

        listed = (await client.get("/api/sync/workouts", headers=DEVICE)).json()["workouts"]
        assert listed == [workout]

        assert (await client.delete("/api/sync/workouts/w1", headers=DEVICE)).status_code == 200
        assert (await client.delete("/api/sync/workouts/w1", headers=DEVICE)).status_code == 404

    async def test_invalid_workout(self, client):
        response = await client.post("/api/sync/workouts", json={"workout": {}}, headers=DEVICE)
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid workout data"

    async def test_limit(self, client):
        for day in range(1, 6):
            workout = {"id": f"w{day}", "date": f"2026-03-0{day}T17:00:00Z"}
            await client.post("/api/sync/workouts", json={"workout": workout}, headers=DEVICE)

        listed = (await client.get("/api/sync/workouts?limit=2", headers=DEVICE)).json()
        assert [w["id"] for w in listed["workouts"]] == ["w5", "w4"]


class TestChat:
    """Tests for chat routes."""

    async def test_messages_oldest_first(self, client):
        for i, role in enumerate(("user", "assistant")):
            await client.post(
                "/api/sync/chat",
                json={"role": role, "content": f"m{i}", "timestamp": f"2026-03-01T10:0{i}:00Z"},
                headers=DEVICE,
            )

        messages = (await client.get("/api/sync/chat", headers=DEVICE)).json()["messages"]
        assert [m["content"] for m in messages] == ["m0", "m1"]
        assert messages[0]["role"] == "user"

    @pytest.mark.parametrize(
        "body",
        [
            {"role": "system", "content": "x"},
            {"role": "user", "content": ""},
            {"role": "user", "content": "x", "timestamp": "soon"},
        ],
    )
    async def test_invalid_message(self, client, body):
        response = await client.post("/api/sync/chat", json=body, headers=DEVICE)
        assert response.status_code == 400

    async def test_clear(self, client):
        await client.post("/api/sync/chat", json={"role": "user", "content": "hi"}, headers=DEVICE)
        await client.delete("/api/sync/chat", headers=DEVICE)
        assert (await client.get("/api/sync/chat", headers=DEVICE)).json() == {"messages": []}


class TestFullSync:
    """Tests for the full push and fetch routes."""

    async def test_push_skips_invalid_entries(self, client):
        body = {
            "programs": [program_doc("p1"), {"name": "no id"}],
            "workouts": [{"id": "w1", "date": "2026-03-01T17:00:00Z"}, {"date": "x"}],
            "activeProgram": program_doc("p1"),
            "chatMessages": [
                {"id": "m1", "role": "user", "content": "hi", "timestamp": "2026-03-01T17:05:00Z"},
                {"role": "user", "content": "no id"},
                {"id": "m2", "role": "coach", "content": "bad role"},
                {"id": "m3", "role": "user", "content": "bad time", "timestamp": "soon"},
            ],
        }
        response = await client.post("/api/sync/all", json=body, headers=DEVICE)
        assert response.json() == {
            "success": True,
            "programs": 1,
            "workouts": 1,
            "chatMessages": 1,
        }

        data = (await client.get("/api/sync/all", headers=DEVICE)).json()
        assert [p["id"] for p in data["programs"]] == ["p1"]
        assert data["activeProgram"]["id"] == "p1"
        assert [w["id"] for w in data["workouts"]] == ["w1"]
        assert [(m["id"], m["content"]) for m in data["chatMessages"]] == [("m1", "hi")]

    async def test_empty_account(self, client):
        data = (await client.get("/api/sync/all", headers=DEVICE)).json()
        assert data["programs"] == []
        assert data["activeProgram"] is None
        assert data["workouts"] == []
