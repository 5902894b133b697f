"""Tests for the HTTP sync client against the in-process server."""

import httpx
import pytest

from liftlog.db import init_db
from liftlog.errors import SyncTransportError
from liftlog.models import ChatMessage, ChatRole
from liftlog.sync import HttpSyncClient, RemoteSyncClient, SyncSnapshot
from liftlog.web.app import create_app


@pytest.fixture
async def app(temp_db_path):
    await init_db(temp_db_path)
    return create_app(temp_db_path)


@pytest.fixture
async def make_client(app):
    clients = []

    def _make(device_id="device-a"):
        client = HttpSyncClient(
            "http://testserver/", device_id, transport=httpx.ASGITransport(app=app)
        )
        clients.append(client)
        return client

    yield _make
    for client in clients:
        await client.close()


def failing_client(handler):
    return HttpSyncClient(
        "http://sync.invalid", "device-a", transport=httpx.MockTransport(handler)
    )


class TestHttpSyncClient:
    """Tests for HttpSyncClient."""

    async def test_satisfies_protocol(self, make_client):
        assert isinstance(make_client(), RemoteSyncClient)

    async def test_available(self, make_client):
        assert await make_client().is_available() is True

    async def test_push_then_fetch(self, make_client, store, sample_program, make_log, clock):
        program = store.add_program(sample_program)
        log = make_log(clock.now, [("Bench Press", 10, 135)])
        client = make_client()

        await client.push_all(SyncSnapshot([program], program.id, [log]))
        fetched = await client.fetch_all()

        assert fetched.programs == [program]
        assert fetched.active_program_id == program.id
        assert fetched.workout_logs == [log]

    async def test_fine_grained_operations(self, make_client, sample_program, make_log, clock):
        client = make_client()
        log = make_log(clock.now, [("Squat", 5, 225)])

        await client.upsert_program(sample_program)
        await client.set_active_program(sample_program.id)
        await client.upsert_workout(log)
        assert (await client.fetch_all()).active_program_id == sample_program.id

        await client.delete_workout(log.id)
        await client.set_active_program(None)
        await client.delete_program(sample_program.id)

        fetched = await client.fetch_all()
        assert fetched.programs == []
        assert fetched.active_program_id is None
        assert fetched.workout_logs == []

    async def test_chat_round_trip(self, make_client):
        client = make_client()
        message = ChatMessage(role=ChatRole.USER, content="Knees cave on squats")

        await client.push_chat_message(message)
        fetched = await client.fetch_all()
        assert [(m.id, m.role, m.content) for m in fetched.chat_messages] == [
            (message.id, ChatRole.USER, message.content)
        ]

        await client.clear_chat()
        assert (await client.fetch_all()).chat_messages == []

    async def test_push_all_includes_chat(self, make_client, store, sample_program):
        program = store.add_program(sample_program)
        message = ChatMessage(role=ChatRole.ASSISTANT, content="Add a back-off set")
        client = make_client()

        await client.push_all(SyncSnapshot([program], chat_messages=[message]))

        fetched = await client.fetch_all()
        assert [m.id for m in fetched.chat_messages] == [message.id]

    async def test_devices_do_not_share_data(self, make_client, sample_program):
        await make_client("device-a").upsert_program(sample_program)
        assert (await make_client("device-b").fetch_all()).programs == []

    async def test_missing_entity_raises(self, make_client):
        with pytest.raises(SyncTransportError, match="404"):
            await make_client().delete_program("missing")

    async def test_server_error(self):
        client = failing_client(lambda request: httpx.Response(500, text="boom"))
        try:
            assert await client.is_available() is False
            with pytest.raises(SyncTransportError, match="500"):
                await client.fetch_all()
        finally:
            await client.close()

    async def test_connection_refused(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = failing_client(refuse)
        try:
            assert await client.is_available() is False
            with pytest.raises(SyncTransportError):
                await client.delete_workout("w1")
        finally:
            await client.close()

    async def test_invalid_json(self):
        client = failing_client(lambda request: httpx.Response(200, content=b"<html>"))
        try:
            with pytest.raises(SyncTransportError, match="invalid JSON"):
                await client.fetch_all()
        finally:
            await client.close()

    async def test_malformed_payload(self):
        client = failing_client(
            lambda request: httpx.Response(200, json={"programs": [{"description": "no name"}]})
        )
        try:
            with pytest.raises(SyncTransportError, match="Malformed"):
                await client.fetch_all()
        finally:
            await client.close()
