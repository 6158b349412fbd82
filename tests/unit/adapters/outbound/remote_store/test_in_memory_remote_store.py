"""Unit tests for the in-memory remote store."""

import pytest

from app.adapters.outbound.remote_store import InMemoryRemoteStore
from app.application.errors import NetworkError


@pytest.fixture
def store():
    return InMemoryRemoteStore()


@pytest.mark.asyncio
async def test_set_and_get_documents(store):
    await store.set_document("users/u1/leads/l1", {"name": "Ana"})
    await store.set_document("users/u1/leads/l2", {"name": "Ben"})

    documents = await store.get_documents("users/u1/leads")

    assert {d.id: d.data["name"] for d in documents} == {"l1": "Ana", "l2": "Ben"}
    assert await store.get_documents("users/u2/leads") == []


@pytest.mark.asyncio
async def test_stored_documents_are_copies(store):
    body = {"tags": ["a"]}
    await store.set_document("users/u1/leads/l1", body)

    body["tags"].append("b")

    assert store.document("users/u1/leads/l1") == {"tags": ["a"]}


@pytest.mark.asyncio
async def test_subscribe_delivers_current_then_changes(store):
    """Test that subscribers get the snapshot first, then every change."""
    await store.set_document("users/u1/appointments/a1", {"title": "Visit"})
    snapshots = []

    async def on_snapshot(documents):
        snapshots.append(sorted(d.id for d in documents))

    registration = await store.subscribe("users/u1/appointments", on_snapshot)
    await store.set_document("users/u1/appointments/a2", {"title": "Second"})
    await store.delete_document("users/u1/appointments/a1")
    registration.remove()
    await store.set_document("users/u1/appointments/a3", {"title": "Unseen"})

    assert snapshots == [["a1"], ["a1", "a2"], ["a2"]]
    assert store.subscriber_count("users/u1/appointments") == 0


@pytest.mark.asyncio
async def test_failing_snapshot_handler_keeps_subscription(store):
    errors = []
    delivered = []

    async def on_snapshot(documents):
        delivered.append(len(documents))
        if len(documents) == 1:
            raise RuntimeError("boom")

    await store.subscribe("users/u1/appointments", on_snapshot, on_error=errors.append)
    await store.set_document("users/u1/appointments/a1", {})
    await store.set_document("users/u1/appointments/a2", {})

    assert delivered == [0, 1, 2]
    assert errors == []
    assert store.document("users/u1/appointments/a1") == {}


@pytest.mark.asyncio
async def test_drop_subscriptions_reports_error_and_stops_delivery(store):
    errors = []
    delivered = []

    async def on_snapshot(documents):
        delivered.append(len(documents))

    await store.subscribe("users/u1/appointments", on_snapshot, on_error=errors.append)
    lost = NetworkError("connection lost")

    assert store.drop_subscriptions("users/u1/appointments", lost) == 1
    await store.set_document("users/u1/appointments/a1", {})

    assert errors == [lost]
    assert delivered == [0]
    assert store.subscriber_count("users/u1/appointments") == 0


@pytest.mark.asyncio
async def test_offline_rejects_every_operation(store):
    store.offline = True

    with pytest.raises(NetworkError):
        await store.set_document("users/u1/leads/l1", {})
    with pytest.raises(NetworkError):
        await store.get_documents("users/u1/leads")
    with pytest.raises(NetworkError):
        await store.delete_document("users/u1/leads/l1")
    assert store.write_count == 0


@pytest.mark.asyncio
async def test_merge_on_missing_document_creates_it(store):
    await store.set_document("users/u1/leads/l1", {"name": "Ana"}, merge=True)

    assert store.document("users/u1/leads/l1") == {"name": "Ana"}
