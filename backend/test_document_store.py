"""
Tests for the aiosqlite document store
"""
import asyncio

import pytest

from storage.document_store import DocumentNotFoundError, SqliteDocumentStore


async def test_insert_and_get(store):
    doc_id = await store.insert("goals", {"user_id": "u1", "title": "Ship it", "is_completed": False})

    record = await store.get("goals", doc_id)

    assert record["id"] == doc_id
    assert record["title"] == "Ship it"
    assert record["user_id"] == "u1"
    assert record["created_at"]


async def test_get_is_scoped_to_collection(store):
    doc_id = await store.insert("goals", {"user_id": "u1", "title": "x"})
    assert await store.get("roadmaps", doc_id) is None
    assert await store.get("goals", "missing") is None


async def test_reserved_keys_are_not_stored(store):
    doc_id = await store.insert("goals", {"id": "forged", "user_id": "u1", "title": "x"})
    assert doc_id != "forged"
    assert (await store.get("goals", doc_id))["id"] == doc_id


async def test_patch_merges_fields(store):
    doc_id = await store.insert("goals", {"user_id": "u1", "title": "x", "is_completed": False})

    updated = await store.patch("goals", doc_id, {"is_completed": True})

    assert updated["is_completed"] is True
    assert updated["title"] == "x"
    assert (await store.get("goals", doc_id))["is_completed"] is True


async def test_patch_missing_document(store):
    with pytest.raises(DocumentNotFoundError):
        await store.patch("goals", "missing", {"is_completed": True})


async def test_delete(store):
    doc_id = await store.insert("goals", {"user_id": "u1", "title": "x"})
    await store.delete("goals", doc_id)

    assert await store.get("goals", doc_id) is None
    with pytest.raises(DocumentNotFoundError):
        await store.delete("goals", doc_id)


async def test_query_order_and_owner(store):
    first = await store.insert("goals", {"user_id": "u1", "title": "first"})
    await store.insert("goals", {"user_id": "u2", "title": "other user"})
    second = await store.insert("goals", {"user_id": "u1", "title": "second"})

    ascending = await store.query("goals", "u1")
    descending = await store.query("goals", "u1", descending=True)

    assert [r["id"] for r in ascending] == [first, second]
    assert [r["id"] for r in descending] == [second, first]
    assert [r["id"] for r in await store.query("goals", "u1", limit=1)] == [first]


async def test_status_filter_follows_patches(store):
    doc_id = await store.insert("roadmaps", {"user_id": "u1", "status": "active", "steps": []})
    assert len(await store.query("roadmaps", "u1", status="active")) == 1

    await store.patch("roadmaps", doc_id, {"status": "archived"})

    assert await store.query("roadmaps", "u1", status="active") == []
    assert await store.count("roadmaps", "u1", status="archived") == 1
    assert await store.first("roadmaps", "u1", status="active") is None


async def test_count(store):
    await store.insert("goals", {"user_id": "u1", "title": "a"})
    await store.insert("goals", {"user_id": "u2", "title": "b"})

    assert await store.count("goals") == 2
    assert await store.count("goals", "u1") == 1
    assert await store.count("roadmaps") == 0


async def test_reset(store):
    await store.insert("goals", {"user_id": "u1", "title": "a"})
    await store.reset()
    assert await store.count("goals") == 0


async def test_initializes_lazily(tmp_path):
    lazy = SqliteDocumentStore(tmp_path / "nested" / "lazy.db")
    doc_id = await lazy.insert("goals", {"user_id": "u1", "title": "a"})
    assert (await lazy.get("goals", doc_id))["title"] == "a"


async def test_concurrent_updates_all_apply(store):
    doc_id = await store.insert("counters", {"user_id": "u1", "value": 0})

    await asyncio.gather(*[
        store.update("counters", doc_id, lambda record: {"value": record["value"] + 1})
        for _ in range(10)
    ])

    assert (await store.get("counters", doc_id))["value"] == 10


async def test_update_scoped_to_owner(store):
    doc_id = await store.insert("goals", {"user_id": "u1", "is_completed": False})

    with pytest.raises(DocumentNotFoundError):
        await store.update("goals", doc_id, lambda record: {"is_completed": True}, owner_id="u2")

    updated = await store.update("goals", doc_id, lambda record: {"is_completed": True}, owner_id="u1")
    assert updated["is_completed"] is True


async def test_update_error_rolls_back(store):
    doc_id = await store.insert("goals", {"user_id": "u1", "title": "x"})

    def fail(record):
        raise ValueError("rejected")

    with pytest.raises(ValueError):
        await store.update("goals", doc_id, fail)

    assert (await store.get("goals", doc_id))["title"] == "x"

    # Write lock was released
    updated = await store.update("goals", doc_id, lambda record: {"title": "y"})
    assert updated["title"] == "y"


async def test_update_returning_nothing_leaves_record(store):
    doc_id = await store.insert("goals", {"user_id": "u1", "title": "x"})

    record = await store.update("goals", doc_id, lambda record: None)

    assert record["title"] == "x"
    assert record["id"] == doc_id


async def test_delete_scoped_to_owner(store):
    doc_id = await store.insert("goals", {"user_id": "u1", "title": "x"})

    with pytest.raises(DocumentNotFoundError):
        await store.delete("goals", doc_id, owner_id="u2")
    assert await store.get("goals", doc_id) is not None

    await store.delete("goals", doc_id, owner_id="u1")
    assert await store.get("goals", doc_id) is None
