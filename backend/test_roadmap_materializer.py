"""
Tests for template expansion and the archive-then-insert swap of the
active roadmap
"""
import asyncio
import itertools

import pytest

from models.career_models import RoadmapDraft, Step
from roadmap.config import ROADMAPS_TABLE
from roadmap.errors import InvalidRoadmapError, UnknownTemplateError
from roadmap.materializer import RoadmapMaterializer, validate_step_ids


@pytest.fixture
def materializer(tiny_catalog, store):
    return RoadmapMaterializer(tiny_catalog, store)


async def active_count(store, owner_id):
    return await store.count(ROADMAPS_TABLE, owner_id, status="active")


async def archived_count(store, owner_id):
    return await store.count(ROADMAPS_TABLE, owner_id, status="archived")


async def test_expand_copies_template(tiny_catalog, store):
    counter = itertools.count()
    materializer = RoadmapMaterializer(
        tiny_catalog,
        store,
        step_id_factory=lambda: f"step-{next(counter)}"
    )

    draft = materializer.expand("Gardener")

    assert draft.title == "Gardener Path"
    assert draft.description == "Grow things outdoors."
    assert [step.id for step in draft.steps] == ["step-0", "step-1"]
    assert [step.title for step in draft.steps] == ["Dig", "Plant"]
    assert not any(step.is_completed for step in draft.steps)
    assert draft.skills == ["Patience", "Botany"]


async def test_expand_generates_unique_ids(materializer):
    first = materializer.expand("Gardener")
    second = materializer.expand("Gardener")
    ids = [step.id for step in first.steps + second.steps]
    assert len(set(ids)) == len(ids)


async def test_expand_unknown_template(materializer):
    with pytest.raises(UnknownTemplateError):
        materializer.expand("Astronaut")


async def test_materialize_first_roadmap(materializer, store):
    roadmap_id = await materializer.materialize("Gardener", "u1")

    record = await store.get(ROADMAPS_TABLE, roadmap_id)
    assert record["status"] == "active"
    assert record["user_id"] == "u1"
    assert len(record["steps"]) == 2
    assert await archived_count(store, "u1") == 0


async def test_materialize_archives_previous_active(materializer, store):
    first_id = await materializer.materialize("Gardener", "u1")
    second_id = await materializer.materialize("Baker", "u1")

    assert await active_count(store, "u1") == 1
    assert await archived_count(store, "u1") == 1
    assert (await store.get(ROADMAPS_TABLE, first_id))["status"] == "archived"
    assert (await store.get(ROADMAPS_TABLE, second_id))["status"] == "active"

    await materializer.materialize("Gardener", "u1")
    assert await active_count(store, "u1") == 1
    assert await archived_count(store, "u1") == 2


async def test_materialize_leaves_other_users_alone(materializer, store):
    await materializer.materialize("Gardener", "u1")
    await materializer.materialize("Baker", "u2")

    assert await active_count(store, "u1") == 1
    assert await active_count(store, "u2") == 1


async def test_unknown_template_keeps_current_roadmap(materializer, store):
    roadmap_id = await materializer.materialize("Gardener", "u1")

    with pytest.raises(UnknownTemplateError):
        await materializer.materialize("Astronaut", "u1")

    assert (await store.get(ROADMAPS_TABLE, roadmap_id))["status"] == "active"
    assert await archived_count(store, "u1") == 0


async def test_concurrent_materialize_leaves_one_active(materializer, store):
    await asyncio.gather(*[
        materializer.materialize(key, "u1")
        for key in ("Gardener", "Baker", "Gardener", "Baker")
    ])

    assert await active_count(store, "u1") == 1
    assert await archived_count(store, "u1") == 3


async def test_replace_active_rejects_duplicate_step_ids(materializer, store):
    draft = RoadmapDraft(
        title="Custom",
        description="",
        steps=[
            Step(id="a", title="One", description=""),
            Step(id="a", title="Two", description=""),
        ],
    )

    with pytest.raises(InvalidRoadmapError):
        await materializer.replace_active("u1", draft)

    assert await store.count(ROADMAPS_TABLE, "u1") == 0


async def test_archive_active_returns_count(materializer, store):
    await materializer.materialize("Gardener", "u1")
    assert await materializer.archive_active("u1") == 1
    assert await materializer.archive_active("u1") == 0
    assert await active_count(store, "u1") == 0


def test_validate_step_ids():
    validate_step_ids([Step(id="a", title="", description=""), Step(id="b", title="", description="")])
    validate_step_ids([])

    with pytest.raises(InvalidRoadmapError):
        validate_step_ids([Step(id="", title="", description="")])


async def test_user_locks_released_after_use(materializer):
    await asyncio.gather(*[
        materializer.materialize("Gardener", owner)
        for owner in ("u1", "u1", "u2", "u3")
    ])

    assert materializer._user_locks == {}
    assert materializer._lock_users == {}


async def test_user_lock_released_when_insert_fails(materializer, store, monkeypatch):
    async def broken_insert(table, record):
        raise RuntimeError("disk full")

    monkeypatch.setattr(store, "insert", broken_insert)

    with pytest.raises(RuntimeError):
        await materializer.materialize("Gardener", "u1")

    assert materializer._user_locks == {}
