import re

import pytest
from conftest import run

from mindsculpt.errors import MemoryNotFoundError, PersistenceError
from mindsculpt.graph.store import MemoryGraphStore
from mindsculpt.memory.models import MemoryDraft, MemoryEventType, MemoryPatch
from mindsculpt.retrieval.search import SearchCriteria
from mindsculpt.storage import MemorySnapshotStorage


def test_create_assigns_identity_and_clamps_scores(store):
    memory = run(store.create({"text": "hello", "importance": 1.4, "emotion_score": -5}))
    assert re.fullmatch(r"mem_\d+_[a-z0-9]{9}", memory.id)
    assert re.fullmatch(r">gl[0-9a-f]{8}", memory.glimpse_id)
    assert memory.importance == 1.0
    assert memory.emotion_score == -1.0
    assert memory.linked_memories == []
    assert memory.conversation.agent_messages == []
    assert memory.observation == ""


def test_create_ignores_caller_identity(store):
    memory = run(store.create({"id": "mine", "glimpse_id": ">glmine", "text": "x"}))
    assert memory.id != "mine"
    assert memory.glimpse_id != ">glmine"


def test_create_links_only_existing_memories(store):
    first = run(store.create(MemoryDraft(text="first")))
    second = run(store.create(MemoryDraft(text="second", linked_memories=[first.id, first.id, "ghost"])))
    assert second.linked_memories == [first.id]
    stored_first = run(store.get(first.id))
    assert stored_first.linked_memories == [second.id]


def test_link_is_symmetric_and_idempotent(store):
    a = run(store.create({"text": "a"}))
    b = run(store.create({"text": "b"}))
    run(store.link(a.id, b.id))
    run(store.link(a.id, b.id))
    run(store.link(b.id, a.id))
    by_id = {m.id: m for m in run(store.get_all())}
    assert by_id[a.id].linked_memories == [b.id]
    assert by_id[b.id].linked_memories == [a.id]


def test_link_to_missing_leaves_source_unchanged(store):
    m1 = run(store.create({"text": "m1"}))
    with pytest.raises(MemoryNotFoundError) as excinfo:
        run(store.link(m1.id, "missing"))
    assert excinfo.value.memory_id == "missing"
    assert run(store.get_all())[0].linked_memories == []


def test_link_to_self_is_rejected(store):
    m1 = run(store.create({"text": "m1"}))
    with pytest.raises(ValueError):
        run(store.link(m1.id, m1.id))


def test_delete_cascades_links(store):
    a = run(store.create({"text": "a"}))
    b = run(store.create({"text": "b"}))
    c = run(store.create({"text": "c"}))
    run(store.link(a.id, b.id))
    run(store.link(c.id, b.id))
    run(store.delete(b.id))
    remaining = run(store.get_all())
    assert {m.id for m in remaining} == {a.id, c.id}
    assert all(m.linked_memories == [] for m in remaining)


def test_delete_missing_raises(store):
    with pytest.raises(MemoryNotFoundError):
        run(store.delete("nope"))


def test_update_restores_frozen_fields(store):
    memory = run(store.create({"text": "before"}))
    updated = run(
        store.update(
            memory.id,
            {"id": "other", "glimpse_id": ">glother", "created_at": "2001-01-01T00:00:00Z", "text": "after"},
        )
    )
    assert updated.id == memory.id
    assert updated.glimpse_id == memory.glimpse_id
    assert updated.created_at == memory.created_at
    assert updated.text == "after"


def test_update_clamps_and_ignores_links(store):
    a = run(store.create({"text": "a"}))
    b = run(store.create({"text": "b"}))
    run(store.link(a.id, b.id))
    updated = run(store.update(a.id, MemoryPatch.of(importance=7, linked_memories=[])))
    assert updated.importance == 1.0
    assert updated.linked_memories == [b.id]


def test_update_rejects_unknown_fields(store):
    memory = run(store.create({"text": "a"}))
    with pytest.raises(ValueError):
        run(store.update(memory.id, {"colour": "blue"}))


def test_update_missing_raises(store):
    with pytest.raises(MemoryNotFoundError):
        run(store.update("nope", {"text": "x"}))


def test_get_touches_last_accessed(store):
    memory = run(store.create({"text": "a"}))
    assert memory.last_accessed is None
    fetched = run(store.get(memory.id))
    assert fetched.last_accessed is not None
    assert run(store.get("missing")) is None


def test_returned_records_are_copies(store):
    memory = run(store.create({"text": "a"}))
    memory.text = "tampered"
    memory.linked_memories.append("ghost")
    stored = run(store.get_all())[0]
    assert stored.text == "a"
    assert stored.linked_memories == []


def test_search_ties_keep_insertion_order(store):
    first = run(store.create({"text": "first", "importance": 0.7}))
    run(store.create({"text": "second", "importance": 0.7}))
    results = run(store.search(SearchCriteria(limit=1)))
    assert [m.id for m in results] == [first.id]


def test_search_over_explicit_collection(store):
    a = run(store.create({"text": "apple", "importance": 0.9}))
    run(store.create({"text": "apricot", "importance": 0.8}))
    results = run(store.search(SearchCriteria(query="ap", memories=[a])))
    assert [m.id for m in results] == [a.id]


def test_graph_has_one_edge_per_link(store):
    a = run(store.create({"text": "a"}))
    b = run(store.create({"text": "b"}))
    run(store.link(a.id, b.id))
    graph = run(store.graph())
    assert len(graph.nodes) == 2
    assert len(graph.edges) == 1
    payload = graph.to_payload()
    assert {payload["edges"][0]["from"], payload["edges"][0]["to"]} == {a.id, b.id}
    assert payload["edges"][0]["weight"] == 1.0


def test_state_survives_reload(kv, store):
    a = run(store.create({"text": "a", "context": {"focus_area": "travel", "mood": "calm"}}))
    b = run(store.create({"text": "b"}))
    run(store.link(a.id, b.id))

    reloaded = MemoryGraphStore(MemorySnapshotStorage(kv, "test_agent"))
    by_id = {m.id: m for m in run(reloaded.get_all())}
    assert by_id[a.id].linked_memories == [b.id]
    assert by_id[a.id].context.focus_area == "travel"
    assert by_id[a.id].context.extra == {"mood": "calm"}
    assert by_id[a.id].created_at == a.created_at


def test_failed_save_rolls_back(kv, store):
    a = run(store.create({"text": "a"}))
    b = run(store.create({"text": "b"}))
    kv.fail_writes = True
    with pytest.raises(PersistenceError):
        run(store.create({"text": "c"}))
    with pytest.raises(PersistenceError):
        run(store.link(a.id, b.id))
    with pytest.raises(PersistenceError):
        run(store.delete(a.id))
    kv.fail_writes = False
    remaining = run(store.get_all())
    assert [m.text for m in remaining] == ["a", "b"]
    assert all(m.linked_memories == [] for m in remaining)


def test_events_reach_sync_and_async_listeners(store):
    seen = []
    async_seen = []

    async def async_listener(event):
        async_seen.append(event.type)

    unsubscribe = store.subscribe(lambda event: seen.append((event.type, event.linked_to)))
    store.subscribe(async_listener)

    a = run(store.create({"text": "a"}))
    b = run(store.create({"text": "b"}))
    run(store.link(a.id, b.id))
    run(store.update(a.id, {"text": "a2"}))
    unsubscribe()
    run(store.delete(b.id))

    assert seen == [
        (MemoryEventType.CREATE, None),
        (MemoryEventType.CREATE, None),
        (MemoryEventType.LINK, [b.id]),
        (MemoryEventType.UPDATE, None),
    ]
    assert async_seen[-1] == MemoryEventType.DELETE


def test_failing_listener_does_not_break_mutation(store):
    def broken(event):
        raise RuntimeError("boom")

    store.subscribe(broken)
    memory = run(store.create({"text": "still stored"}))
    assert [m.id for m in run(store.get_all())] == [memory.id]


@pytest.mark.parametrize("field", ["text", "observation", "importance", "emotion_score"])
def test_update_rejects_null_values(store, field):
    memory = run(store.create({"text": "keep", "observation": "seen", "importance": 0.4}))
    with pytest.raises(ValueError):
        run(store.update(memory.id, {field: None}))
    stored = run(store.get_all())[0]
    assert (stored.text, stored.observation, stored.importance) == ("keep", "seen", 0.4)


def test_create_rejects_null_text_and_scores(store):
    with pytest.raises(ValueError):
        run(store.create({"text": None}))
    with pytest.raises(ValueError):
        run(store.create({"text": "x", "importance": None}))
    assert run(store.get_all()) == []
