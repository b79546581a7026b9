import json

from conftest import FakeCompletion, run

from mindsculpt.config import LLMConfig, MindSculptConfig, PromptConfig, StorageConfig
from mindsculpt.llm.classifier import ClassificationService
from mindsculpt.memory.pipeline import MemoryPipeline
from mindsculpt.runtime import MindSculptRuntime


def _classification(**overrides):
    payload = {
        "observation": "User shared news",
        "importance": 0.8,
        "emotion_score": 0.6,
        "focus_area": "career",
        "interaction_type": "update",
        "suggested_links": [],
    }
    payload.update(overrides)
    return json.dumps(payload)


def test_record_interaction_builds_memory(store):
    completion = FakeCompletion(reply=_classification())
    pipeline = MemoryPipeline(store=store, classifier=ClassificationService(completion))
    memory = run(pipeline.record_interaction("I got the job!", "Congratulations!", {"channel": "chat"}))

    assert memory.text == "I got the job!"
    assert memory.conversation.user_messages == ["I got the job!"]
    assert memory.conversation.agent_messages == ["Congratulations!"]
    assert memory.observation == "User shared news"
    assert memory.context.focus_area == "career"
    assert memory.importance == 0.8
    assert memory.metadata == {"channel": "chat"}
    assert 'AI response: "Congratulations!"' in completion.prompts[0]


def test_suggested_links_are_applied_when_known(store):
    earlier = run(store.create({"text": "Applied for a job"}))
    completion = FakeCompletion(reply=_classification(suggested_links=[earlier.id, "mem_ghost"]))
    pipeline = MemoryPipeline(store=store, classifier=ClassificationService(completion))
    memory = run(pipeline.record_text("Interview went well"))

    assert memory.linked_memories == [earlier.id]
    by_id = {m.id: m for m in run(store.get_all())}
    assert by_id[earlier.id].linked_memories == [memory.id]


def test_record_text_uses_default_on_bad_reply(store):
    pipeline = MemoryPipeline(store=store, classifier=ClassificationService(FakeCompletion(reply="???")))
    memory = run(pipeline.record_text("hello"))
    assert memory.importance == 0.5
    assert memory.context.focus_area == "general"
    assert memory.observation == ""


def _runtime(completion):
    config = MindSculptConfig(
        llm=LLMConfig(),
        storage=StorageConfig(path=":memory:", agent_id="runtime_agent"),
        prompt=PromptConfig(importance_threshold=0.5, memory_limit=3),
    )
    return MindSculptRuntime(config, completion=completion)


def test_runtime_respond_records_exchange():
    completion = FakeCompletion(reply=_classification(), chat_reply="Welcome back!")
    runtime = _runtime(completion)

    reply = run(runtime.respond("Hello again", "User: hi"))

    assert reply == "Welcome back!"
    messages = completion.chats[0]
    assert [m["role"] for m in messages] == ["system", "system", "user"]
    assert messages[2]["content"] == "Hello again"
    stored = run(runtime.store.get_all())
    assert [m.text for m in stored] == ["Hello again"]
    assert stored[0].conversation.agent_messages == ["Welcome back!"]
    assert "mindsculpt_memories_runtime_agent" in runtime.kv.data


def test_runtime_prompt_sees_earlier_memories():
    completion = FakeCompletion(reply=_classification(), chat_reply="Sure.")
    runtime = _runtime(completion)
    run(runtime.respond("My sister is called Ana", ""))
    run(runtime.respond("What's my sister's name?", ""))
    assert "My sister is called Ana" in completion.chats[1][1]["content"]
