import argparse
import json

from conftest import FakeCompletion, run

from mindsculpt.cli import _run
from mindsculpt.config import LLMConfig, MindSculptConfig, PromptConfig, StorageConfig
from mindsculpt.runtime import MindSculptRuntime


def _runtime():
    config = MindSculptConfig(
        llm=LLMConfig(),
        storage=StorageConfig(path=":memory:", agent_id="cli"),
        prompt=PromptConfig(),
    )
    reply = json.dumps({"importance": 0.75, "focus_area": "hobbies"})
    return MindSculptRuntime(config, completion=FakeCompletion(reply=reply))


def test_remember_then_search(capsys):
    runtime = _runtime()
    run(_run(argparse.Namespace(command="remember", text="I play chess"), runtime))
    assert "importance=0.75" in capsys.readouterr().out

    args = argparse.Namespace(
        command="search", query="chess", importance=None, emotion=None, focus_area="hobbies", limit=None
    )
    run(_run(args, runtime))
    assert "I play chess" in capsys.readouterr().out


def test_personality_is_printed_as_json(capsys):
    run(_run(argparse.Namespace(command="personality"), _runtime()))
    assert json.loads(capsys.readouterr().out)["agent"]["name"] == "Aria Frost"
