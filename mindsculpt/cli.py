import argparse
import asyncio
import json
from typing import Any

import uvicorn
from dotenv import load_dotenv

from mindsculpt.logging_config import setup_logging
from mindsculpt.retrieval.search import SearchCriteria
from mindsculpt.runtime import MindSculptRuntime
from mindsculpt.server.app import create_app
from mindsculpt.settings import build_config


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


async def _run(args: argparse.Namespace, runtime: MindSculptRuntime) -> None:
    if args.command == "classify":
        result = await runtime.classifier.classify(args.text, args.context)
        _print_json(result.to_payload())
        return

    if args.command == "remember":
        memory = await runtime.pipeline.record_text(args.text)
        print(f"Stored {memory.id} (importance={memory.importance:.2f} emotion={memory.emotion_score:.2f})")
        return

    if args.command == "interact":
        memory = await runtime.pipeline.record_interaction(args.user_message, args.agent_response)
        print(f"Stored {memory.id} linked to {len(memory.linked_memories)} memories")
        return

    if args.command == "search":
        criteria = SearchCriteria(
            query=args.query,
            importance_threshold=args.importance,
            emotion_threshold=args.emotion,
            focus_area=args.focus_area,
            limit=args.limit,
        )
        for memory in await runtime.store.search(criteria):
            print(
                f"{memory.id} | {memory.text} | "
                f"importance={memory.importance:.2f} emotion={memory.emotion_score:.2f}"
            )
        return

    if args.command == "prompt":
        for segment in await runtime.prompts.build(args.user_message, args.context):
            print(segment)
            print("-" * 40)
        return

    if args.command == "respond":
        print(await runtime.respond(args.user_message, args.context))
        return

    if args.command == "personality":
        _print_json((await runtime.personality.get()).to_payload())


def main() -> None:
    parser = argparse.ArgumentParser(description="MindSculpt CLI")
    parser.add_argument("--config", help="Path to YAML config file")
    parser.add_argument("--log-level", help="Logging level (defaults to the configured one)")
    sub = parser.add_subparsers(dest="command", required=True)

    classify_cmd = sub.add_parser("classify", help="Classify a piece of text")
    classify_cmd.add_argument("text", help="Text to classify")
    classify_cmd.add_argument("--context", help="Optional user message the text replies to")

    remember_cmd = sub.add_parser("remember", help="Classify text and store it as a memory")
    remember_cmd.add_argument("text", help="Raw input text")

    interact_cmd = sub.add_parser("interact", help="Record a user/agent exchange")
    interact_cmd.add_argument("user_message")
    interact_cmd.add_argument("agent_response")

    search_cmd = sub.add_parser("search", help="Search stored memories")
    search_cmd.add_argument("query", nargs="?", help="Substring to match")
    search_cmd.add_argument("--importance", type=float, help="Minimum importance")
    search_cmd.add_argument("--emotion", type=float, help="Minimum emotion score")
    search_cmd.add_argument("--focus-area", help="Exact focus area")
    search_cmd.add_argument("--limit", type=int, help="Maximum number of results")

    prompt_cmd = sub.add_parser("prompt", help="Show the prompt assembled for a message")
    prompt_cmd.add_argument("user_message")
    prompt_cmd.add_argument("--context", default="", help="Conversation history")

    respond_cmd = sub.add_parser("respond", help="Answer a message and remember the exchange")
    respond_cmd.add_argument("user_message")
    respond_cmd.add_argument("--context", default="", help="Conversation history")

    sub.add_parser("personality", help="Show the agent personality")

    serve_cmd = sub.add_parser("serve", help="Run the HTTP API")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8000)

    args = parser.parse_args()
    load_dotenv()
    config = build_config(args.config)
    setup_logging(args.log_level or config.log_level)

    runtime = MindSculptRuntime(config)
    try:
        if args.command == "serve":
            uvicorn.run(create_app(runtime), host=args.host, port=args.port, log_level=config.log_level.lower())
        else:
            asyncio.run(_run(args, runtime))
    finally:
        runtime.close()


if __name__ == "__main__":
    main()
