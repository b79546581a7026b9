import argparse
import asyncio

from dotenv import load_dotenv

from mindsculpt.logging_config import setup_logging
from mindsculpt.runtime import MindSculptRuntime
from mindsculpt.settings import build_config

SAMPLE_EXCHANGES = [
    ("Hi, I'm Sam. I just moved to Lisbon.", "Welcome to Lisbon, Sam! How are you settling in?"),
    ("I'm nervous about starting my new job on Monday.", "That's understandable. What part worries you most?"),
    ("My cat Miso knocked my coffee over this morning.", "Oh no! I hope Miso is proud of that one."),
    ("I finally finished the marathon training plan!", "Congratulations, that's a huge achievement!"),
    ("Can you remind me what book I said I was reading?", "I don't have that noted yet. Which book is it?"),
]


async def _seed(runtime: MindSculptRuntime) -> int:
    for user_message, agent_response in SAMPLE_EXCHANGES:
        memory = await runtime.pipeline.record_interaction(
            user_message, agent_response, {"source": "demo"}
        )
        print(f"{memory.id} | importance={memory.importance:.2f} | {memory.text}")
    return len(SAMPLE_EXCHANGES)


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed MindSculpt with demo memories")
    parser.add_argument("--config", help="Path to YAML config file")
    args = parser.parse_args()

    load_dotenv()
    config = build_config(args.config)
    setup_logging(config.log_level)
    runtime = MindSculptRuntime(config)
    try:
        count = asyncio.run(_seed(runtime))
    finally:
        runtime.close()
    print(f"Seeded {count} interactions")


if __name__ == "__main__":
    main()
