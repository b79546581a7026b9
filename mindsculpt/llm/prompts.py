def classification_prompt(text: str, user_context: str | None = None) -> str:
    if user_context:
        context_block = f'User message: "{user_context}"\nAI response: "{text}"'
    else:
        context_block = f'Text to analyze: "{text}"'
    return f"""Analyze the following interaction and provide a JSON response. Only respond with valid JSON, no markdown:
{{
  "observation": "Write a narrative description of the interaction, including behavioral and emotional observations",
  "user_state": "A simple string describing user's emotional and behavioral state",
  "scene_details": "A simple string describing contextual and environmental details",
  "importance": 0.5,
  "emotion_score": 0,
  "focus_area": "general",
  "interaction_type": "general",
  "suggested_links": []
}}

Rules:
- importance is a number from 0 (trivial) to 1 (critical to remember).
- emotion_score is a number from -1 (very negative) to 1 (very positive).
- suggested_links lists ids of earlier memories this interaction relates to, if any are known.

{context_block}
"""


def similarity_prompt(text_a: str, text_b: str) -> str:
    return f"""Compare these two texts and rate their similarity from 0 to 1, where 1 means identical in meaning and 0 means completely unrelated:

Text 1: "{text_a}"
Text 2: "{text_b}"

Respond with only a number between 0 and 1."""
