from mindsculpt.prompting.builder import (
    DEFAULT_TEMPLATE,
    PromptBuilder,
    PromptTemplate,
    as_chat_messages,
)

__all__ = ["DEFAULT_TEMPLATE", "PromptBuilder", "PromptTemplate", "as_chat_messages"]
