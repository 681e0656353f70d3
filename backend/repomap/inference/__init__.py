from repomap.inference.base import LLMClient
from repomap.inference.chat_completions_client import ChatCompletionsClient
from repomap.inference.prompt import PromptTemplate, build_messages, build_prompt

__all__ = [
    "LLMClient",
    "ChatCompletionsClient",
    "PromptTemplate",
    "build_messages",
    "build_prompt",
]
