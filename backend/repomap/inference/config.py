from typing import Optional

from repomap.config import Settings
from repomap.inference.chat_completions_client import ChatCompletionsClient


def get_llm_client(settings: Optional[Settings] = None) -> ChatCompletionsClient:
    settings = settings or Settings.from_env()
    return ChatCompletionsClient(
        base_url=settings.base_url,
        model=settings.model,
        api_key=settings.api_key,
        timeout=settings.timeout,
        max_attempts=settings.max_attempts,
        referer=settings.referer,
        title=settings.title,
    )
