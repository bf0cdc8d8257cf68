from typing import Any

from .openai import OpenAIProvider


class DeepSeekProvider(OpenAIProvider):
    """DeepSeek LLM provider implementation using OpenAI-compatible API.

    Hidden design decisions:
    - DeepSeek endpoint and default model
    - Everything else is shared with the OpenAI Chat Completions wire format
    """

    def __init__(
        self,
        api_key: str,
        model: str = "deepseek-chat",
        base_url: str = "https://api.deepseek.com",
        **client_kwargs: Any
    ):
        """Initialize DeepSeek provider.

        Args:
            api_key: DeepSeek API key
            model: Default model to use ('deepseek-chat' or 'deepseek-reasoner')
            base_url: DeepSeek API base URL (default: https://api.deepseek.com)
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        super().__init__(
            api_key=api_key,
            model=model,
            base_url=base_url,
            **client_kwargs
        )
