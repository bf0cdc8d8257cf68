from .base import LLMProvider
from .cancellation import CancelToken
from .factory import SUPPORTED_PROVIDERS, create_llm_provider
from .models import LLMResponse, StreamingResponse
from .providers import AnthropicProvider, DeepSeekProvider, OpenAIProvider

__all__ = [
    "LLMProvider",
    "CancelToken",
    "create_llm_provider",
    "SUPPORTED_PROVIDERS",
    "LLMResponse",
    "StreamingResponse",
    "AnthropicProvider",
    "DeepSeekProvider",
    "OpenAIProvider",
]
