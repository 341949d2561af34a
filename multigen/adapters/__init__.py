"""Provider adapters."""

from .anthropic_adapter import AnthropicAdapter
from .base import BaseProviderAdapter, estimate_tokens
from .factory import build_adapters, supported_providers
from .http_adapters import HTTPProviderAdapter, HuggingFaceAdapter, OllamaAdapter
from .openai_adapter import OpenAIAdapter

__all__ = [
    "BaseProviderAdapter",
    "estimate_tokens",
    "build_adapters",
    "supported_providers",
    "AnthropicAdapter",
    "OpenAIAdapter",
    "HTTPProviderAdapter",
    "HuggingFaceAdapter",
    "OllamaAdapter",
]
