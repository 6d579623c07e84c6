"""Model provider adapters and their factory."""

from src.models.analysis_models import (
    ChatProviderConfig,
    ContentProviderConfig,
    LocalProviderConfig,
    ProviderConfig,
)
from src.services.providers.base import (
    ModelProvider,
    ProviderError,
    ProviderUnavailableError,
    UpstreamError,
)
from src.services.providers.chat_completions import ChatCompletionsProvider
from src.services.providers.content_generation import ContentGenerationProvider
from src.services.providers.local_generate import LocalGenerateProvider


def build_provider(config: ProviderConfig, timeout_seconds: float) -> ModelProvider:
    """Factory function mapping a provider config to its adapter.

    Args:
        config: Resolved provider configuration (one variant per backend)
        timeout_seconds: Upstream HTTP timeout

    Returns:
        ModelProvider implementation for the config's backend
    """
    if isinstance(config, LocalProviderConfig):
        return LocalGenerateProvider(config, timeout_seconds)
    if isinstance(config, ChatProviderConfig):
        return ChatCompletionsProvider(config, timeout_seconds)
    if isinstance(config, ContentProviderConfig):
        return ContentGenerationProvider(config, timeout_seconds)
    raise TypeError(f"Unsupported provider config: {type(config).__name__}")


__all__ = [
    "ChatCompletionsProvider",
    "ContentGenerationProvider",
    "LocalGenerateProvider",
    "ModelProvider",
    "ProviderError",
    "ProviderUnavailableError",
    "UpstreamError",
    "build_provider",
]
