"""Analysis request orchestration.

Runs one analysis request through the pipeline in a single pass:
1. Resolve input markup (inline HTML, else one fetch of the URL)
2. Extract signals and build the prompt
3. Resolve the provider discriminator and its credentials
4. Open the provider's answer stream

Request-level problems (no markup, unknown provider, missing key) raise
``InputError`` before any model provider is contacted. Provider failures
surface as ``ProviderError`` subclasses from the adapters.
"""

from __future__ import annotations

import time
from typing import Awaitable, Callable

import logfire

from src.config import Settings, get_settings
from src.models.analysis_models import (
    AnalysisRequest,
    ChatProviderConfig,
    ContentProviderConfig,
    LocalProviderConfig,
    ProviderConfig,
    ProviderKind,
)
from src.services.page_fetcher import fetch_page_html
from src.services.prompt_builder import build_prompt
from src.services.providers import build_provider
from src.services.signal_extractor import extract_signals
from src.services.stream_normalizer import DeltaSource

PageFetcher = Callable[[str], Awaitable[str]]

NO_INPUT_MESSAGE = "No URL/HTML provided."
UNKNOWN_PROVIDER_MESSAGE = "Unknown provider"


class AnalysisError(Exception):
    """Base exception for analysis request errors."""

    pass


class InputError(AnalysisError):
    """Request cannot be served: no markup, unknown provider or missing key."""

    pass


class AnalysisDispatcher:
    """Turn an analysis request into an opened provider answer stream.

    Settings and the page fetcher are injected so tests can replace them.

    Example:
        >>> dispatcher = AnalysisDispatcher()
        >>> source = await dispatcher.dispatch(
        ...     AnalysisRequest(html="<title>Shop</title>", provider="local")
        ... )
    """

    def __init__(
        self,
        settings: Settings | None = None,
        fetch_page: PageFetcher | None = None,
    ):
        self.settings = settings or get_settings()
        self._fetch_page = fetch_page or fetch_page_html

    async def resolve_html(self, request: AnalysisRequest) -> str:
        """Inline HTML if given, else the fetched page, else ''."""
        if request.html:
            return request.html
        if request.url:
            return await self._fetch_page(request.url)
        return ""

    def resolve_provider_config(self, request: AnalysisRequest) -> ProviderConfig:
        """
        Build the provider config for a request.

        Request values win over settings. Raises InputError for an unknown
        discriminator or a missing key on a provider that needs one.
        """
        kind = ProviderKind.parse(request.provider)
        settings = self.settings

        if kind is ProviderKind.LOCAL:
            return LocalProviderConfig(
                model=request.model or settings.local_model,
                default_model=settings.local_model,
                base_url=settings.local_base_url,
            )

        if kind is ProviderKind.CHAT:
            api_key = request.key or settings.openai_api_key
            if not api_key:
                raise InputError("Missing OpenAI API key.")
            return ChatProviderConfig(
                api_key=api_key,
                model=request.model or settings.chat_model,
                base_url=settings.chat_base_url,
            )

        if kind is ProviderKind.CONTENT:
            api_key = request.key or settings.google_api_key
            if not api_key:
                raise InputError("Missing Google API key.")
            return ContentProviderConfig(
                api_key=api_key,
                model=request.model or settings.content_model,
                base_url=settings.content_base_url,
            )

        raise InputError(UNKNOWN_PROVIDER_MESSAGE)

    async def dispatch(self, request: AnalysisRequest) -> DeltaSource:
        """
        Run the pipeline up to an opened answer stream.

        Args:
            request: Validated analysis request

        Returns:
            DeltaSource the caller must drain or close

        Raises:
            InputError: Request rejected before any provider call
            ProviderError: Provider unreachable or answered with an error status
        """
        start_time = time.time()

        html = await self.resolve_html(request)
        if not html:
            logfire.info("Rejecting analysis: no usable HTML", url=request.url)
            raise InputError(NO_INPUT_MESSAGE)

        signals = extract_signals(html)
        prompt = build_prompt(html, signals)

        config = self.resolve_provider_config(request)
        provider = build_provider(config, self.settings.provider_timeout_seconds)

        logfire.info(
            "Dispatching analysis",
            provider=provider.name,
            model=config.model,
            html_length=len(html),
            prompt_length=len(prompt),
            title=signals.title,
            primary_cta_guess=signals.primary_cta_guess,
        )
        source = await provider.open(prompt)
        logfire.info(
            "Analysis answer stream opened",
            provider=provider.name,
            response_time_ms=(time.time() - start_time) * 1000,
        )
        return source


def get_analysis_dispatcher() -> AnalysisDispatcher:
    """Factory function for the request-scoped dispatcher."""
    return AnalysisDispatcher()
