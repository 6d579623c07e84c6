"""Analysis request, provider configuration and wire record models."""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field


class ProviderKind(str, Enum):
    """Discriminator for the model backend that answers an analysis."""

    LOCAL = "local"
    CHAT = "chat"
    CONTENT = "content"

    @classmethod
    def parse(cls, value: str | None) -> "ProviderKind | None":
        """Resolve a request discriminator, accepting vendor aliases.

        Returns None for anything unrecognized.
        """
        if not value:
            return None
        normalized = value.strip().lower()
        alias = _PROVIDER_ALIASES.get(normalized)
        if alias is not None:
            return alias
        try:
            return cls(normalized)
        except ValueError:
            return None


_PROVIDER_ALIASES = {
    "ollama": ProviderKind.LOCAL,
    "openai": ProviderKind.CHAT,
    "gemini": ProviderKind.CONTENT,
}


class AnalysisRequest(BaseModel):
    """Inbound analysis request body."""

    url: str | None = Field(default=None, description="Page URL to fetch")
    html: str | None = Field(default=None, description="Inline page markup")
    provider: str = Field(
        default="", description="Provider discriminator: local, chat or content"
    )
    key: str | None = Field(
        default=None, description="Provider API key (non-local providers only)"
    )
    model: str | None = Field(default=None, description="Provider model name")


@dataclass(frozen=True)
class LocalProviderConfig:
    """Local generate API: no credentials.

    ``default_model`` replaces model names that belong to hosted providers.
    """

    model: str
    default_model: str
    base_url: str


@dataclass(frozen=True)
class ChatProviderConfig:
    """Chat-completions API authenticated with a bearer token."""

    api_key: str
    model: str
    base_url: str


@dataclass(frozen=True)
class ContentProviderConfig:
    """Content-generation API authenticated with a query-string key."""

    api_key: str
    model: str
    base_url: str


ProviderConfig = LocalProviderConfig | ChatProviderConfig | ContentProviderConfig


class DeltaRecord(BaseModel):
    """One incremental fragment of generated text on the outbound stream."""

    delta: str


class ErrorRecord(BaseModel):
    """Error body for rejected requests and failed streams."""

    error: str
