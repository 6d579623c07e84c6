"""Usability signal models extracted from page markup."""

from pydantic import BaseModel, ConfigDict, Field


class SignalRecord(BaseModel):
    """Structural usability signals derived from a page's HTML.

    Immutable once produced. Field names are snake_case in Python; the
    JSON form uses the camelCase aliases that also appear in the prompt.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = Field(default="", description="First <title> text, trimmed")
    has_viewport: bool = Field(
        default=False,
        alias="hasViewport",
        description="A meta viewport tag is present",
    )
    forms: int = Field(default=0, ge=0, description="Count of form elements")
    inputs: int = Field(
        default=0, ge=0, description="Count of input/select/textarea elements"
    )
    labels: int = Field(default=0, ge=0, description="Count of label elements")
    buttons: int = Field(
        default=0, ge=0, description="Count of distinct button-like elements"
    )
    primary_cta_guess: str = Field(
        default="",
        alias="primaryCtaGuess",
        description="Text of the first call-to-action candidate in document order",
    )
    has_inline_validation_hint: bool = Field(
        default=False,
        alias="hasInlineValidationHint",
        description="Any element carries aria-invalid or an error class",
    )
    has_progress: bool = Field(
        default=False,
        alias="hasProgress",
        description="Any element signals multi-step progress",
    )
