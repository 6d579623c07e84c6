"""Audit prompt construction from signals and raw markup."""

from src.constants import EMPTY_SIGNAL_PLACEHOLDER, MAX_PROMPT_HTML_CHARS
from src.models.signal_models import SignalRecord

_INSTRUCTIONS = """You are a UX auditor.
Analyse the provided page using the extracted signals and the raw HTML.
Return 5-10 actionable usability improvements in Markdown, grouped by High, Medium, and Low priority.
For each item include: Issue, Impact, Recommendation. Use concise British English.
Do not wrap the whole response in code fences."""


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


def build_prompt(html: str, signals: SignalRecord) -> str:
    """
    Build the audit prompt for a page.

    Every signal is embedded under its camelCase name and the markup is
    cut at a fixed character cap, which may land mid-tag.

    Args:
        html: Raw page markup
        signals: Signals extracted from the same markup

    Returns:
        Prompt text for the model provider
    """
    title = signals.title or EMPTY_SIGNAL_PLACEHOLDER
    cta = signals.primary_cta_guess or EMPTY_SIGNAL_PLACEHOLDER

    return (
        f"{_INSTRUCTIONS}\n"
        "\n"
        "### Extracted signals\n"
        f"- title: {title}\n"
        f"- hasViewport: {_format_bool(signals.has_viewport)}\n"
        f"- forms: {signals.forms}, inputs: {signals.inputs}, labels: {signals.labels}\n"
        f'- buttons: {signals.buttons}, primaryCtaGuess: "{cta}"\n'
        f"- hasInlineValidationHint: {_format_bool(signals.has_inline_validation_hint)}\n"
        f"- hasProgress: {_format_bool(signals.has_progress)}\n"
        "\n"
        "### Raw HTML (may be truncated)\n"
        f"{html[:MAX_PROMPT_HTML_CHARS]}\n"
    )
